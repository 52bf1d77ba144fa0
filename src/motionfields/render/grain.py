"""
Film-grain textures for the grain overlay pass.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image
from scipy.ndimage import gaussian_filter


def generate_grain_texture(
    size: int = 256,
    rng: Optional[np.random.Generator] = None,
    softness: float = 0.6,
) -> np.ndarray:
    """
    Procedural tileable grain.

    Args:
        size: Edge length of the square tile in pixels.
        rng: Random source; a fresh generator if None.
        softness: Gaussian sigma in pixels. 0 keeps raw white noise.

    Returns:
        (size, size) float32 array in [0, 1] centered around 0.5.
    """
    rng = rng if rng is not None else np.random.default_rng()
    noise = rng.standard_normal((size, size)).astype(np.float32)

    if softness > 0:
        # wrap mode keeps the tile seamless
        noise = gaussian_filter(noise, sigma=softness, mode="wrap")

    spread = float(noise.std())
    if spread < 1e-6:
        return np.full((size, size), 0.5, dtype=np.float32)

    noise = (noise - noise.mean()) / (spread * 6.0) + 0.5
    return np.clip(noise, 0.0, 1.0).astype(np.float32)


def load_grain_texture(path: Union[str, Path]) -> np.ndarray:
    """
    Load a grain image as a grayscale tile.

    Raises:
        FileNotFoundError: If the image does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Grain texture not found: {path}")

    with Image.open(path) as img:
        gray = img.convert("L")
        return np.asarray(gray, dtype=np.float32) / 255.0


def tile_texture(
    texture: np.ndarray,
    top: int,
    left: int,
    height: int,
    width: int,
    shift: int = 0,
) -> np.ndarray:
    """Sample a (height, width) window of an infinitely tiled texture."""
    th, tw = texture.shape[:2]
    rows = (np.arange(top, top + height) + shift) % th
    cols = (np.arange(left, left + width) + shift) % tw
    return texture[np.ix_(rows, cols)]
