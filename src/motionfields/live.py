"""
Live pygame window.

Plays the audio file through pygame's mixer and drives the engine from
a display loop capped at the target fps. This module is a thin host:
transport, window and keyboard handling live here and nowhere else.

Keys:
    space   play / pause
    r       new random anchor positions
    c       new harmonious colors
    esc, q  quit
"""

import logging
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import pygame

from motionfields.engine import FieldVisualizer
from motionfields.io.source import AnalyserSource

logger = logging.getLogger(__name__)


class PygameFrameLoop:
    """
    Frame scheduler backed by a pygame window.

    ``request_frame`` callbacks run once per display tick inside ``run()``.
    """

    def __init__(self, width: int, height: int, fps: int = 60, title: str = "motionfields"):
        pygame.init()
        self.fps = fps
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_handle = 1
        self.running = False

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def present(self, frame: np.ndarray):
        """Blit an (H, W, 3) RGB frame to the window."""
        # pygame uses (width, height); numpy frames are (height, width)
        surface = pygame.surfarray.make_surface(np.transpose(frame, (1, 0, 2)))
        self.screen.blit(surface, (0, 0))
        pygame.display.flip()

    def run(self, on_event: Optional[Callable[[pygame.event.Event], None]] = None):
        """Pump events and frame callbacks until ``stop()`` or window close."""
        self.running = True
        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif on_event is not None:
                    on_event(event)

            batch = self._callbacks
            self._callbacks = {}
            for callback in batch.values():
                callback()

            self.clock.tick(self.fps)

    def stop(self):
        self.running = False

    def close(self):
        pygame.quit()


class MixerSyncedSource:
    """Seeks the wrapped source to the mixer position before each read."""

    def __init__(self, source: AnalyserSource, sync: Callable[[], None], is_playing: Callable[[], bool]):
        self.source = source
        self.sync = sync
        self.is_playing = is_playing

    @property
    def ready(self) -> bool:
        return self.source.ready

    def analyze(self):
        if self.is_playing():
            self.sync()
        return self.source.analyze()


class LiveSession:
    """Wires an audio file, the mixer, the engine and a window together."""

    def __init__(
        self,
        audio_path: Path,
        engine: FieldVisualizer,
        source: AnalyserSource,
        loop: PygameFrameLoop,
    ):
        self.audio_path = Path(audio_path)
        self.engine = engine
        self.source = source
        self.loop = loop
        self.playing = False
        self._started = False

    def _sync_position(self):
        pos_ms = pygame.mixer.music.get_pos()
        if pos_ms >= 0:
            self.source.seek(pos_ms / 1000.0)

    def play(self):
        if self.playing:
            return
        if not self._started:
            pygame.mixer.music.play()
            self._started = True
        else:
            pygame.mixer.music.unpause()
        self.source.resume()
        self.playing = True
        self.engine.start()

    def pause(self):
        if not self.playing:
            return
        pygame.mixer.music.pause()
        self.source.suspend()
        self.playing = False
        self.engine.stop()
        self.engine.render_static()

    def handle_event(self, event: pygame.event.Event):
        if event.type == pygame.VIDEORESIZE:
            self.loop.screen = pygame.display.set_mode(event.size, pygame.RESIZABLE)
            self.engine.resize(*event.size)
            if not self.playing:
                self.engine.render_static()
        elif event.type == pygame.KEYDOWN:
            if event.key in (pygame.K_ESCAPE, pygame.K_q):
                self.loop.stop()
            elif event.key == pygame.K_SPACE:
                if self.playing:
                    self.pause()
                else:
                    self.play()
            elif event.key == pygame.K_r:
                self.engine.generate_random_positions()
            elif event.key == pygame.K_c:
                self.engine.generate_harmonious_colors()

    def run(self):
        pygame.mixer.init()
        pygame.mixer.music.load(str(self.audio_path))

        self.engine.connect_source(MixerSyncedSource(self.source, self._sync_position, lambda: self.playing))

        self.engine.render_static()
        self.play()
        try:
            self.loop.run(on_event=self.handle_event)
        finally:
            self.engine.stop()
            pygame.mixer.music.stop()
            self.loop.close()
            logger.info("Live session closed")


def run_live(
    audio_path: Path,
    width: int = 1280,
    height: int = 720,
    fps: int = 60,
    engine_factory: Optional[Callable[..., FieldVisualizer]] = None,
) -> None:
    """Open a window and visualize ``audio_path`` until closed."""
    source = AnalyserSource.from_file(audio_path)
    loop = PygameFrameLoop(width, height, fps=fps)

    factory = engine_factory or FieldVisualizer
    engine = factory(width=width, height=height, source=source, scheduler=loop, on_frame=loop.present)

    LiveSession(audio_path, engine, source, loop).run()
