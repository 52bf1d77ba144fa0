"""
Frame schedulers.

The engine never loops on its own: it asks a scheduler for one frame
callback at a time, the way a page asks for an animation frame. Any
object with ``request_frame(callback) -> handle`` and
``cancel_frame(handle)`` can drive it.
"""

from typing import Callable, Protocol


class FrameScheduler(Protocol):
    def request_frame(self, callback: Callable[[], None]) -> int: ...

    def cancel_frame(self, handle: int) -> None: ...


class ManualScheduler:
    """
    Queue of frame callbacks run explicitly with ``run_pending()``.

    Used for offline rendering and tests, where "vsync" is whenever the
    caller says so.
    """

    def __init__(self):
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_handle = 1

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def run_pending(self) -> int:
        """
        Run the callbacks queued so far.

        Callbacks requested while running wait for the next call.
        """
        batch = self._callbacks
        self._callbacks = {}
        for callback in batch.values():
            callback()
        return len(batch)

    def run(self, frames: int) -> int:
        """Run up to ``frames`` ticks; stops early once nothing is queued."""
        ran = 0
        for _ in range(frames):
            if not self._callbacks:
                break
            self.run_pending()
            ran += 1
        return ran
