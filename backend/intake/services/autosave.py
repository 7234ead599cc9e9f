"""Trailing debounce for draft autosave.

Every form mutation calls schedule(); only the last call within the delay
window fires. Timers run on the asyncio event loop the session lives on.
"""

import asyncio
from collections.abc import Callable


class Debouncer:
    """Coalesce rapid calls into one trailing invocation.

    Attributes:
        delay: Quiet period in seconds before the callback runs.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """True while a write is scheduled but has not run yet."""
        return self._handle is not None

    def schedule(self) -> None:
        """(Re)start the timer.

        Without a running event loop the callback runs immediately.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._callback()
            return
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._callback()

    def flush(self) -> None:
        """Run a pending callback now."""
        if self._handle is None:
            return
        self.cancel()
        self._callback()

    def cancel(self) -> None:
        """Drop a pending callback without running it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
