"""One-shot timer on the running event loop."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional


class FlushTimer:
    """Run callback once, delay seconds after schedule(). At most one pending
    run at a time; schedule() while pending is a no-op."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> bool:
        if self._handle is not None:
            return False
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()
