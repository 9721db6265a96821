"""Progress indicator shown while a session is waiting on the model."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
LABEL = "🤖 Gemini thinking..."


class Spinner:
    """Calls render(text) every interval until stop(). render(None) clears it."""

    def __init__(
        self,
        render: Callable[[Optional[str]], None],
        interval: float = 0.08,
    ) -> None:
        self._render = render
        self.interval = interval
        self.index = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def frame(self) -> str:
        return f"{LABEL} {FRAMES[self.index]}"

    def start(self) -> None:
        if self.active:
            return
        self._render(self.frame())
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.index = (self.index + 1) % len(FRAMES)
            self._render(self.frame())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        try:
            self._render(None)
        except Exception as e:
            logger.warning("spinner teardown failed: %s", e)
