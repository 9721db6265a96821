"""Status-line text for the number of live sessions."""

from __future__ import annotations

from typing import Callable, Optional


def format_status(count: int) -> str:
    if count <= 0:
        return ""
    if count == 1:
        return "🤖 1 chat"
    return f"🤖 {count} chats"


class StatusLine:
    """Registry observer that keeps the current status text for a status bar."""

    def __init__(self, on_change: Optional[Callable[[str], None]] = None) -> None:
        self.count = 0
        self.text = ""
        self._on_change = on_change

    def __call__(self, count: int) -> None:
        self.count = count
        self.text = format_status(count)
        if self._on_change is not None:
            self._on_change(self.text)
