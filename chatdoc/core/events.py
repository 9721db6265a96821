"""User-visible notices. All notices are Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notice(BaseModel):
    """One message for the status area of the host editor."""

    level: NoticeLevel = NoticeLevel.INFO
    text: str = ""
    session_id: Optional[int] = Field(default=None, description="Session the notice is about")


Notifier = Callable[[Notice], None]


def info(text: str, session_id: int | None = None) -> Notice:
    return Notice(level=NoticeLevel.INFO, text=text, session_id=session_id)


def warning(text: str, session_id: int | None = None) -> Notice:
    return Notice(level=NoticeLevel.WARNING, text=text, session_id=session_id)


def error(text: str, session_id: int | None = None) -> Notice:
    return Notice(level=NoticeLevel.ERROR, text=text, session_id=session_id)
