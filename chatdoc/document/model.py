"""Line-oriented document the conversation lives in."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Callable, Iterable, Optional


class Document:
    """Mutable list of lines with editor-style range primitives.

    Indices are zero-based and end-exclusive. A negative index ``i`` resolves to
    ``line_count() + 1 + i``, so ``-1`` is the position past the last line and
    ``set_lines(-1, -1, [...])`` appends. Like an editor buffer, a document is
    never empty: it always holds at least one (possibly empty) line.
    """

    def __init__(
        self,
        lines: Iterable[str] | None = None,
        *,
        path: Optional[Path] = None,
        modifiable: bool = True,
    ) -> None:
        self._lines: list[str] = list(lines or [])
        if not self._lines:
            self._lines = [""]
        self.document_id = uuid.uuid4().hex
        self.path = path
        self.modifiable = modifiable
        self.version = 0
        # Host hook: called with the last line index after streamed writes
        self.scroll_hook: Optional[Callable[[int], None]] = None

    @classmethod
    def from_text(cls, text: str, **kwargs) -> "Document":
        return cls(text.split("\n"), **kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> "Document":
        p = Path(path)
        text = p.read_text(encoding="utf-8") if p.exists() else ""
        if text.endswith("\n"):
            text = text[:-1]
        return cls.from_text(text, path=p)

    def save(self, path: str | Path | None = None) -> Path:
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("document has no path")
        target.write_text(self.text() + "\n", encoding="utf-8")
        self.path = target
        return target

    def _resolve(self, index: int) -> int:
        n = len(self._lines)
        if index < 0:
            index = n + 1 + index
        if index < 0 or index > n:
            raise IndexError(f"line index out of range: {index}")
        return index

    def line_count(self) -> int:
        return len(self._lines)

    def get_lines(self, start: int = 0, end: int | None = None) -> list[str]:
        s = self._resolve(start)
        e = len(self._lines) if end is None else self._resolve(end)
        return list(self._lines[s:e])

    def set_lines(self, start: int, end: int, replacement: Iterable[str]) -> None:
        s = self._resolve(start)
        e = self._resolve(end)
        if e < s:
            raise IndexError(f"invalid line range: {start}..{end}")
        self._lines[s:e] = list(replacement)
        if not self._lines:
            self._lines = [""]
        self.version += 1

    def replace_all(self, lines: Iterable[str]) -> None:
        self.set_lines(0, -1, lines)

    def append_lines(self, lines: Iterable[str]) -> None:
        self.set_lines(-1, -1, lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def last_nonblank(self) -> str | None:
        for line in reversed(self._lines):
            if line != "":
                return line
        return None

    def scroll_to_bottom(self) -> None:
        if self.scroll_hook is not None:
            self.scroll_hook(len(self._lines) - 1)

    def __len__(self) -> int:
        return len(self._lines)

    def __repr__(self) -> str:
        return f"Document(id={self.document_id[:8]}, lines={len(self._lines)}, path={self.path})"
