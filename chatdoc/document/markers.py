"""Role markers: split a document into role-tagged segments and normalize spacing.

A marker is a whole line that is exactly one of::

    # === USER ===
    # === ASSISTANT ===
    # === SYSTEM ===

No variation in spacing or case is recognized. A segment runs from one marker
up to (not including) the next marker or the end of the document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from chatdoc.document.model import Document


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


USER_MARKER = "# === USER ==="
ASSISTANT_MARKER = "# === ASSISTANT ==="
SYSTEM_MARKER = "# === SYSTEM ==="

MARKERS: dict[str, Role] = {
    USER_MARKER: Role.USER,
    ASSISTANT_MARKER: Role.ASSISTANT,
    SYSTEM_MARKER: Role.SYSTEM,
}
ROLE_MARKERS: dict[Role, str] = {role: marker for marker, role in MARKERS.items()}


def is_marker(line: str) -> bool:
    return line in MARKERS


@dataclass
class Segment:
    """Lines following one marker. ``role`` is None for text before the first marker."""

    role: Optional[Role]
    lines: list[str] = field(default_factory=list)
    # True when the document had no markers and the whole text is one user message
    implicit: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def parse_segments(lines: Sequence[str]) -> list[Segment]:
    """Partition lines into segments in document order.

    Text before the first marker is returned as a role-less segment (only when
    non-empty). With no markers at all the whole document is one implicit user
    segment.
    """
    if not any(is_marker(line) for line in lines):
        return [Segment(role=Role.USER, lines=list(lines), implicit=True)]
    segments: list[Segment] = []
    current = Segment(role=None)
    for line in lines:
        role = MARKERS.get(line)
        if role is not None:
            if current.role is not None or current.lines:
                segments.append(current)
            current = Segment(role=role)
        else:
            current.lines.append(line)
    segments.append(current)
    return segments


def render_segments(segments: Sequence[Segment]) -> list[str]:
    """Inverse of parse_segments: markers interleaved with segment lines."""
    out: list[str] = []
    for segment in segments:
        if segment.role is not None and not segment.implicit:
            out.append(ROLE_MARKERS[segment.role])
        out.extend(segment.lines)
    return out


def normalize_lines(lines: Sequence[str]) -> list[str]:
    """Canonical spacing: one blank line before every marker (unless it is the
    first line) and one after it. Leading blank lines are dropped."""
    out: list[str] = []
    n = len(lines)
    i = 0
    while i < n and lines[i] == "":
        i += 1
    while i < n:
        line = lines[i]
        if is_marker(line):
            while out and out[-1] == "":
                out.pop()
            if out:
                out.append("")
            out.append(line)
            out.append("")
            i += 1
            while i < n and lines[i] == "":
                i += 1
        else:
            out.append(line)
            i += 1
    return out


def normalize_document(document: Document) -> bool:
    """Rewrite the document with normalized spacing. Writes only when something
    changed, so an already-normal document gets no edit. Returns True on write."""
    lines = document.get_lines()
    normalized = normalize_lines(lines) or [""]
    if normalized == lines:
        return False
    document.replace_all(normalized)
    return True


def has_user_marker(lines: Sequence[str]) -> bool:
    return any(line == USER_MARKER for line in lines)


def prepare_for_completion(document: Document) -> None:
    """Make sure the conversation opens with a USER marker and ends with a fresh
    ASSISTANT block, then normalize."""
    if not has_user_marker(document.get_lines()):
        document.set_lines(0, 0, [USER_MARKER])
    document.append_lines(["", ASSISTANT_MARKER, ""])
    normalize_document(document)


def ensure_trailing_user_marker(document: Document) -> bool:
    """Append a USER marker unless it is already the last non-blank line."""
    if document.last_nonblank() == USER_MARKER:
        return False
    document.append_lines(["", USER_MARKER, ""])
    return True
