"""Decode a server-sent event stream into text fragments.

The transport delivers logical lines. Each line is one of:

- ``data: [DONE]``: end of stream;
- ``data: <json>``: one payload;
- a line starting with ``{`` or ``[``: a bare JSON payload (non-SSE transports);
- anything else (comments, ``event:`` lines, blanks): ignored.

Payloads that do not decode are dropped. They never end the stream.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import AsyncIterable, Callable, Optional

from chatdoc.models.payload import ErrorPayload, parse_payload

logger = logging.getLogger(__name__)

_DONE = re.compile(r"^data:\s*\[DONE\]\s*$")
_DATA_PREFIX = re.compile(r"^data:\s*")


class LineKind(str, Enum):
    DONE = "done"
    PAYLOAD = "payload"
    ERROR = "error"
    MALFORMED = "malformed"
    IGNORED = "ignored"


class StreamDecoder:
    """Feed lines in transport order; fragments go to on_text, server errors to on_error."""

    def __init__(
        self,
        on_text: Callable[[str], None],
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._on_text = on_text
        self._on_error = on_error
        self.done = False
        self.lines_seen = 0
        self.fragments = 0

    def feed_line(self, line: str) -> LineKind:
        if self.done:
            return LineKind.IGNORED
        self.lines_seen += 1
        line = line[:-1] if line.endswith("\r") else line
        if not line:
            return LineKind.IGNORED
        if _DONE.match(line):
            self.done = True
            return LineKind.DONE
        if line.startswith("data:"):
            raw = _DATA_PREFIX.sub("", line, count=1)
            if not raw:
                return LineKind.IGNORED
            return self._handle(raw)
        if line[0] in "{[":
            return self._handle(line)
        return LineKind.IGNORED

    def _handle(self, raw: str) -> LineKind:
        payload = parse_payload(raw)
        if payload is None:
            logger.debug("dropped malformed payload (%d bytes)", len(raw))
            return LineKind.MALFORMED
        if isinstance(payload, ErrorPayload):
            message = payload.message()
            logger.warning("stream error payload: %s", message)
            if self._on_error is not None:
                self._on_error(message)
            return LineKind.ERROR
        for text in payload.texts():
            self.fragments += 1
            self._on_text(text)
        return LineKind.PAYLOAD

    async def consume(self, lines: AsyncIterable[str]) -> bool:
        """Drive the decoder until the sentinel or the end of lines. Returns True
        when the sentinel was seen."""
        async for line in lines:
            if self.feed_line(line) is LineKind.DONE:
                break
        return self.done
