"""Completion session: one streaming request writing into one document.

Lifecycle::

    created -> requesting -> streaming -> finalizing -> finalized

Fragments are buffered in ``partial`` and written to the document by a
coalescing timer, at most one write per flush interval. ``finalize`` is the only
place buffered text is guaranteed to land in the document; it runs exactly once
whether the stream ended, failed, or was stopped.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, AsyncIterable, AsyncIterator, Optional

from chatdoc.core import events
from chatdoc.core.errors import ChatdocError, ProtocolError, TransportError
from chatdoc.core.events import Notice, Notifier
from chatdoc.core.spinner import Spinner
from chatdoc.core.timer import FlushTimer
from chatdoc.document.markers import ensure_trailing_user_marker
from chatdoc.document.model import Document
from chatdoc.models.stream_decoder import StreamDecoder

if TYPE_CHECKING:
    from chatdoc.core.registry import SessionRegistry

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CREATED = "created"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"


def _log_notice(notice: Notice) -> None:
    logger.info(notice.text, extra={"level_name": notice.level.value})


class Session:
    """Owns one request/response exchange. Created through SessionRegistry.create."""

    def __init__(
        self,
        session_id: int,
        document: Document,
        registry: "SessionRegistry",
        *,
        flush_interval: float = 0.1,
        auto_scroll: bool = False,
        notify: Notifier | None = None,
        spinner: Spinner | None = None,
    ) -> None:
        self.id = session_id
        self.document = document
        self.partial = ""
        self.state = SessionState.CREATED
        self.auto_scroll = auto_scroll
        self.spinner = spinner
        self.task: Optional[asyncio.Task] = None
        self.error: ChatdocError | None = None
        self.flush_timer = FlushTimer(flush_interval, self.flush)
        self._registry = registry
        self._notify = notify or _log_notice

    def __repr__(self) -> str:
        return f"Session(id={self.id}, state={self.state.value})"

    @property
    def active(self) -> bool:
        return self.state in (SessionState.REQUESTING, SessionState.STREAMING)

    def _mark_streaming(self) -> None:
        if self.state is SessionState.REQUESTING:
            self.state = SessionState.STREAMING
            logger.debug("session streaming", extra={"session_id": self.id})

    def append_chunk(self, text: str) -> str:
        """Buffer a fragment and schedule a flush if none is pending."""
        if not self.active:
            return self.partial
        self._mark_streaming()
        self.partial += text
        self.flush_timer.schedule()
        return self.partial

    def flush(self) -> None:
        """Write buffered text: the first piece overwrites the last document
        line, complete lines are inserted after it, and the unfinished tail stays
        in ``partial`` as well as on the new last line."""
        pieces = self.partial.split("\n")
        last = self.document.line_count() - 1
        self.document.set_lines(last, last + 1, pieces)
        self.partial = pieces[-1]
        if self.auto_scroll:
            self.document.scroll_to_bottom()

    def start(self, lines: AsyncIterable[str]) -> asyncio.Task:
        """Run the stream in a task on the current loop and return immediately."""
        self.task = asyncio.get_running_loop().create_task(
            self.run(lines), name=f"chatdoc-session-{self.id}"
        )
        return self.task

    async def _track(self, lines: AsyncIterable[str]) -> AsyncIterator[str]:
        try:
            async for line in lines:
                self._mark_streaming()
                yield line
        finally:
            # Breaking out at the sentinel must still release the HTTP response
            aclose = getattr(lines, "aclose", None)
            if aclose is not None:
                await aclose()

    def _on_protocol_error(self, message: str) -> None:
        self.error = ProtocolError(message)
        self._notify(events.error(f"Gemini API Error: {message}", self.id))

    async def run(self, lines: AsyncIterable[str]) -> None:
        decoder = StreamDecoder(self.append_chunk, self._on_protocol_error)
        tracked = self._track(lines)
        try:
            await decoder.consume(tracked)
        except TransportError as e:
            self.error = e
            logger.warning(
                "transport error: %s", e, extra={"session_id": self.id, "code": e.code}
            )
            if e.code is not None:
                text = f"Gemini API request failed with code {e.code}"
                if e.message:
                    text += f": {e.message}"
            else:
                text = f"Gemini API request failed: {e.message}"
            self._notify(events.error(text, self.id))
        except asyncio.CancelledError:
            logger.debug("session cancelled", extra={"session_id": self.id})
            raise
        except Exception as e:
            logger.exception("session %s failed", self.id)
            self._notify(events.error(f"Gemini request failed: {e}", self.id))
        finally:
            self.finalize()
            await tracked.aclose()

    def cancel(self) -> bool:
        """Stop new data from arriving. Safe on a finished or missing task."""
        if self.task is None or self.task.done():
            return False
        self.task.cancel()
        return True

    def finalize(self) -> bool:
        """Flush, repair the trailing USER marker and deregister. Returns False
        when the session was already finalizing or finalized."""
        if self.state in (SessionState.FINALIZING, SessionState.FINALIZED):
            return False
        self.state = SessionState.FINALIZING
        try:
            self.flush_timer.cancel()
            if self.spinner is not None:
                self.spinner.stop()
            if self.partial:
                self.flush()
                self.partial = ""
            ensure_trailing_user_marker(self.document)
        finally:
            self._registry.deregister(self)
            self.state = SessionState.FINALIZED
        logger.info("session finalized", extra={"session_id": self.id})
        self._notify(events.info("🤖 Gemini response complete", self.id))
        return True
