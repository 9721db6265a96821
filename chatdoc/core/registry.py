"""Session Registry: live sessions by id, status observers, stop controls."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from chatdoc.core.session import Session, SessionState
from chatdoc.document.model import Document

logger = logging.getLogger(__name__)

StatusObserver = Callable[[int], None]


@dataclass(frozen=True)
class StopAllResult:
    stopped: int

    @property
    def nothing_to_stop(self) -> bool:
        return self.stopped == 0


class SessionRegistry:
    """Owns session ids (monotonic for the registry's lifetime) and the set of
    sessions between creation and finalization."""

    def __init__(self) -> None:
        self._sessions: dict[int, Session] = {}
        self._counter = 0
        self._observers: list[StatusObserver] = []

    def _next_id(self) -> int:
        self._counter += 1
        return self._counter

    def create(self, document: Document, **kwargs: Any) -> Session:
        session = Session(self._next_id(), document, self, **kwargs)
        self.register(session)
        session.state = SessionState.REQUESTING
        logger.debug("session created", extra={"session_id": session.id})
        return session

    def register(self, session: Session) -> None:
        self._sessions[session.id] = session
        self._notify_observers()

    def deregister(self, session: Session) -> bool:
        if self._sessions.pop(session.id, None) is None:
            return False
        self._notify_observers()
        return True

    def add_observer(self, callback: StatusObserver) -> None:
        self._observers.append(callback)

    def _notify_observers(self) -> None:
        count = len(self._sessions)
        for callback in list(self._observers):
            try:
                callback(count)
            except Exception as e:
                logger.warning("status observer failed: %s", e)

    def count(self) -> int:
        return len(self._sessions)

    def get(self, session_id: int) -> Session | None:
        return self._sessions.get(session_id)

    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def find_by_document(self, document: Document) -> Session | None:
        for session in self._sessions.values():
            if session.document is document:
                return session
        return None

    def stop(self, session: Session) -> bool:
        """Cancel the transport, then finalize without waiting for it."""
        session.cancel()
        return session.finalize()

    def stop_all(self) -> StopAllResult:
        stopped = 0
        for session in self.sessions():
            self.stop(session)
            stopped += 1
        if stopped:
            logger.info("stopped %d sessions", stopped)
        return StopAllResult(stopped=stopped)
