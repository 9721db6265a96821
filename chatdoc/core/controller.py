"""Commands exposed to the host editor: start, stop-current, stop-all, debug-request."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from chatdoc.config.loader import ApiSettings, Config
from chatdoc.core import events
from chatdoc.core.errors import ConfigurationError
from chatdoc.core.events import Notice, Notifier
from chatdoc.core.registry import SessionRegistry, StopAllResult
from chatdoc.core.session import Session
from chatdoc.core.spinner import Spinner
from chatdoc.document.markers import prepare_for_completion
from chatdoc.document.model import Document
from chatdoc.models.gemini import GeminiClient
from chatdoc.models.request_builder import build_request

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ApiSettings], GeminiClient]


def default_client_factory(api: ApiSettings) -> GeminiClient:
    return GeminiClient(
        api_key=api.api_key,
        model=api.model,
        base_url=api.base_url,
        connect_timeout=api.connect_timeout,
    )


def new_chat_path(directory: str | Path, now: datetime | None = None) -> Path:
    """chat-YYYY-MM-DD-HH-MM-SS.md in directory."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d-%H-%M-%S")
    return Path(directory) / f"chat-{stamp}.md"


class ChatController:
    """Issues completions against documents. Must be used from a running event loop."""

    def __init__(
        self,
        config: Config,
        registry: SessionRegistry | None = None,
        *,
        notify: Notifier | None = None,
        client_factory: ClientFactory | None = None,
        spinner_render: Optional[Callable[[Optional[str]], None]] = None,
    ) -> None:
        self.config = config
        self.registry = registry or SessionRegistry()
        self._notify = notify or self._log_notice
        self._client_factory = client_factory or default_client_factory
        self._spinner_render = spinner_render

    @staticmethod
    def _log_notice(notice: Notice) -> None:
        log = logger.error if notice.level is events.NoticeLevel.ERROR else logger.info
        log(notice.text)

    def start_completion(self, document: Document) -> Session | None:
        """Begin a streaming completion for document and return without waiting."""
        if not document.modifiable:
            self._notify(events.warning("No file open to complete."))
            return None
        running = self.registry.find_by_document(document)
        if running is not None:
            self._notify(
                events.warning("A completion is already running in this buffer", running.id)
            )
            return None
        try:
            self.config.require_api_key()
        except ConfigurationError as e:
            self._notify(events.error(f"Error: {e}"))
            return None

        prepare_for_completion(document)
        request = build_request(document.get_lines())

        settings = self.config.session
        spinner = None
        if settings.show_spinner and self._spinner_render is not None:
            spinner = Spinner(self._spinner_render, settings.spinner_interval_ms / 1000)
        session = self.registry.create(
            document,
            flush_interval=settings.flush_interval_ms / 1000,
            auto_scroll=settings.auto_scroll,
            notify=self._notify,
            spinner=spinner,
        )
        try:
            client = self._client_factory(self.config.api)
            session.start(client.stream_lines(request))
            if spinner is not None:
                spinner.start()
        except Exception as e:
            logger.exception("failed to start request")
            self._notify(events.error(f"Failed to start Gemini request: {e}", session.id))
            session.finalize()
            return None
        logger.info(
            "completion started",
            extra={"session_id": session.id, "messages": len(request.contents)},
        )
        return session

    def stop_current(self, document: Document) -> bool:
        session = self.registry.find_by_document(document)
        if session is None:
            self._notify(events.info("No active completion in this buffer"))
            return False
        self._notify(events.info("🤖 Gemini completion stopped", session.id))
        self.registry.stop(session)
        return True

    def stop_all(self) -> StopAllResult:
        result = self.registry.stop_all()
        if result.nothing_to_stop:
            self._notify(events.info("No active completions"))
        else:
            self._notify(events.info(f"🤖 Stopped {result.stopped} Gemini completions"))
        return result

    def debug_request(self, document: Document) -> str:
        """Pretty JSON of the request body the document would produce. Does not
        modify the document."""
        request = build_request(document.get_lines())
        return json.dumps(request.to_wire(), indent=2, sort_keys=True, ensure_ascii=False)
