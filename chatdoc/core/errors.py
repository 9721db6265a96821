"""Error taxonomy. Every error is terminal to one session, never to the process."""

from __future__ import annotations


class ChatdocError(Exception):
    """Base class for errors surfaced to the user as notices."""


class ConfigurationError(ChatdocError):
    """Missing or invalid configuration (e.g. no API key). Raised before any network call."""


class TransportError(ChatdocError):
    """HTTP failure or connection error while streaming."""

    def __init__(self, code: int | None, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(message or f"request failed with code {code}")


class ProtocolError(ChatdocError):
    """The server returned an error payload inside the stream."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
