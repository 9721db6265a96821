"""Pytest fixtures and config."""

import pytest

from chatdoc.config.loader import Config
from chatdoc.core.registry import SessionRegistry
from chatdoc.document.model import Document

_ENV_VARS = (
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "CHATDOC_FLUSH_INTERVAL_MS",
    "CHATDOC_AUTO_SCROLL",
    "CHATDOC_SHOW_SPINNER",
    "CHATDOC_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Tests never see a real API key."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def config(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    cfg = Config.load()
    cfg.session.flush_interval_ms = 10
    return cfg


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def document():
    return Document(["# === USER ===", "", "Hello", "", "# === ASSISTANT ===", ""])
