"""Tests for SessionRegistry: ids, counts, observers, stop-all."""

import asyncio

import pytest

from chatdoc.core.registry import SessionRegistry, StopAllResult
from chatdoc.core.status import StatusLine, format_status
from chatdoc.document.markers import USER_MARKER
from chatdoc.document.model import Document
from chatdoc.tests.helpers import text_chunk


def _doc():
    return Document([USER_MARKER, "", "q", "", "# === ASSISTANT ===", ""])


async def _hanging(text):
    yield f"data: {text_chunk(text)}"
    await asyncio.Event().wait()


def test_ids_are_monotonic():
    registry = SessionRegistry()
    ids = [registry.create(_doc()).id for _ in range(3)]
    assert ids == [1, 2, 3]
    registry.get(2).finalize()
    assert registry.create(_doc()).id == 4


def test_count_and_observers():
    registry = SessionRegistry()
    seen = []
    registry.add_observer(seen.append)
    sessions = [registry.create(_doc()) for _ in range(3)]
    sessions[0].finalize()
    assert registry.count() == 2
    assert seen == [1, 2, 3, 2]


def test_observers_called_in_registration_order():
    registry = SessionRegistry()
    calls = []
    registry.add_observer(lambda n: calls.append(("a", n)))
    registry.add_observer(lambda n: calls.append(("b", n)))
    registry.create(_doc())
    assert calls == [("a", 1), ("b", 1)]


def test_failing_observer_does_not_block_deregistration():
    registry = SessionRegistry()
    seen = []

    def broken(count):
        raise RuntimeError("widget gone")

    registry.add_observer(broken)
    registry.add_observer(seen.append)
    session = registry.create(_doc())
    assert session.finalize() is True
    assert registry.count() == 0
    assert seen == [1, 0]


def test_deregister_unknown_session_is_noop():
    registry = SessionRegistry()
    seen = []
    session = registry.create(_doc())
    registry.add_observer(seen.append)
    assert registry.deregister(session) is True
    assert registry.deregister(session) is False
    assert seen == [0]


def test_find_by_document():
    registry = SessionRegistry()
    doc_a, doc_b = _doc(), _doc()
    session = registry.create(doc_a)
    assert registry.find_by_document(doc_a) is session
    assert registry.find_by_document(doc_b) is None


@pytest.mark.asyncio
async def test_stop_all_finalizes_every_session():
    registry = SessionRegistry()
    docs = [_doc() for _ in range(3)]
    sessions = [registry.create(d, flush_interval=0.01) for d in docs]
    tasks = [s.start(_hanging(f"reply {s.id}")) for s in sessions]
    await asyncio.sleep(0.001)

    result = registry.stop_all()
    assert result == StopAllResult(stopped=3)
    assert not result.nothing_to_stop
    assert registry.count() == 0
    for session, doc in zip(sessions, docs):
        assert f"reply {session.id}" in doc.get_lines()
        assert doc.last_nonblank() == USER_MARKER
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert all(isinstance(r, asyncio.CancelledError) for r in results)

    again = registry.stop_all()
    assert again.stopped == 0
    assert again.nothing_to_stop


def test_format_status():
    assert format_status(0) == ""
    assert format_status(1) == "🤖 1 chat"
    assert format_status(3) == "🤖 3 chats"


def test_status_line_tracks_registry():
    registry = SessionRegistry()
    texts = []
    status = StatusLine(on_change=texts.append)
    registry.add_observer(status)
    a = registry.create(_doc())
    registry.create(_doc())
    a.finalize()
    assert status.count == 1
    assert texts == ["🤖 1 chat", "🤖 2 chats", "🤖 1 chat"]
