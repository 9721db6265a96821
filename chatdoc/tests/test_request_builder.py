"""Tests for building the Gemini request body."""

from chatdoc.document.markers import ASSISTANT_MARKER, SYSTEM_MARKER, USER_MARKER
from chatdoc.models.request_builder import build_request


def test_no_markers_sends_whole_document_verbatim():
    lines = ["", "first line", "", "  second  ", ""]
    body = build_request(lines).to_wire()
    assert body == {"contents": [{"role": "user", "parts": [{"text": "\nfirst line\n\n  second  \n"}]}]}


def test_roles_map_and_keep_order():
    lines = [
        USER_MARKER,
        "",
        "hi",
        "",
        ASSISTANT_MARKER,
        "",
        "hello",
        "",
        USER_MARKER,
        "",
        "again",
        "",
    ]
    body = build_request(lines).to_wire()
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert [c["parts"][0]["text"] for c in body["contents"]] == ["hi", "hello", "again"]
    assert "system_instruction" not in body


def test_system_segments_join_into_instruction():
    lines = [SYSTEM_MARKER, "", "be terse", "", USER_MARKER, "", "q", "", SYSTEM_MARKER, "", "no emoji"]
    body = build_request(lines).to_wire()
    assert body["system_instruction"] == {"parts": [{"text": "be terse\n\nno emoji"}]}
    assert body["contents"] == [{"role": "user", "parts": [{"text": "q"}]}]


def test_trailing_empty_assistant_block_is_skipped():
    lines = [USER_MARKER, "", "hi", "", ASSISTANT_MARKER, ""]
    body = build_request(lines).to_wire()
    assert body["contents"] == [{"role": "user", "parts": [{"text": "hi"}]}]


def test_preamble_before_first_marker_is_not_sent():
    lines = ["scratch notes", "", USER_MARKER, "", "question"]
    body = build_request(lines).to_wire()
    assert body["contents"] == [{"role": "user", "parts": [{"text": "question"}]}]


def test_multiline_segment_text_joined_with_newlines():
    lines = [USER_MARKER, "", "line one", "", "line two", ""]
    body = build_request(lines).to_wire()
    assert body["contents"][0]["parts"][0]["text"] == "line one\n\nline two"


def test_to_json_is_serializable():
    request = build_request(["hello"])
    assert request.to_json() == '{"contents":[{"role":"user","parts":[{"text":"hello"}]}]}'
