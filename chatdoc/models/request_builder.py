"""Build the Gemini request body from the role-tagged segments of a document."""

from __future__ import annotations

from typing import Sequence

from chatdoc.document.markers import Role, parse_segments
from chatdoc.models.payload import Content, GenerateRequest, Part, SystemInstruction

# Gemini calls the assistant "model"
_WIRE_ROLES = {Role.USER: "user", Role.ASSISTANT: "model"}


def build_request(lines: Sequence[str]) -> GenerateRequest:
    """USER/ASSISTANT segments become ordered contents; all SYSTEM segments are
    joined into one system instruction. Blank segments are skipped. A document
    without any usable segment is sent verbatim as a single user message."""
    contents: list[Content] = []
    system_parts: list[str] = []
    for segment in parse_segments(lines):
        if segment.implicit:
            contents.append(_content("user", segment.text))
            continue
        if segment.role is None:
            continue
        text = segment.text.strip("\n")
        if not text.strip():
            continue
        if segment.role is Role.SYSTEM:
            system_parts.append(text)
        else:
            contents.append(_content(_WIRE_ROLES[segment.role], text))

    if not contents and not system_parts:
        contents = [_content("user", "\n".join(lines))]

    request = GenerateRequest(contents=contents)
    if system_parts:
        request.system_instruction = SystemInstruction(parts=[Part(text="\n\n".join(system_parts))])
    return request


def _content(role: str, text: str) -> Content:
    return Content(role=role, parts=[Part(text=text)])
