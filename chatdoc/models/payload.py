"""Wire types for the Gemini streamGenerateContent API. All payloads are Pydantic models.

Request::

    {"contents": [{"role": "user" | "model", "parts": [{"text": "..."}]}, ...],
     "system_instruction": {"parts": [{"text": "..."}]}}

Each SSE ``data:`` line of the response is either a chunk with candidates or an
error object. Anything else is a malformed payload.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class Part(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Optional[Literal["user", "model"]] = None
    parts: list[Part] = Field(default_factory=list)


class SystemInstruction(BaseModel):
    parts: list[Part] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    """Body of the streaming request."""

    contents: list[Content] = Field(default_factory=list)
    system_instruction: Optional[SystemInstruction] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: Optional[Content] = None


class StreamChunk(BaseModel):
    """A success payload: text lives in candidates[0].content.parts[*].text."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["chunk"] = "chunk"
    candidates: list[Candidate] = Field(default_factory=list)

    def texts(self) -> list[str]:
        if not self.candidates or self.candidates[0].content is None:
            return []
        return [p.text for p in self.candidates[0].content.parts if p.text is not None]


class ErrorDetail(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: Optional[str] = None


class ErrorPayload(BaseModel):
    """The server reported an error inside the stream."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["error"] = "error"
    error: ErrorDetail

    def message(self) -> str:
        if self.error.message:
            return self.error.message
        return json.dumps(self.error.model_dump(exclude_none=True), ensure_ascii=False)


ResponsePayload = Union[StreamChunk, ErrorPayload]


def parse_payload(raw: str) -> ResponsePayload | None:
    """Decode one JSON payload. Returns None for undecodable or unexpected shapes."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    # Some transports wrap the whole stream in a JSON array
    if isinstance(data, list):
        data = data[0] if len(data) == 1 else None
    if not isinstance(data, dict):
        return None
    try:
        err = data.get("error")
        if isinstance(err, str):
            return ErrorPayload(error=ErrorDetail(message=err))
        if err is not None:
            return ErrorPayload.model_validate(data)
        return StreamChunk.model_validate(data)
    except ValidationError:
        return None
