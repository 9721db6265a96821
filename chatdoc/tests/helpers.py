"""Shared helpers for stream tests."""

import json


def sse(*payloads: str) -> list[str]:
    """Format payloads the way the API streams them: data line then blank line."""
    lines: list[str] = []
    for p in payloads:
        lines.extend([f"data: {p}", ""])
    return lines


def text_chunk(*texts: str) -> str:
    parts = [{"text": t} for t in texts]
    return json.dumps({"candidates": [{"content": {"parts": parts}}]})


async def aiter_lines(lines):
    for line in lines:
        yield line
