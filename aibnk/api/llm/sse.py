"""Incremental decoder for OpenAI-style chat-completion event streams."""
from __future__ import annotations

import json
import logging
from typing import Iterable, Iterator, List

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"


class SSEDecoder:
    """Turn arbitrary text chunks into content deltas.

    Lines are split on ``\\n`` with a trailing ``\\r`` removed. Blank lines,
    ``:`` comments and anything that is not a ``data:`` field are ignored.
    A ``data:`` line whose JSON does not parse yet is kept and retried with the
    next chunk, since proxies may split a single event across writes.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self.done = False

    def feed(self, chunk: str) -> List[str]:
        if self.done:
            return []
        self._buffer += chunk
        deltas: List[str] = []
        while not self.done:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            rest = self._buffer[newline + 1:]
            if line.endswith("\r"):
                line = line[:-1]
            status, content = self._parse_line(line)
            if status == "partial":
                # Put the line back and wait for more input
                break
            self._buffer = rest
            if content:
                deltas.append(content)
        return deltas

    def flush(self) -> List[str]:
        """Drain whatever is left once the upstream stream has ended."""
        if self.done or not self._buffer:
            self._buffer = ""
            return []
        deltas: List[str] = []
        for raw in self._buffer.split("\n"):
            if self.done:
                break
            line = raw[:-1] if raw.endswith("\r") else raw
            status, content = self._parse_line(line)
            if status == "partial":
                logger.debug("Dropping unparsable SSE leftover: %s", line[:200])
                continue
            if content:
                deltas.append(content)
        self._buffer = ""
        return deltas

    def _parse_line(self, line: str):
        if not line or line.startswith(":"):
            return "skip", None
        if not line.startswith("data: "):
            return "skip", None
        payload = line[6:].strip()
        if payload == DONE_MARKER:
            self.done = True
            return "done", None
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError:
            return "partial", None
        try:
            content = parsed["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return "skip", None
        return "ok", content if isinstance(content, str) else None


def iter_sse_deltas(chunks: Iterable[str]) -> Iterator[str]:
    decoder = SSEDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
        if decoder.done:
            return
    yield from decoder.flush()


def encode_delta(content: str) -> str:
    return f"data: {json.dumps({'choices': [{'delta': {'content': content}}]})}\n\n"


def encode_done() -> str:
    return f"data: {DONE_MARKER}\n\n"
