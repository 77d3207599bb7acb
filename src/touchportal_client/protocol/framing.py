"""Line framing for the Touch Portal socket.

The host writes one JSON object per line. TCP delivers that stream in
arbitrary chunks, so a line may arrive in pieces and a single chunk may
hold several lines. ``LineFramer`` buffers the unterminated tail between
chunks and accepts all three line endings (CRLF, CR, LF), including a
CRLF pair split across two chunks.

Decoding is per line: a malformed line raises ``MessageDecodeError`` for
that line only and never disturbs its neighbours.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

from ..errors import MessageDecodeError

_LINE_BOUNDARY = re.compile(r"\r\n|\r|\n")


def parse_record(line: str) -> dict[str, Any]:
    """Decode one framed line into a message record.

    Raises:
        MessageDecodeError: If the line is not JSON, not an object, or has
            no string ``type`` field.
    """
    try:
        record = json.loads(line)
    except json.JSONDecodeError as e:
        raise MessageDecodeError(f"Invalid JSON: {e}", line) from e

    if not isinstance(record, dict):
        raise MessageDecodeError(
            f"Message must be a JSON object, got {type(record).__name__}", line
        )
    if not isinstance(record.get("type"), str):
        raise MessageDecodeError("Message has no string 'type' field", line)
    return record


class LineFramer:
    """Incremental splitter for newline-delimited text.

    Usage:
        framer = LineFramer()
        framer.feed('{"type":"info"}\\n{"type":"bro')   # -> ['{"type":"info"}']
        framer.feed('adcast"}\\n')                        # -> ['{"type":"broadcast"}']
    """

    def __init__(self) -> None:
        self._buffer = ""
        # Last chunk ended on CR; a leading LF in the next chunk completes it.
        self._pending_cr = False

    @property
    def pending(self) -> str:
        """Text received after the last boundary, not yet a complete line."""
        return self._buffer

    def reset(self) -> None:
        """Drop any buffered partial line."""
        self._buffer = ""
        self._pending_cr = False

    def feed(self, chunk: str) -> list[str]:
        """Consume a chunk and return the complete, non-empty lines it finishes."""
        if not chunk:
            return []

        if self._pending_cr:
            self._pending_cr = False
            if chunk[0] == "\n":
                chunk = chunk[1:]

        data = self._buffer + chunk
        parts = _LINE_BOUNDARY.split(data)
        self._buffer = parts.pop()
        self._pending_cr = data.endswith("\r")
        return [part for part in parts if part]

    def records(self, chunk: str) -> Iterator[tuple[str, dict[str, Any] | MessageDecodeError]]:
        """Lazily decode the lines completed by ``chunk``.

        Yields ``(line, record)`` pairs, or ``(line, error)`` for lines that
        fail to decode, in extraction order. The chunk is framed eagerly so
        the buffer is consistent even if the iterator is abandoned early.
        """
        return _decode_lines(self.feed(chunk))


def _decode_lines(
    lines: list[str],
) -> Iterator[tuple[str, dict[str, Any] | MessageDecodeError]]:
    for line in lines:
        try:
            yield line, parse_record(line)
        except MessageDecodeError as e:
            yield line, e
