"""Incremental line assembly for streamed HTTP bodies."""

from __future__ import annotations

import codecs


class LineFramer:
    """Turn arbitrary byte chunks into complete text lines.

    Bytes are decoded incrementally, so a multi-byte character split across
    two reads is not corrupted. The unterminated tail is kept until the next
    ``feed`` or until ``flush`` at end of body.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> list[str]:
        self._buffer += self._decoder.decode(data)
        if "\n" not in self._buffer:
            return []
        *lines, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return whatever is left once the body is exhausted."""
        self._buffer += self._decoder.decode(b"", final=True)
        tail, self._buffer = self._buffer.rstrip("\r"), ""
        return [tail] if tail else []
