"""Reassemble ``data:`` frames from a chunked response body."""

from __future__ import annotations

import codecs
import logging
from typing import AsyncGenerator, AsyncIterable, Union

_logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class _DoneMarker:
    """Terminal marker yielded in place of the ``[DONE]`` payload."""

    _instance: _DoneMarker | None = None

    def __new__(cls) -> _DoneMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DONE"


DONE = _DoneMarker()

Frame = Union[str, _DoneMarker]


class ChunkDecoder:
    """Incremental frame decoder for one response body.

    Bytes are decoded with an incremental UTF-8 decoder so a multi-byte
    character split across chunks is reassembled.  Complete lines that start
    with ``data: `` yield their payload; other lines (comments, keep-alives,
    blank separators) are dropped.  Once ``[DONE]`` is seen the decoder is
    finished and ignores anything further.

    Not restartable: use a new instance per response.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[Frame]:
        """Feed raw bytes.  Returns the frames completed by this chunk."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return self._frames(lines)

    def flush(self) -> list[Frame]:
        """Process a trailing line left without a newline at end of body."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        tail, self._buffer = self._buffer, ""
        return self._frames([tail]) if tail else []

    def _frames(self, lines: list[str]) -> list[Frame]:
        frames: list[Frame] = []
        for line in lines:
            line = line.rstrip("\r")
            if not line.startswith(DATA_PREFIX):
                if line.strip():
                    _logger.debug("Skipping non-data line: %r", line[:80])
                continue
            payload = line[len(DATA_PREFIX):].strip()
            if payload == DONE_SENTINEL:
                frames.append(DONE)
                self.done = True
                break
            frames.append(payload)
        return frames


async def iter_frames(
    chunks: AsyncIterable[bytes],
) -> AsyncGenerator[Frame, None]:
    """Lazily yield frames from an async byte-chunk iterator.

    Terminates after ``DONE`` or when *chunks* is exhausted.
    """
    decoder = ChunkDecoder()
    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame
        if decoder.done:
            return
    for frame in decoder.flush():
        yield frame
