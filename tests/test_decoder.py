"""Tests for the chunk decoder."""

from __future__ import annotations

import pytest

from streamchat.stream.decoder import DONE, ChunkDecoder, iter_frames


def _content_frame(text: str) -> bytes:
    return ('data: {"choices":[{"delta":{"content":"%s"}}]}\n' % text).encode()


async def _chunks(items: list[bytes]):
    for item in items:
        yield item


class TestChunkDecoder:
    def test_single_frame_per_chunk(self):
        dec = ChunkDecoder()
        frames = dec.feed(_content_frame("Hel"))
        assert frames == ['{"choices":[{"delta":{"content":"Hel"}}]}']

    def test_frame_split_across_chunks(self):
        raw = _content_frame("Hello")
        dec = ChunkDecoder()
        assert dec.feed(raw[:10]) == []
        assert dec.feed(raw[10:25]) == []
        frames = dec.feed(raw[25:])
        assert len(frames) == 1
        assert "Hello" in frames[0]

    def test_multiple_frames_in_one_chunk(self):
        dec = ChunkDecoder()
        frames = dec.feed(_content_frame("a") + _content_frame("b"))
        assert len(frames) == 2

    def test_multibyte_character_split(self):
        raw = _content_frame("héllo ✓")
        idx = raw.index("✓".encode()) + 1  # split inside the 3-byte sequence
        dec = ChunkDecoder()
        frames = dec.feed(raw[:idx]) + dec.feed(raw[idx:])
        assert len(frames) == 1
        assert "héllo ✓" in frames[0]

    def test_done_marker(self):
        dec = ChunkDecoder()
        frames = dec.feed(_content_frame("x") + b"data: [DONE]\n")
        assert frames[-1] is DONE
        assert dec.done

    def test_bytes_after_done_ignored(self):
        dec = ChunkDecoder()
        frames = dec.feed(b"data: [DONE]\n" + _content_frame("late"))
        assert frames == [DONE]
        assert dec.feed(_content_frame("later")) == []
        assert dec.flush() == []

    def test_non_data_lines_dropped(self):
        dec = ChunkDecoder()
        frames = dec.feed(b": keep-alive\n\nevent: ping\n" + _content_frame("x"))
        assert len(frames) == 1

    def test_crlf_line_endings(self):
        dec = ChunkDecoder()
        frames = dec.feed(b'data: {"a": 1}\r\n\r\ndata: [DONE]\r\n')
        assert frames == ['{"a": 1}', DONE]

    def test_flush_trailing_line(self):
        dec = ChunkDecoder()
        assert dec.feed(b'data: {"a": 1}') == []
        assert dec.flush() == ['{"a": 1}']

    def test_replay_is_identical(self):
        chunks = [_content_frame("He")[:7], _content_frame("He")[7:], b"data: [DONE]\n"]

        def run() -> list:
            dec = ChunkDecoder()
            out = []
            for c in chunks:
                out.extend(dec.feed(c))
            return out

        assert run() == run()


class TestIterFrames:
    @pytest.mark.asyncio
    async def test_stops_at_done(self):
        chunks = [_content_frame("a"), b"data: [DONE]\n", _content_frame("b")]
        frames = [f async for f in iter_frames(_chunks(chunks))]
        assert len(frames) == 2
        assert frames[-1] is DONE

    @pytest.mark.asyncio
    async def test_exhaustion_without_done(self):
        chunks = [_content_frame("a"), b'data: {"b": 2}']
        frames = [f async for f in iter_frames(_chunks(chunks))]
        assert frames[-1] == '{"b": 2}'
        assert DONE not in frames
