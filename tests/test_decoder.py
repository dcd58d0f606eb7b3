"""
Tests for the incremental frame decoder.

Covers line framing across arbitrary chunk boundaries, UTF-8 continuity,
marker filtering, the dangling-fragment rule and malformed payloads.
"""

import json

import pytest

from conftest import aiter_chunks, sse_line
from streamprobe.streaming.decoder import (
    FrameDecoder,
    MalformedFrameError,
    aiter_frames,
    iter_frames,
    parse_frame,
)
from streamprobe.streaming.frames import FrameRecord


STREAM = (
    sse_line(chunk="Quantum ")
    + b": keep-alive comment\n"
    + sse_line(chunk="computers use qubits — café 😀")
    + b"\n"
    + sse_line(chunk="that can be in superposition.")
    + b"event: message\n"
    + sse_line(type="complete")
)


def split_at(data: bytes, offsets):
    """Split bytes at the given offsets."""
    pieces, last = [], 0
    for offset in sorted(offsets):
        pieces.append(data[last:offset])
        last = offset
    pieces.append(data[last:])
    return pieces


def decode_all(chunks):
    decoder = FrameDecoder()
    records = []
    for chunk in chunks:
        records.extend(decoder.decode(chunk))
    decoder.finish()
    return records


class TestFeed:
    """Tests for FrameDecoder.feed line framing."""

    def test_single_complete_line(self):
        """A delimiter-terminated line is emitted and the buffer is empty."""
        decoder = FrameDecoder()
        assert decoder.feed(b"hello\n") == ["hello"]
        assert decoder.pending == ""

    def test_partial_line_is_buffered(self):
        """Text without a delimiter stays pending until completed."""
        decoder = FrameDecoder()
        assert decoder.feed(b"data: {\"chu") == []
        assert decoder.pending == 'data: {"chu'
        assert decoder.feed(b'nk": "x"}\n') == ['data: {"chunk": "x"}']
        assert decoder.pending == ""

    def test_multiple_lines_in_one_chunk(self):
        """All complete lines in a chunk are emitted in order."""
        decoder = FrameDecoder()
        assert decoder.feed(b"a\nb\nc") == ["a", "b"]
        assert decoder.pending == "c"

    def test_empty_lines_are_emitted(self):
        """Blank separator lines are complete (empty) lines."""
        decoder = FrameDecoder()
        assert decoder.feed(b"a\n\nb\n") == ["a", "", "b"]

    def test_delimiter_alone_completes_pending_line(self):
        """A chunk holding only the delimiter completes the buffered line."""
        decoder = FrameDecoder()
        decoder.feed(b"abc")
        assert decoder.feed(b"\n") == ["abc"]

    def test_bytearray_accepted(self):
        """bytearray chunks are decoded like bytes."""
        decoder = FrameDecoder()
        assert decoder.feed(bytearray(b"x\n")) == ["x"]

    def test_non_bytes_rejected(self):
        """Text chunks are a programming error."""
        decoder = FrameDecoder()
        with pytest.raises(TypeError, match="bytes-like"):
            decoder.feed("data: {}\n")

    def test_lines_plus_pending_reconstruct_input(self):
        """Emitted lines joined with the delimiter plus the tail equal the decoded text."""
        decoder = FrameDecoder()
        text = "one\ntwo\nthree"
        emitted = []
        for piece in split_at(text.encode(), [2, 5, 9]):
            emitted.extend(decoder.feed(piece))
        assert "\n".join(emitted) + "\n" + decoder.pending == text


class TestMultiByte:
    """Tests for UTF-8 sequences split across chunks."""

    @pytest.mark.parametrize("char", ["é", "—", "😀"])
    def test_character_split_at_every_offset(self, char):
        """A multi-byte character split anywhere decodes to itself."""
        encoded = f"data: {json.dumps({'chunk': char}, ensure_ascii=False)}\n".encode()
        start = encoded.index(char.encode())
        for cut in range(start + 1, start + len(char.encode())):
            records = decode_all([encoded[:cut], encoded[cut:]])
            assert records == [FrameRecord(chunk=char)]
            assert "�" not in records[0].chunk

    def test_byte_by_byte_delivery(self):
        """Delivering one byte per chunk still decodes every character."""
        text = "naïve café ☕ 😀"
        encoded = f"data: {json.dumps({'chunk': text}, ensure_ascii=False)}\n".encode()
        records = decode_all([bytes([b]) for b in encoded])
        assert records == [FrameRecord(chunk=text)]

    def test_pending_holds_no_partial_character(self):
        """An incomplete sequence is held by the decoder, not the text buffer."""
        decoder = FrameDecoder()
        decoder.feed("abc".encode() + "é".encode()[:1])
        assert decoder.pending == "abc"


class TestPartitions:
    """No-loss/no-duplication across chunk partitions."""

    def test_every_two_way_split_matches_single_chunk(self):
        """Splitting the stream at any single offset yields the same records."""
        expected = decode_all([STREAM])
        assert len(expected) == 4
        for offset in range(1, len(STREAM)):
            assert decode_all(split_at(STREAM, [offset])) == expected

    def test_three_way_splits_match_single_chunk(self):
        """Splitting at pairs of offsets (sampled) yields the same records."""
        expected = decode_all([STREAM])
        for first in range(1, len(STREAM), 7):
            for second in range(first + 1, len(STREAM), 11):
                assert decode_all(split_at(STREAM, [first, second])) == expected

    def test_record_content(self):
        """Records carry the payloads in stream order."""
        records = decode_all([STREAM])
        assert [r.chunk for r in records[:3]] == [
            "Quantum ",
            "computers use qubits — café 😀",
            "that can be in superposition.",
        ]
        assert records[3].is_complete


class TestFinish:
    """Tests for end-of-stream handling."""

    def test_dangling_fragment_discarded(self):
        """A final line without delimiter is never emitted."""
        decoder = FrameDecoder()
        records = decoder.decode(sse_line(chunk="A") + b'data: {"chunk": "B"}')
        assert records == [FrameRecord(chunk="A")]
        assert decoder.finish() == 'data: {"chunk": "B"}'

    def test_clean_end_returns_empty(self):
        """A stream ending on a delimiter discards nothing."""
        decoder = FrameDecoder()
        decoder.decode(sse_line(chunk="A"))
        assert decoder.finish() == ""

    def test_finish_resets_for_reuse(self):
        """After finish the decoder starts from a clean state."""
        decoder = FrameDecoder()
        decoder.feed(b"partial" + "é".encode()[:1])
        decoder.finish()
        assert decoder.pending == ""
        assert decoder.decode(sse_line(chunk="next")) == [FrameRecord(chunk="next")]

    def test_iter_frames_drops_dangling_fragment(self):
        """The sync driver never yields the undelimited tail."""
        chunks = [sse_line(chunk="A"), b'data: {"chunk": "B"}']
        assert list(iter_frames(chunks)) == [FrameRecord(chunk="A")]


class TestParseFrame:
    """Tests for parse_frame."""

    def test_non_marker_lines_ignored(self):
        """Lines without the data marker are dropped silently."""
        assert parse_frame("") is None
        assert parse_frame(": ping") is None
        assert parse_frame("event: message") is None
        assert parse_frame("data:{}") is None

    def test_known_fields(self):
        """chunk, type and error are parsed."""
        record = parse_frame('data: {"chunk": "x", "type": "complete", "error": "boom"}')
        assert record.chunk == "x"
        assert record.is_complete
        assert record.error == "boom"

    def test_unknown_fields_kept(self):
        """Unknown keys are allowed and the record is unrecognized."""
        record = parse_frame('data: {"model": "gemini", "tokens": 3}')
        assert record is not None
        assert not record.is_recognized
        assert record.model_extra == {"model": "gemini", "tokens": 3}

    def test_trailing_carriage_return_tolerated(self):
        """CRLF-terminated lines still parse."""
        assert parse_frame('data: {"chunk": "x"}\r') == FrameRecord(chunk="x")

    def test_invalid_json_raises(self):
        """A non-JSON payload is a fatal decode error."""
        with pytest.raises(MalformedFrameError, match="Invalid JSON") as exc_info:
            parse_frame("data: {not json")
        assert exc_info.value.line == "data: {not json"

    @pytest.mark.parametrize("payload", ["[1, 2]", '"text"', "42", "null"])
    def test_non_object_payload_raises(self, payload):
        """JSON values other than objects are rejected."""
        with pytest.raises(MalformedFrameError, match="JSON object"):
            parse_frame(f"data: {payload}")

    def test_wrongly_typed_field_raises(self):
        """A known field with the wrong type is rejected."""
        with pytest.raises(MalformedFrameError, match="invalid fields"):
            parse_frame('data: {"chunk": 5}')


class TestAiterFrames:
    """Tests for the async driving loop."""

    @pytest.mark.asyncio
    async def test_yields_records_in_order(self):
        """Records from a split async source come out in order."""
        chunks = split_at(STREAM, [3, 40, 41, 90])
        records = [r async for r in aiter_frames(aiter_chunks(chunks))]
        assert records == decode_all([STREAM])

    @pytest.mark.asyncio
    async def test_chunk_effects_applied_before_next_read(self):
        """The next chunk is not requested until the consumer handled prior records."""
        log = []

        async def source():
            log.append("read-1")
            yield sse_line(chunk="a") + sse_line(chunk="b")
            log.append("read-2")
            yield sse_line(chunk="c")

        async for record in aiter_frames(source()):
            log.append(record.chunk)

        assert log == ["read-1", "a", "b", "read-2", "c"]

    @pytest.mark.asyncio
    async def test_malformed_frame_stops_iteration(self):
        """A malformed payload propagates after earlier records were yielded."""
        seen = []
        chunks = [sse_line(chunk="ok") + b"data: oops\n" + sse_line(chunk="never")]
        with pytest.raises(MalformedFrameError):
            async for record in aiter_frames(aiter_chunks(chunks)):
                seen.append(record.chunk)
        assert seen == ["ok"]
