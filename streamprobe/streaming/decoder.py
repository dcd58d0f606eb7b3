"""
Incremental frame decoder.

Turns a byte stream delivered in arbitrary chunks into complete lines and
then into FrameRecords. Chunk boundaries may fall anywhere, including inside
a multi-byte UTF-8 sequence or in the middle of a line.

Example:
    >>> decoder = FrameDecoder()
    >>> decoder.decode(b'data: {"chunk": "Hel')
    []
    >>> decoder.decode(b'lo"}\\n')
    [FrameRecord(chunk='Hello', type=None, error=None)]
"""

import codecs
import json
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError

from .._http.errors import StreamProbeError
from .frames import DATA_MARKER, LINE_DELIMITER, FrameRecord

logger = logging.getLogger(__name__)

ByteChunk = Union[bytes, bytearray]


class MalformedFrameError(StreamProbeError):
    """
    A ``data:`` line whose payload is not a JSON object of the expected shape.

    Fatal for the stream session: it means client and backend disagree on
    the wire format.
    """

    def __init__(self, message: str, *, line: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            hint="Check that the backend emits one JSON object per 'data: ' line.",
            original_error=original_error,
            details={"line": line},
        )
        self.line = line


def parse_frame(line: str) -> Optional[FrameRecord]:
    """
    Parse one complete line.

    Args:
        line: A delimiter-terminated line with the delimiter removed

    Returns:
        FrameRecord for ``data:`` lines, None for any other line

    Raises:
        MalformedFrameError: If the payload is not a valid frame object
    """
    if not line.startswith(DATA_MARKER):
        return None

    payload = line[len(DATA_MARKER):]
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise MalformedFrameError(
            f"Invalid JSON in frame payload: {e}", line=line, original_error=e
        ) from e

    if not isinstance(data, dict):
        raise MalformedFrameError(
            f"Frame payload must be a JSON object, got {type(data).__name__}",
            line=line,
        )

    try:
        return FrameRecord.model_validate(data)
    except ValidationError as e:
        raise MalformedFrameError(
            f"Frame payload has invalid fields: {e.error_count()} error(s)",
            line=line,
            original_error=e,
        ) from e


class FrameDecoder:
    """
    Stateful line framer for one stream.

    Holds an incremental UTF-8 decoder and the text tail that has not yet
    been terminated by a line delimiter. Lines are emitted in order; the
    tail left over at end of stream is discarded, never parsed.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Decoded text not yet terminated by a line delimiter."""
        return self._buffer

    def feed(self, chunk: ByteChunk) -> List[str]:
        """
        Feed one byte chunk.

        Args:
            chunk: Bytes as received from the transport

        Returns:
            Complete lines (delimiter removed) in arrival order

        Raises:
            TypeError: If chunk is not bytes-like
        """
        if not isinstance(chunk, (bytes, bytearray)):
            raise TypeError(f"chunk must be bytes-like, got {type(chunk).__name__}")

        self._buffer += self._decoder.decode(bytes(chunk))
        lines = self._buffer.split(LINE_DELIMITER)
        self._buffer = lines.pop()
        return lines

    def decode(self, chunk: ByteChunk) -> List[FrameRecord]:
        """Feed one byte chunk and return the FrameRecords it completes."""
        records = []
        for line in self.feed(chunk):
            record = parse_frame(line)
            if record is not None:
                records.append(record)
        return records

    def finish(self) -> str:
        """
        Signal end of stream and reset the decoder.

        Any undelimited trailing text is dropped: a line without its
        terminating delimiter is not a frame.

        Returns:
            The discarded fragment (empty when the stream ended cleanly)
        """
        dangling = self._buffer + self._decoder.decode(b"", final=True)
        self.reset()
        if dangling:
            logger.debug(f"Discarding {len(dangling)} chars of undelimited trailing data")
        return dangling

    def reset(self) -> None:
        """Drop all buffered state."""
        self._decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        self._buffer = ""


async def aiter_frames(
    byte_source: AsyncIterable[ByteChunk],
    decoder: Optional[FrameDecoder] = None,
) -> AsyncIterator[FrameRecord]:
    """
    Decode an async byte source into FrameRecords.

    Chunks are processed strictly one at a time: every record produced by a
    chunk is yielded (and handled by the consumer) before the next chunk is
    awaited.
    """
    decoder = decoder or FrameDecoder()
    try:
        async for chunk in byte_source:
            for line in decoder.feed(chunk):
                record = parse_frame(line)
                if record is not None:
                    yield record
    finally:
        decoder.finish()


def iter_frames(
    byte_source: Iterable[ByteChunk],
    decoder: Optional[FrameDecoder] = None,
) -> Iterator[FrameRecord]:
    """Decode a blocking byte source into FrameRecords."""
    decoder = decoder or FrameDecoder()
    try:
        for chunk in byte_source:
            for line in decoder.feed(chunk):
                record = parse_frame(line)
                if record is not None:
                    yield record
    finally:
        decoder.finish()
