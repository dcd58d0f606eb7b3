"""
streamprobe Streaming Module.

Incremental decoding of ``data:``-framed event streams, session state and
chunk arrival timing.

Example:
    >>> from streamprobe.streaming import EventDispatcher, FrameDecoder, StreamKind
    >>> dispatcher = EventDispatcher()
    >>> decoder = FrameDecoder()
    >>> session = dispatcher.begin_session(StreamKind.SIMULATED)
    >>> for chunk in byte_chunks:
    ...     for record in decoder.decode(chunk):
    ...         dispatcher.dispatch(session, record)
    >>> stats = session.interval_statistics()
"""

from .decoder import FrameDecoder, MalformedFrameError, aiter_frames, iter_frames, parse_frame
from .dispatcher import EventDispatcher
from .frames import COMPLETE_TYPE, DATA_MARKER, FrameRecord
from .metrics import IntervalStatistics, compute_interval_statistics, time_to_first_chunk
from .session import SessionState, StreamKind, StreamSession

__all__ = [
    "FrameDecoder",
    "MalformedFrameError",
    "aiter_frames",
    "iter_frames",
    "parse_frame",
    "EventDispatcher",
    "FrameRecord",
    "DATA_MARKER",
    "COMPLETE_TYPE",
    "IntervalStatistics",
    "compute_interval_statistics",
    "time_to_first_chunk",
    "SessionState",
    "StreamKind",
    "StreamSession",
]
