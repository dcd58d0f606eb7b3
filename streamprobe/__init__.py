"""
streamprobe - incremental decoding and timing of streamed generation responses.

Consumes the ``data:``-framed event stream a generation backend sends over a
long-lived HTTP response, accumulates the generated text and measures the
intervals between chunk arrivals.

Basic Usage:
    >>> from streamprobe import StreamProbe, StreamKind
    >>> async with StreamProbe() as probe:
    ...     session = await probe.stream(StreamKind.AI, "Tell me a joke")
    ...     stats = session.interval_statistics()
    ...     if stats:
    ...         print(stats.average, stats.minimum, stats.maximum)

Singleton Pattern:
    >>> from streamprobe import get_client
    >>> probe = get_client()  # Reads from STREAMPROBE_* env vars
"""

from ._http.errors import (
    ConnectionError,
    NotFoundError,
    RateLimitError,
    ServerError,
    StreamProbeError,
)
from .client import StreamProbe, get_client, reset_client
from .config import StreamProbeConfig
from .health import BackendStatus, check_backend
from .streaming import (
    EventDispatcher,
    FrameDecoder,
    FrameRecord,
    IntervalStatistics,
    MalformedFrameError,
    SessionState,
    StreamKind,
    StreamSession,
    aiter_frames,
    compute_interval_statistics,
    iter_frames,
    parse_frame,
)
from .streaming.runner import StreamRunner
from .version import __version__, __version_info__

__all__ = [
    # Client
    "StreamProbe",
    "get_client",
    "reset_client",
    "StreamProbeConfig",
    # Health
    "BackendStatus",
    "check_backend",
    # Streaming
    "EventDispatcher",
    "FrameDecoder",
    "FrameRecord",
    "IntervalStatistics",
    "MalformedFrameError",
    "SessionState",
    "StreamKind",
    "StreamRunner",
    "StreamSession",
    "aiter_frames",
    "compute_interval_statistics",
    "iter_frames",
    "parse_frame",
    # Errors
    "StreamProbeError",
    "ConnectionError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    # Version
    "__version__",
    "__version_info__",
]
