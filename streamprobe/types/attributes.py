"""
OpenTelemetry attribute constants for stream spans.

Use these constants instead of magic strings to avoid typos. Latency values
are in milliseconds.
"""


class StreamSpanAttributes:
    """Attribute keys set on the ``streamprobe.stream`` span."""

    # ========== Request ==========
    STREAM_KIND = "streamprobe.stream.kind"  # "ai" or "simulated"
    STREAM_ENDPOINT = "streamprobe.stream.endpoint"  # e.g. "/stream-ai"
    SERVER_ADDRESS = "server.address"

    # ========== Session ==========
    SESSION_ID = "streamprobe.session.id"
    SESSION_GENERATION = "streamprobe.session.generation"
    SESSION_STATE = "streamprobe.session.state"
    SESSION_SUPERSEDED = "streamprobe.session.superseded"
    SESSION_ERROR = "streamprobe.session.error"

    # ========== Output ==========
    CHUNK_COUNT = "streamprobe.response.chunk_count"
    RESPONSE_LENGTH = "streamprobe.response.length"

    # ========== Timing ==========
    TIME_TO_FIRST_CHUNK = "streamprobe.timing.time_to_first_chunk"
    INTERVAL_AVERAGE = "streamprobe.timing.interval.average"
    INTERVAL_MIN = "streamprobe.timing.interval.min"
    INTERVAL_MAX = "streamprobe.timing.interval.max"


# Convenience alias
Attrs = StreamSpanAttributes
