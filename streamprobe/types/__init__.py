"""
streamprobe OpenTelemetry attribute constants.
"""

from .attributes import Attrs, StreamSpanAttributes

__all__ = [
    "StreamSpanAttributes",
    "Attrs",
]
