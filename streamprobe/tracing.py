"""
Stream session tracing.

One OpenTelemetry span per stream session. The tracer comes from the global
provider, so spans are exported wherever the host application configured
OpenTelemetry (and are no-ops when it did not).
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from .streaming.metrics import time_to_first_chunk
from .streaming.session import SessionState, StreamSession
from .types import Attrs
from .version import __version__

SPAN_NAME = "streamprobe.stream"


def get_tracer(tracer_provider: Optional[trace.TracerProvider] = None) -> trace.Tracer:
    """Get the streamprobe tracer, from the global provider unless one is given."""
    return trace.get_tracer("streamprobe", __version__, tracer_provider=tracer_provider)


def session_attributes(session: StreamSession) -> Dict[str, Any]:
    """
    Build final span attributes for a session.

    Interval attributes are only present once at least two chunks arrived.
    """
    attrs: Dict[str, Any] = {
        Attrs.SESSION_STATE: session.state.value,
        Attrs.SESSION_SUPERSEDED: session.superseded,
        Attrs.CHUNK_COUNT: session.chunk_count,
        Attrs.RESPONSE_LENGTH: len(session.text),
    }

    first = time_to_first_chunk(session)
    if first is not None:
        attrs[Attrs.TIME_TO_FIRST_CHUNK] = first

    stats = session.interval_statistics()
    if stats is not None:
        attrs[Attrs.INTERVAL_AVERAGE] = stats.average
        attrs[Attrs.INTERVAL_MIN] = stats.minimum
        attrs[Attrs.INTERVAL_MAX] = stats.maximum

    if session.error:
        attrs[Attrs.SESSION_ERROR] = session.error

    return attrs


@contextmanager
def stream_span(
    session: StreamSession,
    *,
    server_address: Optional[str] = None,
    enabled: bool = True,
    tracer_provider: Optional[trace.TracerProvider] = None,
) -> Iterator[Optional[Span]]:
    """
    Trace one stream session.

    Final session attributes are recorded when the block exits, including
    when the run is cancelled.

    Args:
        session: Session being streamed
        server_address: Backend base URL
        enabled: When False nothing is recorded and None is yielded
        tracer_provider: Provider to use instead of the global one

    Yields:
        The active span, or None when tracing is disabled
    """
    if not enabled:
        yield None
        return

    attrs = {
        Attrs.STREAM_KIND: session.kind.value,
        Attrs.STREAM_ENDPOINT: session.kind.path,
        Attrs.SESSION_ID: session.session_id,
        Attrs.SESSION_GENERATION: session.generation,
    }
    if server_address:
        attrs[Attrs.SERVER_ADDRESS] = server_address

    with get_tracer(tracer_provider).start_as_current_span(
        SPAN_NAME, kind=SpanKind.CLIENT, attributes=attrs
    ) as span:
        try:
            yield span
        finally:
            span.set_attributes(session_attributes(session))
            if session.state is SessionState.ERRORED:
                span.set_status(Status(StatusCode.ERROR, session.error))
            elif session.is_terminal:
                span.set_status(Status(StatusCode.OK))
