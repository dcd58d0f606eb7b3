"""Pytest configuration and fixtures for streamprobe tests."""

import json

import httpx
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from streamprobe.config import StreamProbeConfig


class FakeClock:
    """Monotonic clock stand-in advanced manually (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


def sse_line(**payload) -> bytes:
    """Encode one ``data:`` line the way the backend does."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n".encode("utf-8")


async def aiter_chunks(chunks):
    for chunk in chunks:
        yield chunk


def streaming_transport(chunks_by_path, status_code=200, requests=None):
    """
    Build an httpx.MockTransport serving byte chunks per path.

    ``chunks_by_path`` maps a request path to a list of byte chunks or to a
    callable returning an async iterable of chunks.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        source = chunks_by_path.get(request.url.path)
        if source is None:
            return httpx.Response(404, json={"error": "not found"})
        body = source() if callable(source) else aiter_chunks(source)
        return httpx.Response(
            status_code,
            headers={"content-type": "text/event-stream"},
            content=body,
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def clock():
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def test_config():
    """Create a test configuration."""
    return StreamProbeConfig(
        base_url="http://test.local:5000",
        timeout=5,
        tracing_enabled=False,
    )


@pytest.fixture
def span_exporter():
    """In-memory span exporter."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter):
    """Tracer provider exporting to the in-memory exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture(autouse=True)
def reset_client_state():
    """Reset the global client before and after each test."""
    import streamprobe.client

    streamprobe.client._global_client = None
    yield
    streamprobe.client._global_client = None
