"""
Main streamprobe client.

Bundles configuration, the HTTP client, the event dispatcher and the stream
runner behind one object.
"""

import asyncio
from typing import Optional

import httpx

from ._http.client import AsyncHTTPClient
from .config import DEFAULT_BASE_URL, DEFAULT_PROMPT, StreamProbeConfig
from .health import BackendStatus, check_backend
from .streaming.dispatcher import EventDispatcher
from .streaming.runner import StreamRunner
from .streaming.session import StreamKind, StreamSession

# Global singleton instance
_global_client: Optional["StreamProbe"] = None


class StreamProbe:
    """
    Client for streaming generation endpoints.

    Example:
        >>> from streamprobe import StreamProbe, StreamKind
        >>> async with StreamProbe(base_url="http://localhost:5000") as probe:
        ...     status = await probe.check_backend()
        ...     session = await probe.stream(StreamKind.SIMULATED)
        ...     print(session.text, session.interval_statistics())
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        default_prompt: str = DEFAULT_PROMPT,
        tracing_enabled: bool = True,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        tracer_provider=None,
        config: Optional[StreamProbeConfig] = None,
    ):
        """
        Initialize streamprobe client.

        Args:
            base_url: Backend base URL
            timeout: Timeout in seconds for non-streaming requests
            default_prompt: Prompt used when stream() gets none
            tracing_enabled: Emit one span per stream session
            debug: Enable debug logging
            transport: Optional httpx transport (used by tests)
            tracer_provider: Optional OpenTelemetry provider for stream spans
            config: Prebuilt configuration (overrides the other settings)

        Raises:
            ValueError: If configuration is invalid
        """
        self.config = config or StreamProbeConfig(
            base_url=base_url,
            timeout=timeout,
            default_prompt=default_prompt,
            tracing_enabled=tracing_enabled,
            debug=debug,
        )
        self._http = AsyncHTTPClient(self.config, transport=transport)
        self._runner = StreamRunner(
            self._http,
            dispatcher=EventDispatcher(),
            config=self.config,
            tracer_provider=tracer_provider,
        )

    @property
    def current_session(self) -> Optional[StreamSession]:
        """Most recently started session."""
        return self._runner.current_session

    async def check_backend(self) -> BackendStatus:
        """Probe the backend's health endpoint."""
        return await check_backend(self._http)

    async def stream(self, kind: StreamKind, prompt: Optional[str] = None) -> StreamSession:
        """
        Stream a response and wait for the session to resolve.

        Args:
            kind: Stream endpoint to use
            prompt: Prompt text (defaults to the configured prompt)

        Returns:
            The resolved (possibly partial) session
        """
        return await self._runner.run(kind, prompt)

    def start(self, kind: StreamKind, prompt: Optional[str] = None):
        """Start streaming in the background, superseding any in-flight stream."""
        return self._runner.start(kind, prompt)

    def cancel(self) -> bool:
        """Cancel the in-flight stream, if any."""
        return self._runner.cancel()

    async def close(self):
        """Cancel any in-flight stream, wait for it to unwind and close the HTTP session."""
        task = self._runner.current_task
        self._runner.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        await self._http.close()

    async def __aenter__(self) -> "StreamProbe":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"StreamProbe(config={self.config!r})"


def get_client(**overrides) -> StreamProbe:
    """
    Get or create the global client from STREAMPROBE_* environment variables.

    Args:
        **overrides: Override specific configuration values

    Returns:
        Singleton StreamProbe instance
    """
    global _global_client

    if _global_client is None:
        config = StreamProbeConfig.from_env(**overrides)
        _global_client = StreamProbe(config=config)

    return _global_client


def reset_client():
    """
    Reset global singleton client.

    Does not close the previous client's HTTP session; call
    ``await client.close()`` first when it was used.
    """
    global _global_client
    _global_client = None
