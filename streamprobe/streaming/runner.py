"""
Stream runner.

Drives one stream session end to end: opens the streaming request, feeds
the body through the frame decoder and dispatches every record in order.
Starting a new stream retires the previous session and cancels its task.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Optional

import httpx

from .._http.client import AsyncHTTPClient
from .._http.errors import StreamProbeError
from ..config import StreamProbeConfig
from ..tracing import stream_span
from .decoder import MalformedFrameError, aiter_frames
from .dispatcher import EventDispatcher
from .session import StreamKind, StreamSession

logger = logging.getLogger(__name__)


class StreamRunner:
    """
    Runs stream sessions against the generation backend.

    Every run resolves to a session; failures end up as an error annotation
    on the session's text rather than as an exception.

    Example:
        >>> runner = StreamRunner(AsyncHTTPClient(config), config=config)
        >>> session = await runner.run(StreamKind.SIMULATED, "Hello")
        >>> session.chunk_count, session.interval_statistics()
    """

    def __init__(
        self,
        http_client: AsyncHTTPClient,
        dispatcher: Optional[EventDispatcher] = None,
        config: Optional[StreamProbeConfig] = None,
        tracer_provider=None,
    ):
        """
        Initialize runner.

        Args:
            http_client: Client used to open streaming requests
            dispatcher: Dispatcher owning session generations
            config: Configuration (defaults to StreamProbeConfig())
            tracer_provider: Optional OpenTelemetry provider for stream spans
        """
        self._http = http_client
        self._dispatcher = dispatcher or EventDispatcher()
        self._config = config or StreamProbeConfig()
        self._tracer_provider = tracer_provider
        self._task: Optional[asyncio.Task] = None

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    @property
    def current_session(self) -> Optional[StreamSession]:
        return self._dispatcher.current_session

    @property
    def current_task(self) -> Optional[asyncio.Task]:
        return self._task

    def start(self, kind: StreamKind, prompt: Optional[str] = None) -> "asyncio.Task[StreamSession]":
        """
        Start streaming in a background task.

        The previous session is superseded before the new one is created and
        its task is cancelled, which closes its response.

        Args:
            kind: Stream endpoint to use
            prompt: Prompt text (defaults to the configured prompt)

        Returns:
            Task resolving to the new session
        """
        session = self._dispatcher.begin_session(kind)

        previous = self._task
        if previous is not None and not previous.done():
            logger.debug("Cancelling in-flight stream task")
            previous.cancel()

        self._task = asyncio.create_task(self._run_session(session, prompt))
        return self._task

    async def run(self, kind: StreamKind, prompt: Optional[str] = None) -> StreamSession:
        """
        Start a stream and wait until its session is resolved.

        A run superseded by a later start() returns its (partial) session
        instead of propagating the cancellation.
        """
        task = self.start(kind, prompt)
        session = self._dispatcher.current_session
        try:
            return await task
        except asyncio.CancelledError:
            if session.superseded:
                return session
            raise

    def cancel(self) -> bool:
        """
        Cancel the in-flight stream, if any.

        The session is closed right away, so it ends CLOSED even when the
        task is cancelled before it started running.
        """
        if self._task is None or self._task.done():
            return False
        self._dispatcher.close(self._dispatcher.current_session)
        return self._task.cancel()

    async def _run_session(self, session: StreamSession, prompt: Optional[str]) -> StreamSession:
        with stream_span(
            session,
            server_address=self._config.base_url,
            enabled=self._config.tracing_enabled,
            tracer_provider=self._tracer_provider,
        ):
            try:
                await self._consume(session, prompt)
            except asyncio.CancelledError:
                self._dispatcher.close(session)
                raise
        return session

    async def _consume(self, session: StreamSession, prompt: Optional[str]) -> None:
        body = {"message": self._config.resolve_prompt(prompt)}
        try:
            async with self._http.stream_bytes(session.kind.path, json=body) as chunks:
                async with aclosing(aiter_frames(chunks)) as records:
                    async for record in records:
                        self._dispatcher.dispatch(session, record)
                        if not session.accepts_events:
                            break
        except MalformedFrameError as e:
            logger.error(f"Malformed frame in session {session.session_id}: {e.message} ({e.line!r})")
            self._dispatcher.fail(session, e.message)
        except StreamProbeError as e:
            logger.warning(f"Stream {session.kind.path} failed: {e.message}")
            self._dispatcher.fail(session, e.message)
        except httpx.HTTPError as e:
            logger.warning(f"Stream {session.kind.path} failed: {e}")
            self._dispatcher.fail(session, str(e) or e.__class__.__name__)
        else:
            self._dispatcher.close(session)
