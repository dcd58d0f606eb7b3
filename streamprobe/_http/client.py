"""
HTTP Client

Async HTTP client for the generation backend.
"""

import json as jsonlib
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from .errors import ConnectionError, raise_for_status

logger = logging.getLogger(__name__)


def _read_json_body(response: httpx.Response) -> Any:
    """Parse a response body as JSON, returning None for non-JSON bodies."""
    try:
        return response.json()
    except (ValueError, UnicodeDecodeError):
        return None


def _check_response_status(response: httpx.Response, path: Optional[str] = None) -> None:
    """Raise the matching StreamProbeError for a non-2xx response."""
    if response.is_success:
        return
    raise_for_status(response.status_code, _read_json_body(response), path=path)


class AsyncHTTPClient:
    """
    Async HTTP client for the generation backend.

    Wraps httpx.AsyncClient with base URL handling, status mapping and
    transport error translation.
    """

    def __init__(self, config, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize HTTP client.

        Args:
            config: StreamProbeConfig instance
            transport: Optional httpx transport (used by tests)
        """
        self._config = config
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def _get_session(self) -> httpx.AsyncClient:
        """Get or create httpx session."""
        if self._session is None:
            self._session = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._session

    async def get_json(self, path: str) -> Dict[str, Any]:
        """
        Send GET request.

        Args:
            path: API path (e.g., "/health")

        Returns:
            Response JSON

        Raises:
            ConnectionError: If the backend cannot be reached
            StreamProbeError: On non-2xx responses
        """
        session = self._get_session()
        try:
            response = await session.get(path)
        except httpx.TransportError as e:
            raise ConnectionError.from_exception(e, self.base_url) from e

        _check_response_status(response, path)
        return response.json()

    @asynccontextmanager
    async def stream_bytes(
        self, path: str, json: Optional[Dict[str, Any]] = None
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        POST a request and expose the response body as raw byte chunks.

        The status is checked before any byte is yielded. The body has no
        read timeout: a backend that stops sending leaves the iteration
        suspended until the caller cancels it.

        Args:
            path: Stream endpoint path
            json: Request body

        Yields:
            Async iterator of byte chunks in arrival order

        Raises:
            ConnectionError: If the connection fails to open
            StreamProbeError: On non-2xx responses
        """
        session = self._get_session()
        timeout = httpx.Timeout(self._config.timeout, read=None)
        request = session.build_request(
            "POST",
            path,
            content=jsonlib.dumps(json or {}).encode("utf-8"),
            timeout=timeout,
        )

        try:
            response = await session.send(request, stream=True)
        except httpx.TransportError as e:
            raise ConnectionError.from_exception(e, self.base_url) from e

        try:
            if not response.is_success:
                await response.aread()
                _check_response_status(response, path)
            logger.debug(f"Stream opened: POST {path} (HTTP {response.status_code})")
            yield self._iter_body(response)
        finally:
            await response.aclose()

    async def _iter_body(self, response: httpx.Response) -> AsyncIterator[bytes]:
        """Yield body chunks, translating mid-stream transport failures."""
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.TransportError as e:
            raise ConnectionError.from_exception(e, self.base_url) from e

    async def close(self):
        """Close HTTP session."""
        if self._session:
            await self._session.aclose()
            self._session = None
