"""
Backend liveness probe.

Queries the backend's ``/health`` endpoint and reports whether it is up and
whether the real model stream is available.
"""

import logging

from pydantic import BaseModel, Field

from ._http.client import AsyncHTTPClient
from ._http.errors import ConnectionError, StreamProbeError
from .streaming.session import StreamKind

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


class BackendStatus(BaseModel):
    """Result of a backend health check."""

    status: str = Field(description="Status reported by the backend, or 'unreachable'")
    connected: bool = Field(default=False, description="Backend answered with status 'ok'")
    reachable: bool = Field(default=False, description="Backend answered at all")
    gemini_configured: bool = Field(
        default=False, description="Backend has a model API key configured"
    )

    @property
    def label(self) -> str:
        if self.connected:
            return "✓ Connected"
        if self.reachable:
            return "✗ Error"
        return "✗ Not running"

    def supports(self, kind: StreamKind) -> bool:
        """Whether the given stream kind can be requested."""
        if kind is StreamKind.AI:
            return self.connected and self.gemini_configured
        return self.connected


async def check_backend(http_client: AsyncHTTPClient) -> BackendStatus:
    """
    Probe the backend.

    Never raises: an unreachable backend or a bad response is reported in
    the returned status.

    Only a failed connection counts as "not running". A backend that answers
    with an error status, a non-JSON body or a non-object body is reachable
    and reported with status "error".
    """
    try:
        data = await http_client.get_json(HEALTH_PATH)
    except ConnectionError as e:
        logger.debug(f"Health check failed: {e.message}")
        return BackendStatus(status="unreachable")
    except (StreamProbeError, ValueError) as e:
        logger.debug(f"Health check returned an error: {e}")
        return BackendStatus(status="error", reachable=True)

    if not isinstance(data, dict):
        return BackendStatus(status="error", reachable=True)

    status = data.get("status")
    return BackendStatus(
        status=str(status) if status is not None else "unknown",
        connected=status == "ok",
        reachable=True,
        gemini_configured=bool(data.get("gemini_configured")),
    )
