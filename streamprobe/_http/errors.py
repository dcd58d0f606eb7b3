"""
streamprobe Error Classes

Error classes with actionable guidance for failures talking to the
generation backend. Specific errors carry no prefix, so import
ConnectionError explicitly to avoid shadowing builtins.ConnectionError.
"""

from typing import Any, Optional


def _safe_extract_error_message(
    response_body: Any,
    default: str,
) -> str:
    """
    Safely extract an error message from a response body.

    Accepts both ``{"error": "text"}`` (what the generation backend sends)
    and ``{"error": {"message": "text"}}``. Non-dict bodies (lists, strings,
    numbers, null) return the default message.
    """
    if not isinstance(response_body, dict):
        return default

    error = response_body.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message

    return default


def _safe_get_value(
    response_body: Any,
    key: str,
    default: Any = None,
) -> Any:
    """Safely get a value from response body with type validation."""
    if not isinstance(response_body, dict):
        return default
    return response_body.get(key, default)


class StreamProbeError(Exception):
    """
    Base error for all streamprobe errors.

    Includes actionable guidance to help users resolve issues.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        original_error: Optional[Exception] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize StreamProbeError.

        Args:
            message: Main error message.
            hint: Optional actionable guidance.
            original_error: Original exception that caused this error.
            details: Additional error details.
        """
        self.message = message
        self.hint = hint
        self.original_error = original_error
        self.details = details or {}

        full_message = message
        if hint:
            full_message = f"{message}\n\nTo fix:\n{hint}"

        super().__init__(full_message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class ConnectionError(StreamProbeError):
    """
    Connection to the generation backend failed.

    Raised when the server is unreachable, the connection drops mid-stream,
    or connection setup times out.
    """

    @classmethod
    def from_exception(
        cls,
        original: Exception,
        base_url: Optional[str] = None,
    ) -> "ConnectionError":
        """
        Create connection error from underlying exception.

        Args:
            original: Original transport exception.
            base_url: The base URL that failed to connect.

        Returns:
            ConnectionError with actionable guidance.
        """
        url_info = f" ({base_url})" if base_url else ""
        reason = str(original) or original.__class__.__name__

        hint = f"""
1. Check if the backend is running{url_info}:
   curl -s {base_url or 'http://localhost:5000'}/health || echo "Server not reachable"

2. Verify your base URL is correct:
   export STREAMPROBE_BASE_URL=http://localhost:5000
""".strip()

        return cls(
            f"Failed to connect to backend{url_info}: {reason}",
            hint=hint,
            original_error=original,
            details={"base_url": base_url},
        )


class NotFoundError(StreamProbeError):
    """
    Endpoint not found.

    Raised when the backend does not expose the requested stream endpoint.
    """

    @classmethod
    def for_endpoint(cls, path: str) -> "NotFoundError":
        """
        Create not found error for a backend endpoint.

        Args:
            path: Request path (e.g., "/stream-ai").

        Returns:
            NotFoundError with guidance.
        """
        hint = f"""
1. Check the backend version exposes '{path}'
2. Verify STREAMPROBE_BASE_URL does not include an extra path prefix
""".strip()

        return cls(
            f"Endpoint not found: '{path}'",
            hint=hint,
            details={"status_code": 404, "path": path},
        )


class RateLimitError(StreamProbeError):
    """
    Rate limit exceeded.

    Raised when the backend (or the model provider behind it) rejects the
    request for sending too many requests.
    """

    @classmethod
    def from_response(
        cls,
        response_body: Any = None,
        retry_after: Optional[int] = None,
    ) -> "RateLimitError":
        """
        Create rate limit error from response.

        Args:
            response_body: Response JSON body (may be non-dict).
            retry_after: Seconds to wait before retrying.

        Returns:
            RateLimitError with retry guidance.
        """
        wait_info = f" (retry after {retry_after}s)" if retry_after else ""

        hint = f"""
1. Wait before retrying{wait_info or ' (check Retry-After header)'}
2. Reduce request frequency
""".strip()

        return cls(
            f"Rate limit exceeded{wait_info}",
            hint=hint,
            details={"response": response_body, "retry_after": retry_after},
        )


class ServerError(StreamProbeError):
    """
    Server-side error.

    Raised when the backend answers a stream request with a 5xx status.
    """

    @classmethod
    def from_response(
        cls,
        status_code: int,
        response_body: Any = None,
    ) -> "ServerError":
        """
        Create server error from response.

        Args:
            status_code: HTTP status code (5xx).
            response_body: Response JSON body (may be non-dict).

        Returns:
            ServerError with guidance.
        """
        error_msg = _safe_extract_error_message(response_body, default="")
        detail = f": {error_msg}" if error_msg else ""

        hint = """
1. Retry the request after a brief delay
2. Check the backend logs (is the model API key configured?)
""".strip()

        return cls(
            f"Server error (HTTP {status_code}){detail}",
            hint=hint,
            details={"status_code": status_code, "response": response_body},
        )


def raise_for_status(
    status_code: int,
    response_body: Any = None,
    *,
    path: Optional[str] = None,
) -> None:
    """
    Raise appropriate error based on HTTP status code.

    Args:
        status_code: HTTP status code.
        response_body: Response JSON body (may be non-dict).
        path: Request path for not found errors.

    Raises:
        StreamProbeError: Appropriate error subclass based on status code.
    """
    if 200 <= status_code < 300:
        return

    if status_code == 404:
        if path:
            raise NotFoundError.for_endpoint(path)
        raise NotFoundError(
            "Endpoint not found",
            details={"status_code": status_code, "response": response_body},
        )

    if status_code == 429:
        retry_after = _safe_get_value(response_body, "retry_after")
        raise RateLimitError.from_response(response_body, retry_after)

    if status_code >= 500:
        raise ServerError.from_response(status_code, response_body)

    error_msg = _safe_extract_error_message(
        response_body,
        default="Request failed",
    )

    raise StreamProbeError(
        f"HTTP {status_code}: {error_msg}",
        details={"status_code": status_code, "response": response_body},
    )
