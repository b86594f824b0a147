"""
Request layer exceptions.
"""

from typing import Any


class FetchError(Exception):
    """Base exception for request layer errors."""

    def __init__(self, message: str, target: str | None = None):
        self.target = target
        super().__init__(message)


class TransportError(FetchError):
    """The request never produced an HTTP response."""

    pass


class RequestTimeoutError(TransportError):
    """Request timed out."""

    def __init__(self, target: str, timeout: float | None):
        self.timeout = timeout
        msg = f"Request to '{target}' timed out"
        if timeout is not None:
            msg += f" after {timeout}s"
        super().__init__(msg, target=target)


class ResponseError(FetchError):
    """Server answered with a status outside the 2xx range."""

    def __init__(self, status: int, response: Any, body: Any = None):
        self.status = status
        self.response = response
        self.body = body
        reason = getattr(response, "reason_phrase", "") or f"HTTP {status}"
        super().__init__(reason, target=_target_of(response))


class JSONParseError(FetchError):
    """Response declared a JSON content type but the body is not valid JSON."""

    def __init__(self, status: int, response: Any, text: str, detail: str):
        self.status = status
        self.response = response
        self.text = text
        super().__init__(
            f"Invalid JSON in response body (HTTP {status}): {detail}",
            target=_target_of(response),
        )


class RefreshError(FetchError):
    """Credential refresh failed; only raised when refresh errors are surfaced."""

    def __init__(self, original_error: BaseException):
        self.original_error = original_error
        super().__init__(f"Credential refresh failed after: {original_error!r}")


def _target_of(response: Any) -> str | None:
    # httpx raises RuntimeError when a Response was built without a request
    try:
        return str(response.request.url)
    except (AttributeError, RuntimeError):
        return None
