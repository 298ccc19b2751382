from __future__ import annotations

from typing import Any, Optional

import httpx


class ApiError(Exception):
    """Base class for failures surfaced to callers of the session client.

    Each subclass fixes an HTTP ``status_code`` and a stable ``error_code``:
    - unauthorized (401)
    - forbidden (403)
    - not_found (404)
    - conflict (409)
    - rate_limited (429)
    - validation_error (400)
    - server_error (5xx)

    ``response`` is the underlying ``httpx.Response`` when one exists, left
    untouched so callers can inspect headers and body themselves.
    """

    status_code: Optional[int] = None
    error_code: str = "api_error"

    def __init__(
        self,
        message: str,
        *,
        response: Optional[httpx.Response] = None,
        status_code: Optional[int] = None,
        detail: Optional[dict] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.response = response
        if status_code is not None:
            self.status_code = status_code
        elif response is not None:
            self.status_code = response.status_code
        if error_code is not None:
            self.error_code = error_code
        self.detail = detail or {}


class ValidationError(ApiError):
    """Request rejected as malformed or invalid (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(ApiError):
    """Authentication failed or missing (401)."""
    status_code = 401
    error_code = "unauthorized"


class SessionTerminatedError(AuthenticationError):
    """Session could not be recovered; tokens were cleared (401)."""
    error_code = "session_terminated"


class ForbiddenError(ApiError):
    """Authenticated but not authorized for this request (403)."""
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ApiError):
    """Requested resource not found (404)."""
    status_code = 404
    error_code = "not_found"


class ConflictError(ApiError):
    """Resource conflict, e.g., duplicate creation (409)."""
    status_code = 409
    error_code = "conflict"


class RateLimitedError(ApiError):
    """Rate limit exceeded (429)."""
    status_code = 429
    error_code = "rate_limited"


class ServerError(ApiError):
    """Backend failure (5xx)."""
    status_code = 500
    error_code = "server_error"


class TransportError(ApiError):
    """The request never produced a response (connect, timeout, protocol)."""
    error_code = "transport_error"


class RefreshFailedError(Exception):
    """The refresh-token call failed; raised by the refresh coordinator."""

    def __init__(self, message: str, *, response: Optional[httpx.Response] = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response


_STATUS_TO_ERROR: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitedError,
}


def _message_from_body(response: httpx.Response) -> Optional[str]:
    try:
        body: Any = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "error", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def error_for_response(response: httpx.Response) -> ApiError:
    """Map a non-success response to the matching ``ApiError`` subclass."""
    status = response.status_code
    if status in _STATUS_TO_ERROR:
        error_cls = _STATUS_TO_ERROR[status]
    elif status >= 500:
        error_cls = ServerError
    else:
        error_cls = ApiError
    message = _message_from_body(response) or (
        f"{response.request.method} {response.request.url.path} failed with {status}"
    )
    return error_cls(message, response=response, status_code=status)


__all__ = [
    "ApiError",
    "ValidationError",
    "AuthenticationError",
    "SessionTerminatedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ServerError",
    "TransportError",
    "RefreshFailedError",
    "error_for_response",
]
