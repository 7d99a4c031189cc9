"""SDK-specific exceptions."""

from __future__ import annotations

from typing import Mapping


class LLMWireError(Exception):
    """Base exception for all llmwire SDK failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        request_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.request_id = request_id
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class APIConnectionError(LLMWireError):
    """Raised when no response was received (DNS, TCP, TLS, reset)."""


class APITimeoutError(APIConnectionError):
    """Raised when a request exceeds the configured timeout."""


class APIStatusError(LLMWireError):
    """Raised for HTTP non-success responses."""


class BadRequestError(APIStatusError):
    pass


class AuthenticationError(APIStatusError):
    pass


class PermissionDeniedError(APIStatusError):
    pass


class NotFoundError(APIStatusError):
    pass


class ConflictError(APIStatusError):
    pass


class UnprocessableEntityError(APIStatusError):
    pass


class RateLimitError(APIStatusError):
    pass


class InternalServerError(APIStatusError):
    pass


class APIResponseValidationError(LLMWireError):
    """Raised when a successful response cannot be decoded into the expected type."""


class StreamDecodeError(APIResponseValidationError):
    """Raised when a single server-sent event cannot be decoded."""

    def __init__(self, message: str, *, event: str | None = None, data: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message, body=data, cause=cause)
        self.event = event
        self.data = data


class APIStreamError(LLMWireError):
    """Raised when the server reports an error inside an event stream."""


class APIUserAbortError(LLMWireError):
    """Raised when the caller's cancellation signal is observed."""

    def __init__(self, message: str = "Request was aborted.") -> None:
        super().__init__(message)


_STATUS_ERRORS: dict[int, type[APIStatusError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    422: UnprocessableEntityError,
    429: RateLimitError,
}


def make_status_error(status_code: int, text: str, headers: Mapping[str, str] | None = None) -> APIStatusError:
    """Build the status-specific error for a non-success response body."""
    if status_code >= 500:
        error_cls: type[APIStatusError] = InternalServerError
    else:
        error_cls = _STATUS_ERRORS.get(status_code, APIStatusError)
    message = f"Request failed: {text}" if text else "Request failed (no body)"
    return error_cls(
        message,
        status_code=status_code,
        body=text,
        headers=headers,
        request_id=(headers or {}).get("x-request-id"),
    )
