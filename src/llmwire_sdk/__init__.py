"""Python client for chat completions and assistant threads and runs."""

from .client import AsyncLLMWire, LLMWire
from .exceptions import (
    APIConnectionError,
    APIResponseValidationError,
    APIStatusError,
    APIStreamError,
    APITimeoutError,
    APIUserAbortError,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    InternalServerError,
    LLMWireError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    StreamDecodeError,
    UnprocessableEntityError,
)
from .request_options import FinalRequestOptions, RequestOptions
from .streams import AsyncStream, SSEEvent, Stream

__version__ = "0.1.0"

__all__ = [
    "APIConnectionError",
    "APIResponseValidationError",
    "APIStatusError",
    "APIStreamError",
    "APITimeoutError",
    "APIUserAbortError",
    "AsyncLLMWire",
    "AsyncStream",
    "AuthenticationError",
    "BadRequestError",
    "ConflictError",
    "FinalRequestOptions",
    "InternalServerError",
    "LLMWire",
    "LLMWireError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "RequestOptions",
    "SSEEvent",
    "Stream",
    "StreamDecodeError",
    "UnprocessableEntityError",
]
