"""Single-attempt execution of a non-streaming request on an event loop.

``APIFuture`` is a four-state resumable computation:

    INIT -> REQUEST_SENT -> RESPONSE_TEXT_COMPLETED -> RESPONSE_RECEIVED

Each call to ``advance()`` performs exactly one transition. Awaiting the
future drives it to ``RESPONSE_RECEIVED`` and returns the parsed value. The
retry policy lives in the client, which builds a fresh future per attempt.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import json
from typing import Any, Generator, Generic, TypeVar

import httpx
from pydantic import TypeAdapter

from .exceptions import (
    APIConnectionError,
    APIResponseValidationError,
    APITimeoutError,
    APIUserAbortError,
    make_status_error,
)

T = TypeVar("T")


class APIFutureState(enum.Enum):
    INIT = "init"
    REQUEST_SENT = "request_sent"
    RESPONSE_TEXT_COMPLETED = "response_text_completed"
    RESPONSE_RECEIVED = "response_received"


@functools.lru_cache(maxsize=None)
def type_adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def parse_body(text: str, cast_to: Any) -> Any:
    """Decode a successful response body; failures are not retriable."""
    if not text.strip():
        if cast_to is None:
            return None
        try:
            return type_adapter(cast_to).validate_python(None)
        except ValueError as exc:
            raise APIResponseValidationError(
                f"Response body is empty; expected {getattr(cast_to, '__name__', cast_to)!s}",
                body=text,
                cause=exc,
            ) from exc
    try:
        if cast_to is None:
            return json.loads(text)
        return type_adapter(cast_to).validate_json(text)
    except ValueError as exc:
        raise APIResponseValidationError(
            f"Could not parse response body as {getattr(cast_to, '__name__', cast_to)!s}",
            body=text,
            cause=exc,
        ) from exc


def transport_error(exc: httpx.TransportError) -> APIConnectionError:
    if isinstance(exc, httpx.TimeoutException):
        return APITimeoutError("Request timed out", cause=exc)
    return APIConnectionError("Connection error", cause=exc)


async def race_signal(future: "asyncio.Future[T]", signal: asyncio.Event | None) -> T:
    """Await ``future`` unless ``signal`` is set first, in which case abort."""
    if signal is None:
        return await future
    if signal.is_set():
        future.cancel()
        raise APIUserAbortError()
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({future, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
    if future in done:
        return future.result()
    future.cancel()
    raise APIUserAbortError()


async def _read_fully(response: httpx.Response) -> httpx.Response:
    await response.aread()
    return response


class APIFuture(Generic[T]):
    def __init__(
        self,
        http: httpx.AsyncClient,
        request: httpx.Request,
        *,
        cast_to: Any = None,
        signal: asyncio.Event | None = None,
    ) -> None:
        self.state = APIFutureState.INIT
        self.response: httpx.Response | None = None
        self._http = http
        self._request = request
        self._cast_to = cast_to
        self._signal = signal
        self._pending: asyncio.Future[Any] | None = None
        self._value: Any = None
        self._taken = False

    @property
    def done(self) -> bool:
        return self.state is APIFutureState.RESPONSE_RECEIVED

    async def advance(self) -> APIFutureState:
        """Perform one state transition and return the new state."""
        try:
            if self.state is APIFutureState.INIT:
                self._pending = asyncio.ensure_future(self._http.send(self._request, stream=True))
                self.state = APIFutureState.REQUEST_SENT
            elif self.state is APIFutureState.REQUEST_SENT:
                response = await self._settle()
                self.response = response
                if not response.is_success:
                    self._pending = asyncio.ensure_future(response.aread())
                    await self._settle()
                    await response.aclose()
                    raise make_status_error(response.status_code, response.text, response.headers)
                self._pending = asyncio.ensure_future(_read_fully(response))
                self.state = APIFutureState.RESPONSE_TEXT_COMPLETED
            elif self.state is APIFutureState.RESPONSE_TEXT_COMPLETED:
                response = await self._settle()
                await response.aclose()
                self._value = parse_body(response.text, self._cast_to)
                self.state = APIFutureState.RESPONSE_RECEIVED
        except BaseException:
            await self.aclose()
            raise
        return self.state

    async def _settle(self) -> Any:
        if self._pending is None:
            raise RuntimeError(f"APIFuture has no pending operation (state={self.state.value})")
        try:
            result = await race_signal(self._pending, self._signal)
        except httpx.TransportError as exc:
            raise transport_error(exc) from exc
        self._pending = None
        return result

    def result(self) -> T:
        if not self.done:
            raise RuntimeError(f"APIFuture is not complete (state={self.state.value})")
        if self._taken:
            raise RuntimeError("APIFuture result has already been consumed")
        self._taken = True
        return self._value

    async def aclose(self) -> None:
        """Stop any in-flight I/O and release the response."""
        pending, self._pending = self._pending, None
        if pending is not None:
            if not pending.done():
                pending.cancel()
            elif not pending.cancelled() and pending.exception() is None:
                leftover = pending.result()
                if isinstance(leftover, httpx.Response):
                    await leftover.aclose()
        if self.response is not None:
            await self.response.aclose()

    async def _drive(self) -> T:
        while not self.done:
            await self.advance()
        return self.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self._drive().__await__()

