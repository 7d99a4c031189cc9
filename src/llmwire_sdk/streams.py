"""SSE parsing and the typed event stream demultiplexer."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Iterable, Iterator, TypeVar, Union

import httpx
from pydantic import ValidationError

from ._execution import transport_error, type_adapter
from ._logs import get_logger
from .exceptions import APIStreamError, StreamDecodeError

T = TypeVar("T")

log = get_logger("llmwire_sdk.streams")

DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SSEEvent:
    event: str | None
    data: str
    id: str | None = None
    retry: int | None = None
    raw: str | None = None

    def json(self) -> Any | None:
        """Attempt to parse event data as JSON."""
        try:
            return json.loads(self.data) if self.data else None
        except ValueError:
            return None


@dataclass(frozen=True)
class SSEOpen:
    """Connection established; carries no data."""


SSE_OPEN = SSEOpen()

SSEMessage = Union[SSEEvent, SSEOpen]


class _SSEDecoder:
    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._event: str | None = None
        self._id: str | None = None
        self._retry: int | None = None
        self._data: list[str] = []
        self._raw: list[str] = []

    def feed(self, raw_line: str) -> SSEEvent | None:
        line = raw_line.rstrip("\r\n")
        if not line:
            event = self.flush()
            self._reset()
            return event
        if line.startswith(":"):
            return None

        self._raw.append(line)
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            self._id = value
        elif field == "retry":
            try:
                self._retry = int(value)
            except ValueError:
                pass
        return None

    def flush(self) -> SSEEvent | None:
        if not self._data:
            return None
        return SSEEvent(
            event=self._event,
            data="\n".join(self._data),
            id=self._id,
            retry=self._retry,
            raw="\n".join(self._raw),
        )


def parse_sse_lines(lines: Iterable[str]) -> Iterator[SSEEvent]:
    """Parse a stream of SSE lines into events."""
    decoder = _SSEDecoder()
    for raw_line in lines:
        event = decoder.feed(raw_line)
        if event is not None:
            yield event

    final_event = decoder.flush()
    if final_event is not None:
        yield final_event


async def parse_sse_lines_async(lines: AsyncIterator[str]) -> AsyncIterator[SSEEvent]:
    """Parse an async stream of SSE lines into events."""
    decoder = _SSEDecoder()
    async for raw_line in lines:
        event = decoder.feed(raw_line)
        if event is not None:
            yield event

    final_event = decoder.flush()
    if final_event is not None:
        yield final_event


def _wrapper_keys() -> dict[str, str]:
    keys = {"thread.created": "thread_created", "error": "error"}
    for state in ("created", "queued", "in_progress", "requires_action", "completed",
                  "incomplete", "failed", "cancelling", "cancelled", "expired"):
        keys[f"thread.run.{state}"] = f"run_{state}"
    for state in ("created", "in_progress", "delta", "completed", "failed", "cancelled", "expired"):
        keys[f"thread.run.step.{state}"] = f"run_step_{state}"
    for state in ("created", "in_progress", "delta", "completed", "incomplete"):
        keys[f"thread.message.{state}"] = f"message_{state}"
    return keys


# SSE event name -> key the payload is wrapped under before decoding.
THREAD_RUN_EVENT_KEYS = _wrapper_keys()

_THREAD_RUN_PATH = re.compile(r"^/threads(?:/[^/]+)?/runs(?:/[^/]+/submit_tool_outputs)?/?$")


def is_thread_run_path(path: str) -> bool:
    """True for run creation (with or without an existing thread) and tool-output submission paths."""
    return _THREAD_RUN_PATH.match(path.split("?", 1)[0]) is not None


def _event_key(name: str | None) -> str | None:
    """Wrapper key for a run event name; the ``thread.`` prefix may be omitted."""
    if not name:
        return None
    return THREAD_RUN_EVENT_KEYS.get(name) or THREAD_RUN_EVENT_KEYS.get(f"thread.{name}")


def _load(message: SSEEvent) -> Any:
    try:
        return json.loads(message.data)
    except ValueError as exc:
        raise StreamDecodeError(
            f"Stream event {message.event or 'message'!r} is not valid JSON",
            event=message.event,
            data=message.data,
            cause=exc,
        ) from exc


def _validate(message: SSEEvent, payload: Any, item_type: Any) -> Any:
    if item_type is None:
        return payload
    try:
        return type_adapter(item_type).validate_python(payload)
    except ValidationError as exc:
        raise StreamDecodeError(
            f"Stream event {message.event or 'message'!r} does not match the expected shape",
            event=message.event,
            data=message.data,
            cause=exc,
        ) from exc


def decode_sse_message(path: str, message: SSEEvent, item_type: Any) -> Any | None:
    """Decode one SSE message according to the endpoint's protocol.

    Thread-run endpoints name the variant in the SSE ``event`` field, so the
    payload is wrapped under that variant's key before decoding; event names
    without a known variant return ``None``. All other endpoints decode
    ``data`` directly as ``item_type``.
    """
    if is_thread_run_path(path):
        key = _event_key(message.event)
        if key is None:
            return None
        return _validate(message, {key: _load(message)}, item_type)

    payload = _load(message)
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        detail = error.get("message") if isinstance(error, dict) else None
        raise APIStreamError(str(detail or error), body=payload)
    return _validate(message, payload, item_type)


def _skips(path: str, message: SSEEvent) -> bool:
    if is_thread_run_path(path) and _event_key(message.event) is None:
        log.debug("Skipping unrecognized run stream event %r", message.event)
        return True
    return False


def iter_stream_items(path: str, messages: Iterable[SSEMessage], item_type: Any) -> Iterator[Any]:
    """Turn raw SSE messages into typed items until ``[DONE]`` or exhaustion."""
    for message in messages:
        if isinstance(message, SSEOpen):
            continue
        if message.data == DONE_SENTINEL:
            return
        if _skips(path, message):
            continue
        yield decode_sse_message(path, message, item_type)


async def aiter_stream_items(path: str, messages: AsyncIterator[SSEMessage], item_type: Any) -> AsyncIterator[Any]:
    async for message in messages:
        if isinstance(message, SSEOpen):
            continue
        if message.data == DONE_SENTINEL:
            return
        if _skips(path, message):
            continue
        yield decode_sse_message(path, message, item_type)


def iter_sse_messages(response: httpx.Response) -> Iterator[SSEMessage]:
    """Yield ``SSE_OPEN`` followed by the events read from an open response."""
    yield SSE_OPEN
    try:
        for event in parse_sse_lines(response.iter_lines()):
            yield event
    except httpx.TransportError as exc:
        raise transport_error(exc) from exc


async def aiter_sse_messages(response: httpx.Response) -> AsyncIterator[SSEMessage]:
    yield SSE_OPEN
    try:
        async for event in parse_sse_lines_async(response.aiter_lines()):
            yield event
    except httpx.TransportError as exc:
        raise transport_error(exc) from exc


class Stream(Generic[T]):
    """Lazy, forward-only sequence of typed events from a streaming endpoint.

    The request is sent when iteration starts. Iterating a second time raises
    ``RuntimeError``; issue a new call to stream again.
    """

    def __init__(self, *, path: str, item_type: Any, connect: Callable[[], httpx.Response]) -> None:
        self.path = path
        self.item_type = item_type
        self.response: httpx.Response | None = None
        self._connect = connect
        self._iterator: Iterator[T] | None = None
        self._consumed = False

    def __iter__(self) -> Iterator[T]:
        if self._consumed:
            raise RuntimeError("Stream has already been consumed; issue a new request to stream again")
        self._consumed = True
        self._iterator = self._iter_items()
        return self._iterator

    def _iter_items(self) -> Iterator[T]:
        response = self._connect()
        self.response = response
        try:
            yield from iter_stream_items(self.path, iter_sse_messages(response), self.item_type)
        finally:
            response.close()

    def close(self) -> None:
        self._consumed = True
        if self._iterator is not None:
            self._iterator.close()  # type: ignore[attr-defined]
        elif self.response is not None:
            self.response.close()

    def __enter__(self) -> "Stream[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncStream(Generic[T]):
    """Async counterpart of ``Stream``."""

    def __init__(self, *, path: str, item_type: Any, connect: Callable[[], Awaitable[httpx.Response]]) -> None:
        self.path = path
        self.item_type = item_type
        self.response: httpx.Response | None = None
        self._connect = connect
        self._iterator: AsyncIterator[T] | None = None
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[T]:
        if self._consumed:
            raise RuntimeError("Stream has already been consumed; issue a new request to stream again")
        self._consumed = True
        self._iterator = self._iter_items()
        return self._iterator

    async def _iter_items(self) -> AsyncIterator[T]:
        response = await self._connect()
        self.response = response
        try:
            async for item in aiter_stream_items(self.path, aiter_sse_messages(response), self.item_type):
                yield item
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        self._consumed = True
        if self._iterator is not None:
            await self._iterator.aclose()  # type: ignore[attr-defined]
        elif self.response is not None:
            await self.response.aclose()

    async def __aenter__(self) -> "AsyncStream[T]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
