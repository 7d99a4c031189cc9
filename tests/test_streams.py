from __future__ import annotations

import asyncio
import json
from typing import Union

import httpx
import pytest

from llmwire_sdk.exceptions import APIConnectionError, APIStreamError, StreamDecodeError
from llmwire_sdk.models import AssistantStreamEvent, ChatCompletionChunk, MessageDelta, MessageDeltaEvent, RunCreatedEvent
from llmwire_sdk.streams import (
    SSE_OPEN,
    AsyncStream,
    SSEEvent,
    Stream,
    decode_sse_message,
    is_thread_run_path,
    iter_stream_items,
    parse_sse_lines,
    parse_sse_lines_async,
)

MESSAGE_DELTA = json.dumps(
    {
        "id": "msg_1",
        "object": "thread.message.delta",
        "delta": {"content": [{"index": 0, "type": "text", "text": {"value": "Hi"}}]},
    }
)


def _chunk(index: int) -> str:
    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "choices": [{"index": 0, "delta": {"content": f"part {index}"}}],
        }
    )


def _sse_response(body: str) -> httpx.Response:
    return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body.encode())


def test_parse_sse_lines_collects_events() -> None:
    lines = [
        "event: update\n",
        "data: {\"id\":1}\n",
        "retry: 1500\n",
        "",
        ": keep-alive\n",
        "data: final\n",
        "",
    ]
    events = list(parse_sse_lines(iter(lines)))

    assert len(events) == 2
    assert events[0].event == "update"
    assert events[0].data == "{\"id\":1}"
    assert events[0].retry == 1500
    assert events[0].json() == {"id": 1}
    assert events[1].event is None
    assert events[1].data == "final"
    assert events[1].retry is None
    assert events[1].json() is None


def test_parse_sse_lines_flushes_trailing_event_without_blank_line() -> None:
    events = list(parse_sse_lines(["id: 7\n", "data: tail\n"]))

    assert events == [SSEEvent(event=None, data="tail", id="7", raw="id: 7\ndata: tail")]


def test_parse_sse_lines_async_collects_events() -> None:
    async def collect() -> list[SSEEvent]:
        events: list[SSEEvent] = []

        async def generator():
            yield "data: first\n"
            yield "data: line2\n"
            yield ""
            yield "event: finalize\n"
            yield "data: done\n"
            yield ""

        async for event in parse_sse_lines_async(generator()):
            events.append(event)
        return events

    events = asyncio.run(collect())
    assert len(events) == 2
    assert events[0].event is None
    assert events[0].data == "first\nline2"
    assert events[1].event == "finalize"


def test_is_thread_run_path() -> None:
    assert is_thread_run_path("/threads/t1/runs")
    assert is_thread_run_path("/threads/t1/runs/")
    assert is_thread_run_path("/threads/t1/runs/run_1/submit_tool_outputs")
    assert is_thread_run_path("/threads/t1/runs?stream=true")
    assert is_thread_run_path("/threads/runs")
    assert not is_thread_run_path("/threads")
    assert not is_thread_run_path("/threads/t1/messages")
    assert not is_thread_run_path("/threads/t1/runs/run_1")
    assert not is_thread_run_path("/chat/completions")


def test_open_marker_five_messages_and_done_yield_five_items() -> None:
    messages = [SSE_OPEN] + [SSEEvent(event=None, data=_chunk(i)) for i in range(5)]
    messages.append(SSEEvent(event=None, data="[DONE]"))
    messages.append(SSEEvent(event=None, data=_chunk(99)))

    items = list(iter_stream_items("/chat/completions", messages, ChatCompletionChunk))

    assert len(items) == 5
    assert all(isinstance(item, ChatCompletionChunk) for item in items)
    assert [item.choices[0].delta.content for item in items] == [f"part {i}" for i in range(5)]


def test_same_payload_decodes_by_path() -> None:
    message = SSEEvent(event="thread.message.delta", data=MESSAGE_DELTA)
    item_type = Union[MessageDeltaEvent, MessageDelta]

    on_run = decode_sse_message("/threads/t1/runs", message, item_type)
    on_chat = decode_sse_message("/chat/completions", message, item_type)

    assert isinstance(on_run, MessageDeltaEvent)
    assert on_run.message_delta.id == "msg_1"
    assert isinstance(on_chat, MessageDelta)
    assert on_chat.id == "msg_1"


def test_create_thread_and_run_path_decodes_run_events() -> None:
    message = SSEEvent(event="thread.message.delta", data=MESSAGE_DELTA)

    item = decode_sse_message("/threads/runs", message, AssistantStreamEvent)

    assert isinstance(item, MessageDeltaEvent)
    assert item.message_delta.id == "msg_1"


def test_run_event_name_without_thread_prefix_is_accepted() -> None:
    message = SSEEvent(event="message.delta", data=MESSAGE_DELTA)

    item = decode_sse_message("/threads/t1/runs", message, AssistantStreamEvent)

    assert isinstance(item, MessageDeltaEvent)


def test_unknown_run_event_is_skipped() -> None:
    messages = [
        SSE_OPEN,
        SSEEvent(event="thread.something.new", data="{\"id\": \"x\"}"),
        SSEEvent(event="thread.run.created", data=json.dumps({"id": "run_1", "status": "queued"})),
        SSEEvent(event="done", data="[DONE]"),
    ]

    items = list(iter_stream_items("/threads/t1/runs", messages, AssistantStreamEvent))

    assert len(items) == 1
    assert isinstance(items[0], RunCreatedEvent)
    assert items[0].run_created.status == "queued"


def test_invalid_json_raises_stream_decode_error() -> None:
    message = SSEEvent(event="thread.message.delta", data="{not json")

    with pytest.raises(StreamDecodeError) as exc_info:
        decode_sse_message("/threads/t1/runs", message, AssistantStreamEvent)

    assert exc_info.value.event == "thread.message.delta"
    assert exc_info.value.data == "{not json"


def test_shape_mismatch_raises_stream_decode_error() -> None:
    message = SSEEvent(event=None, data="{\"choices\": []}")

    with pytest.raises(StreamDecodeError):
        decode_sse_message("/chat/completions", message, ChatCompletionChunk)


def test_error_payload_raises_api_stream_error() -> None:
    message = SSEEvent(event=None, data="{\"error\": {\"message\": \"overloaded\"}}")

    with pytest.raises(APIStreamError, match="overloaded"):
        decode_sse_message("/chat/completions", message, ChatCompletionChunk)


def test_stream_connects_lazily_and_is_not_restartable() -> None:
    body = f"event: thread.message.delta\ndata: {MESSAGE_DELTA}\n\ndata: [DONE]\n\n"
    connects: list[int] = []

    def connect() -> httpx.Response:
        connects.append(1)
        return _sse_response(body)

    stream: Stream[AssistantStreamEvent] = Stream(path="/threads/t1/runs", item_type=AssistantStreamEvent, connect=connect)
    assert connects == []

    items = list(stream)

    assert connects == [1]
    assert len(items) == 1
    assert isinstance(items[0], MessageDeltaEvent)
    with pytest.raises(RuntimeError, match="already been consumed"):
        iter(stream)


def test_stream_close_before_iteration_prevents_use() -> None:
    stream: Stream[object] = Stream(path="/chat/completions", item_type=None, connect=lambda: _sse_response(""))

    with stream:
        pass

    with pytest.raises(RuntimeError):
        iter(stream)


def test_stream_wraps_transport_errors() -> None:
    class BrokenStream(httpx.SyncByteStream):
        def __iter__(self):
            yield b"data: {\"id\": 1}\n\n"
            raise httpx.ReadError("connection reset")

    def connect() -> httpx.Response:
        return httpx.Response(200, stream=BrokenStream())

    stream: Stream[object] = Stream(path="/chat/completions", item_type=None, connect=connect)
    iterator = iter(stream)

    assert next(iterator) == {"id": 1}
    with pytest.raises(APIConnectionError):
        next(iterator)


def test_async_stream_yields_items_until_done() -> None:
    body = "".join(f"data: {_chunk(i)}\n\n" for i in range(3)) + "data: [DONE]\n\n"

    async def connect() -> httpx.Response:
        return _sse_response(body)

    async def collect() -> list[ChatCompletionChunk]:
        async with AsyncStream(path="/chat/completions", item_type=ChatCompletionChunk, connect=connect) as stream:
            return [item async for item in stream]

    items = asyncio.run(collect())

    assert [item.choices[0].delta.content for item in items] == ["part 0", "part 1", "part 2"]
