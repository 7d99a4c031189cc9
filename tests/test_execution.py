from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

import httpx
import pytest

from llmwire_sdk._execution import APIFuture, APIFutureState, parse_body, race_signal
from llmwire_sdk.exceptions import (
    APIConnectionError,
    APIResponseValidationError,
    APIUserAbortError,
    NotFoundError,
)
from llmwire_sdk.models import Thread


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.example.test/v1")


def test_parse_body_handles_empty_and_typed_bodies() -> None:
    assert parse_body("", None) is None
    assert parse_body("  \n", Optional[Thread]) is None
    assert parse_body("{\"a\": 1}", None) == {"a": 1}
    assert parse_body("{\"id\": \"t1\"}", Thread) == Thread(id="t1")


def test_parse_body_failure_is_validation_error() -> None:
    with pytest.raises(APIResponseValidationError) as exc_info:
        parse_body("{\"object\": \"thread\"}", Thread)

    assert exc_info.value.body == "{\"object\": \"thread\"}"


def test_parse_body_empty_body_for_typed_call_is_validation_error() -> None:
    with pytest.raises(APIResponseValidationError, match="empty"):
        parse_body("", Thread)


def test_future_advances_one_state_per_step() -> None:
    async def run() -> list[APIFutureState]:
        async with _client(lambda request: httpx.Response(200, json={"id": "t1"})) as http:
            future: APIFuture[Thread] = APIFuture(http, http.build_request("GET", "/threads/t1"), cast_to=Thread)
            states = [future.state]
            while not future.done:
                states.append(await future.advance())
            assert future.result() == Thread(id="t1")
            return states

    assert asyncio.run(run()) == [
        APIFutureState.INIT,
        APIFutureState.REQUEST_SENT,
        APIFutureState.RESPONSE_TEXT_COMPLETED,
        APIFutureState.RESPONSE_RECEIVED,
    ]


def test_future_result_is_taken_once() -> None:
    async def run() -> None:
        async with _client(lambda request: httpx.Response(200, json={"ok": True})) as http:
            future: APIFuture[dict] = APIFuture(http, http.build_request("GET", "/ping"))
            with pytest.raises(RuntimeError, match="not complete"):
                future.result()
            assert await future == {"ok": True}
            with pytest.raises(RuntimeError, match="already been consumed"):
                future.result()

    asyncio.run(run())


def test_future_raises_status_error_after_request_sent() -> None:
    async def run() -> APIFuture[object]:
        async with _client(lambda request: httpx.Response(404, text="no such thread")) as http:
            future: APIFuture[object] = APIFuture(http, http.build_request("GET", "/threads/missing"))
            await future.advance()
            assert future.state is APIFutureState.REQUEST_SENT
            with pytest.raises(NotFoundError) as exc_info:
                await future.advance()
            assert exc_info.value.status_code == 404
            assert exc_info.value.body == "no such thread"
            return future

    future = asyncio.run(run())
    assert future.state is APIFutureState.REQUEST_SENT
    assert future.response is not None
    assert future.response.is_closed


def test_future_maps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async def run() -> None:
        async with _client(handler) as http:
            with pytest.raises(APIConnectionError):
                await APIFuture(http, http.build_request("GET", "/ping"))

    asyncio.run(run())


def test_future_aborts_when_signal_already_set() -> None:
    async def run() -> None:
        signal = asyncio.Event()
        signal.set()
        async with _client(lambda request: httpx.Response(200, json={})) as http:
            future: APIFuture[object] = APIFuture(http, http.build_request("GET", "/ping"), signal=signal)
            await future.advance()
            with pytest.raises(APIUserAbortError):
                await future.advance()

    asyncio.run(run())


def test_race_signal_cancels_pending_work() -> None:
    async def run() -> asyncio.Future[None]:
        signal = asyncio.Event()
        sleeper = asyncio.ensure_future(asyncio.sleep(30))
        asyncio.get_running_loop().call_later(0.01, signal.set)
        with pytest.raises(APIUserAbortError):
            await race_signal(sleeper, signal)
        with contextlib.suppress(asyncio.CancelledError):
            await sleeper
        return sleeper

    sleeper = asyncio.run(run())
    assert sleeper.cancelled()
