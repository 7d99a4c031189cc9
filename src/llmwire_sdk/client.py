"""Main synchronous and asynchronous clients for the chat, thread and run APIs."""

from __future__ import annotations

import asyncio
import dataclasses
import os
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, TypeVar, cast

import httpx
from pydantic import BaseModel

from ._execution import APIFuture, parse_body, race_signal, transport_error
from ._logs import get_logger, setup_logging
from .exceptions import (
    APIConnectionError,
    APIStatusError,
    APIUserAbortError,
    LLMWireError,
    make_status_error,
)
from .models import (
    RUN_PENDING_STATUSES,
    AssistantStreamEvent,
    ChatCompletion,
    ChatCompletionChunk,
    Message,
    Run,
    Thread,
    ThreadDeleted,
)
from .request_options import FinalRequestOptions, Headers, RequestOptions, merge_headers
from .security import parse_poll_interval, sanitize_headers, validate_base_url
from .streams import AsyncStream, Stream

R = TypeVar("R")

log = get_logger("llmwire_sdk.client")

USER_AGENT = "llmwire-python-sdk/0.1.0"

ASSISTANTS_BETA_HEADERS: Headers = {"OpenAI-Beta": "assistants=v2"}
POLL_HELPER_HEADER = "X-Stainless-Poll-Helper"
CUSTOM_POLL_INTERVAL_HEADER = "X-Stainless-Custom-Poll-Interval"
POLL_AFTER_HEADER = "openai-poll-after-ms"

_BODYLESS_METHODS = frozenset({"GET", "HEAD"})
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def _coerce_json_payload(payload: Any) -> Any:
    if payload is None:
        return None
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", exclude_none=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    return payload


def _streaming_body(payload: Any) -> dict[str, Any]:
    body = _coerce_json_payload(payload)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise LLMWireError("streaming request body must be a mapping or model")
    return {**body, "stream": True}


def _coerce_query_params(query: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if query is None:
        return None
    normalized: dict[str, Any] = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            normalized[key] = ["" if v is None else v for v in value]
            continue
        if isinstance(value, datetime):
            normalized[key] = value.isoformat()
            continue
        normalized[key] = value
    return normalized or None


def _run_is_terminal(run: Run) -> bool:
    return run.status not in RUN_PENDING_STATUSES


class _BaseLLMWireClient:
    default_base_url = "https://api.openai.com/v1"
    default_timeout = 600.0
    default_max_retries = 2
    initial_retry_delay = 0.5
    default_poll_interval_ms = 5000

    def __init__(
        self,
        *,
        api_key: str | None = None,
        organization: str | None = None,
        project: str | None = None,
        base_url: str | None = None,
        timeout: float = default_timeout,
        max_retries: int = default_max_retries,
        default_headers: Headers | None = None,
        allow_http: bool = False,
        api_key_env_var: str = "OPENAI_API_KEY",
        organization_env_var: str = "OPENAI_ORG_ID",
        project_env_var: str = "OPENAI_PROJECT_ID",
        base_url_env_var: str = "OPENAI_BASE_URL",
    ) -> None:
        setup_logging()
        api_key = api_key or os.getenv(api_key_env_var)
        if not api_key:
            raise LLMWireError(
                f"The {api_key_env_var} environment variable is missing or empty; either provide it, "
                "or instantiate the client with an api_key option."
            )
        self.api_key = api_key
        self.organization = organization or os.getenv(organization_env_var)
        self.project = project or os.getenv(project_env_var)
        self.base_url = (base_url or os.getenv(base_url_env_var) or self.default_base_url).rstrip("/")
        validate_base_url(self.base_url, allow_http=allow_http)
        self.timeout = timeout
        self.max_retries = max_retries

        # Client-level defaults; every call merges its own options over these.
        self._default_options = RequestOptions(
            headers=default_headers,
            max_retries=max_retries,
            timeout=timeout,
        )
        self._client_kwargs = {
            "base_url": self.base_url,
            "timeout": timeout,
            "trust_env": False,
        }

    def default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def auth_headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        if self.project:
            headers["OpenAI-Project"] = self.project
        return headers

    @staticmethod
    def _path(path: str) -> str:
        if "://" in path:
            raise ValueError("Full URLs are not allowed in path for request method")
        if not path.startswith("/"):
            raise ValueError("Path must be absolute and start with '/'")
        if "\x00" in path:
            raise ValueError("Invalid path characters")
        return path

    def _final_options(self, method: str, path: str, *option_sets: RequestOptions | None) -> FinalRequestOptions:
        return FinalRequestOptions.build(method, self._path(path), self._default_options, *option_sets)

    def _headers(self, options: FinalRequestOptions) -> dict[str, str]:
        idempotency = {"Idempotency-Key": options.idempotency_key} if options.idempotency_key else None
        return merge_headers(self.default_headers(), self.auth_headers(), idempotency, options.headers)

    def _build_request_timeout(self, options: FinalRequestOptions) -> float:
        timeout = options.timeout if options.timeout is not None else self.timeout
        if timeout <= 0:
            raise LLMWireError("timeout must be greater than 0")
        return float(timeout)

    def _build_max_retries(self, options: FinalRequestOptions) -> int:
        max_retries = options.max_retries if options.max_retries is not None else self.max_retries
        if max_retries < 0:
            raise LLMWireError("max_retries must be non-negative")
        return int(max_retries)

    def _json_body(self, options: FinalRequestOptions) -> Any:
        body = _coerce_json_payload(options.body)
        if options.method in _BODYLESS_METHODS:
            if body is not None:
                log.debug("Dropping request body for %s %s", options.method, options.path)
            return None
        if body is None and options.method in _BODY_METHODS:
            return {}
        return body

    def _build_request(self, http: httpx.Client | httpx.AsyncClient, options: FinalRequestOptions) -> httpx.Request:
        headers = self._headers(options)
        log.debug("Request: %s %s headers=%s", options.method, options.path, sanitize_headers(headers))
        return http.build_request(
            options.method,
            options.path,
            headers=headers,
            params=_coerce_query_params(options.query),
            json=self._json_body(options),
            timeout=self._build_request_timeout(options),
        )

    def _retry_delay(self, retry_number: int) -> float:
        return self.initial_retry_delay * (2 ** max(0, retry_number - 1))

    def _log_retry(self, options: FinalRequestOptions, retry_number: int, retries: int, delay: float, exc: Exception) -> None:
        log.info(
            "Retrying %s %s in %.2fs (retry %d of %d): %s",
            options.method,
            options.path,
            delay,
            retry_number,
            retries,
            exc,
        )

    def _poll_options(self, options: RequestOptions | None) -> list[RequestOptions]:
        options = options or RequestOptions()
        headers = {POLL_HELPER_HEADER: "true"}
        if options.poll_interval_ms is not None:
            headers[CUSTOM_POLL_INTERVAL_HEADER] = str(options.poll_interval_ms)
        return [
            RequestOptions(headers=headers),
            dataclasses.replace(options, body=None, query=None, stream=None),
        ]

    def _poll_interval_ms(self, options: FinalRequestOptions, response: httpx.Response) -> int:
        if options.poll_interval_ms is not None:
            return options.poll_interval_ms
        hinted = parse_poll_interval(response.headers.get(POLL_AFTER_HEADER))
        if hinted is not None:
            return hinted
        return self.default_poll_interval_ms


class LLMWire(_BaseLLMWireClient):
    """Synchronous client."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        organization: str | None = None,
        project: str | None = None,
        base_url: str | None = None,
        timeout: float = _BaseLLMWireClient.default_timeout,
        max_retries: int = _BaseLLMWireClient.default_max_retries,
        default_headers: Headers | None = None,
        httpx_client: httpx.Client | None = None,
        allow_http: bool = False,
    ) -> None:
        super().__init__(
            api_key=api_key,
            organization=organization,
            project=project,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            default_headers=default_headers,
            allow_http=allow_http,
        )
        self._httpx = httpx_client or httpx.Client(**self._client_kwargs)

    def __enter__(self) -> "LLMWire":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._httpx.close()

    def _sleep(self, seconds: float, signal: Any = None) -> None:
        """Wait between attempts or polls; a set ``signal`` aborts the wait."""
        if signal is None:
            time.sleep(seconds)
        elif signal.wait(seconds):
            raise APIUserAbortError()

    def _with_retries(self, options: FinalRequestOptions, attempt: Callable[[httpx.Request], R]) -> R:
        retries = self._build_max_retries(options)
        retry_number = 0
        while True:
            if options.signal is not None and options.signal.is_set():
                raise APIUserAbortError()
            request = self._build_request(self._httpx, options)
            try:
                return attempt(request)
            except (APIConnectionError, APIStatusError) as exc:
                if retry_number >= retries:
                    raise
                retry_number += 1
                delay = self._retry_delay(retry_number)
                self._log_retry(options, retry_number, retries, delay, exc)
                self._sleep(delay, options.signal)

    def _send_once(self, request: httpx.Request, cast_to: Any) -> tuple[Any, httpx.Response]:
        try:
            response = self._httpx.send(request)
        except httpx.TransportError as exc:
            raise transport_error(exc) from exc
        if not response.is_success:
            raise make_status_error(response.status_code, response.text, response.headers)
        return parse_body(response.text, cast_to), response

    def _open_stream(self, request: httpx.Request) -> httpx.Response:
        try:
            response = self._httpx.send(request, stream=True)
        except httpx.TransportError as exc:
            raise transport_error(exc) from exc
        if not response.is_success:
            try:
                response.read()
            except httpx.TransportError as exc:
                raise transport_error(exc) from exc
            finally:
                response.close()
            raise make_status_error(response.status_code, response.text, response.headers)
        return response

    def _request(self, options: FinalRequestOptions, cast_to: Any) -> tuple[Any, httpx.Response]:
        return self._with_retries(options, lambda request: self._send_once(request, cast_to))

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any | None = None,
        query: Mapping[str, Any] | None = None,
        cast_to: Any = None,
        headers: Headers | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        final = self._final_options(method, path, RequestOptions(body=body, query=query, headers=headers), options)
        value, _ = self._request(final, cast_to)
        return value

    def stream(
        self,
        method: str,
        path: str,
        *,
        body: Any | None = None,
        query: Mapping[str, Any] | None = None,
        event_type: Any = None,
        headers: Headers | None = None,
        options: RequestOptions | None = None,
    ) -> Stream[Any]:
        final = self._final_options(
            method,
            path,
            RequestOptions(body=body, query=query, headers=headers, stream=True),
            options,
        )
        return Stream(path=final.path, item_type=event_type, connect=lambda: self._with_retries(final, self._open_stream))

    def poll(
        self,
        path: str,
        *,
        cast_to: Any,
        is_terminal: Callable[[Any], bool],
        headers: Headers | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        final = self._final_options("GET", path, RequestOptions(headers=headers), *self._poll_options(options))
        while True:
            value, response = self._request(final, cast_to)
            if is_terminal(value):
                return value
            interval = self._poll_interval_ms(final, response)
            log.debug("Polling %s again in %dms", final.path, interval)
            self._sleep(interval / 1000, final.signal)

    def get(self, path: str, *, cast_to: Any = None, query: Mapping[str, Any] | None = None,
            headers: Headers | None = None, options: RequestOptions | None = None) -> Any:
        return self.request("GET", path, query=query, cast_to=cast_to, headers=headers, options=options)

    def post(self, path: str, *, body: Any | None = None, cast_to: Any = None,
             headers: Headers | None = None, options: RequestOptions | None = None) -> Any:
        return self.request("POST", path, body=body, cast_to=cast_to, headers=headers, options=options)

    def delete(self, path: str, *, cast_to: Any = None, headers: Headers | None = None,
               options: RequestOptions | None = None) -> Any:
        return self.request("DELETE", path, cast_to=cast_to, headers=headers, options=options)

    def create_chat_completion(self, body: Mapping[str, Any] | BaseModel, *, options: RequestOptions | None = None) -> ChatCompletion:
        return cast(ChatCompletion, self.post("/chat/completions", body=body, cast_to=ChatCompletion, options=options))

    def stream_chat_completion(
        self,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Stream[ChatCompletionChunk]:
        return self.stream(
            "POST",
            "/chat/completions",
            body=_streaming_body(body),
            event_type=ChatCompletionChunk,
            options=options,
        )

    def create_thread(self, body: Mapping[str, Any] | BaseModel | None = None, *, options: RequestOptions | None = None) -> Thread:
        return cast(Thread, self.post("/threads", body=body, cast_to=Thread, headers=ASSISTANTS_BETA_HEADERS, options=options))

    def retrieve_thread(self, thread_id: str, *, options: RequestOptions | None = None) -> Thread:
        return cast(Thread, self.get(f"/threads/{thread_id}", cast_to=Thread, headers=ASSISTANTS_BETA_HEADERS, options=options))

    def delete_thread(self, thread_id: str, *, options: RequestOptions | None = None) -> ThreadDeleted:
        return cast(
            ThreadDeleted,
            self.delete(f"/threads/{thread_id}", cast_to=ThreadDeleted, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    def create_message(
        self,
        thread_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Message:
        return cast(
            Message,
            self.post(f"/threads/{thread_id}/messages", body=body, cast_to=Message, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    def create_run(self, thread_id: str, body: Mapping[str, Any] | BaseModel, *, options: RequestOptions | None = None) -> Run:
        return cast(Run, self.post(f"/threads/{thread_id}/runs", body=body, cast_to=Run, headers=ASSISTANTS_BETA_HEADERS, options=options))

    def retrieve_run(self, thread_id: str, run_id: str, *, options: RequestOptions | None = None) -> Run:
        return cast(Run, self.get(f"/threads/{thread_id}/runs/{run_id}", cast_to=Run, headers=ASSISTANTS_BETA_HEADERS, options=options))

    def update_run(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        return cast(
            Run,
            self.post(f"/threads/{thread_id}/runs/{run_id}", body=body, cast_to=Run, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    def cancel_run(self, thread_id: str, run_id: str, *, options: RequestOptions | None = None) -> Run:
        return cast(
            Run,
            self.post(f"/threads/{thread_id}/runs/{run_id}/cancel", cast_to=Run, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    def poll_run(self, thread_id: str, run_id: str, *, options: RequestOptions | None = None) -> Run:
        """Re-fetch a run until it leaves the queued / in-progress / cancelling states."""
        return cast(
            Run,
            self.poll(
                f"/threads/{thread_id}/runs/{run_id}",
                cast_to=Run,
                is_terminal=_run_is_terminal,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    def create_and_poll_run(
        self,
        thread_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        run = self.create_run(thread_id, body, options=options)
        return self.poll_run(thread_id, run.id, options=options)

    def stream_run(
        self,
        thread_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Stream[AssistantStreamEvent]:
        return self.stream(
            "POST",
            f"/threads/{thread_id}/runs",
            body=_streaming_body(body),
            event_type=AssistantStreamEvent,
            headers=ASSISTANTS_BETA_HEADERS,
            options=options,
        )

    def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        return cast(
            Run,
            self.post(
                f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
                body=body,
                cast_to=Run,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    def submit_tool_outputs_and_poll(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        run = self.submit_tool_outputs(thread_id, run_id, body, options=options)
        return self.poll_run(thread_id, run.id, options=options)

    def submit_tool_outputs_stream(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Stream[AssistantStreamEvent]:
        return self.stream(
            "POST",
            f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
            body=_streaming_body(body),
            event_type=AssistantStreamEvent,
            headers=ASSISTANTS_BETA_HEADERS,
            options=options,
        )


class AsyncLLMWire(_BaseLLMWireClient):
    """Asynchronous client."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        organization: str | None = None,
        project: str | None = None,
        base_url: str | None = None,
        timeout: float = _BaseLLMWireClient.default_timeout,
        max_retries: int = _BaseLLMWireClient.default_max_retries,
        default_headers: Headers | None = None,
        httpx_client: httpx.AsyncClient | None = None,
        allow_http: bool = False,
    ) -> None:
        super().__init__(
            api_key=api_key,
            organization=organization,
            project=project,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            default_headers=default_headers,
            allow_http=allow_http,
        )
        self._httpx = httpx_client or httpx.AsyncClient(**self._client_kwargs)

    async def __aenter__(self) -> "AsyncLLMWire":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._httpx.aclose()

    async def _sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def _pause(self, seconds: float, signal: asyncio.Event | None) -> None:
        await race_signal(asyncio.ensure_future(self._sleep(seconds)), signal)

    async def _with_retries(
        self,
        options: FinalRequestOptions,
        attempt: Callable[[httpx.Request], Awaitable[R]],
    ) -> R:
        retries = self._build_max_retries(options)
        retry_number = 0
        while True:
            if options.signal is not None and options.signal.is_set():
                raise APIUserAbortError()
            request = self._build_request(self._httpx, options)
            try:
                return await attempt(request)
            except (APIConnectionError, APIStatusError) as exc:
                if retry_number >= retries:
                    raise
                retry_number += 1
                delay = self._retry_delay(retry_number)
                self._log_retry(options, retry_number, retries, delay, exc)
                await self._pause(delay, options.signal)

    async def _open_stream(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._httpx.send(request, stream=True)
        except httpx.TransportError as exc:
            raise transport_error(exc) from exc
        if not response.is_success:
            try:
                await response.aread()
            except httpx.TransportError as exc:
                raise transport_error(exc) from exc
            finally:
                await response.aclose()
            raise make_status_error(response.status_code, response.text, response.headers)
        return response

    async def _request(self, options: FinalRequestOptions, cast_to: Any) -> tuple[Any, httpx.Response]:
        async def attempt(request: httpx.Request) -> tuple[Any, httpx.Response]:
            future: APIFuture[Any] = APIFuture(self._httpx, request, cast_to=cast_to, signal=options.signal)
            value = await future
            if future.response is None:
                raise RuntimeError("APIFuture completed without a response")
            return value, future.response

        return await self._with_retries(options, attempt)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any | None = None,
        query: Mapping[str, Any] | None = None,
        cast_to: Any = None,
        headers: Headers | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        final = self._final_options(method, path, RequestOptions(body=body, query=query, headers=headers), options)
        value, _ = await self._request(final, cast_to)
        return value

    def stream(
        self,
        method: str,
        path: str,
        *,
        body: Any | None = None,
        query: Mapping[str, Any] | None = None,
        event_type: Any = None,
        headers: Headers | None = None,
        options: RequestOptions | None = None,
    ) -> AsyncStream[Any]:
        final = self._final_options(
            method,
            path,
            RequestOptions(body=body, query=query, headers=headers, stream=True),
            options,
        )
        return AsyncStream(path=final.path, item_type=event_type, connect=lambda: self._with_retries(final, self._open_stream))

    async def poll(
        self,
        path: str,
        *,
        cast_to: Any,
        is_terminal: Callable[[Any], bool],
        headers: Headers | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        final = self._final_options("GET", path, RequestOptions(headers=headers), *self._poll_options(options))
        while True:
            value, response = await self._request(final, cast_to)
            if is_terminal(value):
                return value
            interval = self._poll_interval_ms(final, response)
            log.debug("Polling %s again in %dms", final.path, interval)
            await self._pause(interval / 1000, final.signal)

    async def get(self, path: str, *, cast_to: Any = None, query: Mapping[str, Any] | None = None,
                  headers: Headers | None = None, options: RequestOptions | None = None) -> Any:
        return await self.request("GET", path, query=query, cast_to=cast_to, headers=headers, options=options)

    async def post(self, path: str, *, body: Any | None = None, cast_to: Any = None,
                   headers: Headers | None = None, options: RequestOptions | None = None) -> Any:
        return await self.request("POST", path, body=body, cast_to=cast_to, headers=headers, options=options)

    async def delete(self, path: str, *, cast_to: Any = None, headers: Headers | None = None,
                     options: RequestOptions | None = None) -> Any:
        return await self.request("DELETE", path, cast_to=cast_to, headers=headers, options=options)

    async def create_chat_completion(
        self,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> ChatCompletion:
        return cast(ChatCompletion, await self.post("/chat/completions", body=body, cast_to=ChatCompletion, options=options))

    def stream_chat_completion(
        self,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> AsyncStream[ChatCompletionChunk]:
        return self.stream(
            "POST",
            "/chat/completions",
            body=_streaming_body(body),
            event_type=ChatCompletionChunk,
            options=options,
        )

    async def create_thread(
        self,
        body: Mapping[str, Any] | BaseModel | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Thread:
        return cast(Thread, await self.post("/threads", body=body, cast_to=Thread, headers=ASSISTANTS_BETA_HEADERS, options=options))

    async def retrieve_thread(self, thread_id: str, *, options: RequestOptions | None = None) -> Thread:
        return cast(
            Thread,
            await self.get(f"/threads/{thread_id}", cast_to=Thread, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    async def delete_thread(self, thread_id: str, *, options: RequestOptions | None = None) -> ThreadDeleted:
        return cast(
            ThreadDeleted,
            await self.delete(f"/threads/{thread_id}", cast_to=ThreadDeleted, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    async def create_message(
        self,
        thread_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Message:
        return cast(
            Message,
            await self.post(
                f"/threads/{thread_id}/messages",
                body=body,
                cast_to=Message,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    async def create_run(self, thread_id: str, body: Mapping[str, Any] | BaseModel, *, options: RequestOptions | None = None) -> Run:
        return cast(
            Run,
            await self.post(f"/threads/{thread_id}/runs", body=body, cast_to=Run, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    async def retrieve_run(self, thread_id: str, run_id: str, *, options: RequestOptions | None = None) -> Run:
        return cast(
            Run,
            await self.get(f"/threads/{thread_id}/runs/{run_id}", cast_to=Run, headers=ASSISTANTS_BETA_HEADERS, options=options),
        )

    async def update_run(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        return cast(
            Run,
            await self.post(
                f"/threads/{thread_id}/runs/{run_id}",
                body=body,
                cast_to=Run,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    async def cancel_run(self, thread_id: str, run_id: str, *, options: RequestOptions | None = None) -> Run:
        return cast(
            Run,
            await self.post(
                f"/threads/{thread_id}/runs/{run_id}/cancel",
                cast_to=Run,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    async def poll_run(self, thread_id: str, run_id: str, *, options: RequestOptions | None = None) -> Run:
        return cast(
            Run,
            await self.poll(
                f"/threads/{thread_id}/runs/{run_id}",
                cast_to=Run,
                is_terminal=_run_is_terminal,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    async def create_and_poll_run(
        self,
        thread_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        run = await self.create_run(thread_id, body, options=options)
        return await self.poll_run(thread_id, run.id, options=options)

    def stream_run(
        self,
        thread_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> AsyncStream[AssistantStreamEvent]:
        return self.stream(
            "POST",
            f"/threads/{thread_id}/runs",
            body=_streaming_body(body),
            event_type=AssistantStreamEvent,
            headers=ASSISTANTS_BETA_HEADERS,
            options=options,
        )

    async def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        return cast(
            Run,
            await self.post(
                f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
                body=body,
                cast_to=Run,
                headers=ASSISTANTS_BETA_HEADERS,
                options=options,
            ),
        )

    async def submit_tool_outputs_and_poll(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> Run:
        run = await self.submit_tool_outputs(thread_id, run_id, body, options=options)
        return await self.poll_run(thread_id, run.id, options=options)

    def submit_tool_outputs_stream(
        self,
        thread_id: str,
        run_id: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        options: RequestOptions | None = None,
    ) -> AsyncStream[AssistantStreamEvent]:
        return self.stream(
            "POST",
            f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
            body=_streaming_body(body),
            event_type=AssistantStreamEvent,
            headers=ASSISTANTS_BETA_HEADERS,
            options=options,
        )
