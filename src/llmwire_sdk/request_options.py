"""Per-request overrides and the finalized request description."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

Headers = Mapping[str, Optional[str]]


@dataclass(frozen=True)
class RequestOptions:
    method: str | None = None
    path: str | None = None
    query: Mapping[str, object] | None = None
    body: object | None = None
    headers: Headers | None = None
    max_retries: int | None = None
    stream: bool | None = None
    timeout: float | None = None
    idempotency_key: str | None = None
    poll_interval_ms: int | None = None
    # asyncio.Event for AsyncLLMWire, threading.Event for LLMWire
    signal: Any = None


@dataclass(frozen=True)
class FinalRequestOptions:
    """Fully resolved options for one logical call.

    Built once at call start and reused unchanged by every retry attempt.
    """

    method: str
    path: str
    query: Mapping[str, object] | None = None
    body: object | None = None
    headers: Headers | None = None
    max_retries: int | None = None
    stream: bool | None = None
    timeout: float | None = None
    idempotency_key: str | None = None
    poll_interval_ms: int | None = None
    signal: Any = None

    @classmethod
    def build(cls, method: str, path: str, *option_sets: RequestOptions | None) -> "FinalRequestOptions":
        """Merge option sets left to right; later sets win field by field.

        Header mappings are merged key by key rather than replaced, so a call
        site can override or suppress (``None``) a single default header.
        """
        merged: dict[str, Any] = {}
        header_layers: list[Headers] = []
        for options in option_sets:
            if options is None:
                continue
            for field in fields(RequestOptions):
                value = getattr(options, field.name)
                if value is None:
                    continue
                if field.name == "headers":
                    header_layers.append(value)
                    continue
                merged[field.name] = value

        merged.pop("method", None)
        merged.pop("path", None)
        headers = _stack_headers(*header_layers) if header_layers else None
        return cls(method=method.upper(), path=path, headers=headers, **merged)


def _stack_headers(*sources: Headers | None) -> dict[str, str | None]:
    stacked: dict[str, str | None] = {}
    names: dict[str, str] = {}
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            key = str(key)
            previous = names.pop(key.lower(), None)
            if previous is not None:
                stacked.pop(previous, None)
            names[key.lower()] = key
            stacked[key] = None if value is None else str(value)
    return stacked


def merge_headers(*sources: Headers | None) -> dict[str, str]:
    """Resolve a stack of header mappings into the headers actually sent.

    Later sources shadow earlier ones by (case-insensitive) name; a name whose
    final value is ``None`` is suppressed entirely.
    """
    return {key: value for key, value in _stack_headers(*sources).items() if value is not None}
