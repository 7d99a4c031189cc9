"""Header redaction and URL / header validation helpers."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlparse


SENSITIVE_HEADERS = {
    "authorization",
    "api-key",
    "x-api-key",
    "openai-organization",
    "openai-project",
}


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def validate_base_url(url: str, *, allow_http: bool = False) -> None:
    """Validate base URL to avoid scheme abuse and plaintext credentials."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("base_url must include scheme and host")
    if parsed.scheme not in {"http", "https"}:
        raise ValueError(f"Unsupported base_url scheme: {parsed.scheme}")
    if parsed.scheme == "http" and not allow_http:
        allowed = {"localhost", "127.0.0.1", "::1"}
        host = (parsed.hostname or "").lower()
        if host not in allowed:
            raise ValueError("Non-HTTPS base_url is not allowed without allow_http=True")
    if "\x00" in url:
        raise ValueError("Invalid base_url")


def parse_poll_interval(raw: str | None) -> int | None:
    """Parse the server's ``openai-poll-after-ms`` hint into milliseconds."""
    if raw is None:
        return None

    raw = raw.strip()
    if not raw:
        return None

    try:
        value = int(float(raw))
    except (ValueError, OverflowError):
        return None
    if value < 0:
        return None
    return value
