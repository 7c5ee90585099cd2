"""Helpers that keep signed URLs and tokens out of log output."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit, urlunsplit

REDACTED = "[REDACTED]"
SNIPPET_LIMIT = 100
SECRET_KEYS = frozenset({"token", "uploadtoken", "signeduploadtoken", "signed_upload_token", "authorization"})
SECRET_HEADERS = frozenset({"authorization", "apikey", "x-api-key", "cookie", "proxy-authorization"})


def redact_url(url: str | None) -> str | None:
    """Drop query string and fragment (where signatures live) from ``url``."""
    if not url:
        return url
    parts = urlsplit(url)
    query = REDACTED if parts.query else ""
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))


def truncate(value: str, limit: int = SNIPPET_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + "..."


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Keep header names for diagnostics but hide credential values."""
    return {
        name: REDACTED if name.lower() in SECRET_HEADERS or "token" in name.lower() else value
        for name, value in headers.items()
    }


def safe_snippet(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Summarise a mapping for diagnostics without leaking secrets."""
    snippet: dict[str, Any] = {}
    for key, value in payload.items():
        key_str = str(key)
        if key_str.lower() in SECRET_KEYS:
            snippet[key_str] = REDACTED
        elif isinstance(value, str):
            if "token=" in value:
                value = redact_url(value) or ""
            snippet[key_str] = truncate(value)
        elif isinstance(value, (list, tuple)):
            snippet[key_str] = f"[Array({len(value)})]"
        elif isinstance(value, Mapping):
            snippet[key_str] = f"[Object({len(value)})]"
        else:
            snippet[key_str] = value
    return snippet


__all__ = ["REDACTED", "redact_headers", "redact_url", "safe_snippet", "truncate"]
