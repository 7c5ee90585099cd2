"""Invoke server functions with the caller's bearer token."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx

from ..storage.storage_client import TokenProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class EdgeResponse(Generic[T]):
    """Tagged envelope: exactly one of ``data`` / ``error`` is meaningful."""

    data: T | None = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class EdgeFunctionClient:
    functions_url: str
    anon_key: str
    token_provider: TokenProvider
    timeout_seconds: float = 30.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def call(self, name: str, body: dict[str, Any]) -> EdgeResponse[Any]:
        """POST ``body`` to the named function; HTTP and network failures become ``error``."""
        token = await self.token_provider()
        if not token:
            return EdgeResponse(error="Not authenticated")

        url = f"{self.functions_url.rstrip('/')}/{name}"
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            self.log.warning(
                "edge.request.transport_error",
                extra={"function": name, "error": str(exc)},
            )
            return EdgeResponse(error=f"Network error: {exc.__class__.__name__}")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            message = None
            if isinstance(payload, dict):
                message = payload.get("error") or payload.get("message")
            message = str(message or f"HTTP {response.status_code}")
            self.log.warning(
                "edge.request.failed",
                extra={"function": name, "status_code": response.status_code, "error": message},
            )
            return EdgeResponse(error=message, status_code=response.status_code)

        return EdgeResponse(data=payload, status_code=response.status_code)


__all__ = ["EdgeFunctionClient", "EdgeResponse"]
