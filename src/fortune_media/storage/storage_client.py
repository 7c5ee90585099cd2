"""Object storage REST client (``/storage/v1/object`` API)."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, quote, urlsplit

import httpx

from ..exceptions import StorageError
from ..utils.redaction import redact_url

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]


@dataclass(slots=True)
class SignedUpload:
    """Result of ``create_signed_upload_url``."""

    url: str
    token: str | None
    path: str


@dataclass(slots=True)
class StorageClient:
    """Talk to the storage API with either the service key or a user token.

    ``token_provider`` supplies the bearer credential per request (client side);
    when absent the ``api_key`` itself is used as the bearer (service role).
    """

    base_url: str
    api_key: str
    token_provider: TokenProvider | None = None
    timeout_seconds: float = 15.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def create_signed_upload_url(
        self, bucket: str, path: str, expires_in: int, *, upsert: bool = True
    ) -> SignedUpload:
        """Mint a pre-signed upload endpoint for ``bucket/path``."""
        headers = await self._headers()
        if upsert:
            headers["x-upsert"] = "true"
        endpoint = self._object_url("object/upload/sign", bucket, path)
        body = await self._request(
            "POST",
            endpoint,
            operation="create_signed_upload_url",
            headers=headers,
            json={"expiresIn": expires_in},
        )
        relative = body.get("url")
        if not relative:
            raise StorageError("Storage did not return an upload url")
        url = self._absolute(relative)
        token = body.get("token") or _query_token(url)
        self.log.info(
            "storage.upload_url.created",
            extra={"bucket": bucket, "path": path, "url": redact_url(url)},
        )
        return SignedUpload(url=url, token=token, path=path)

    async def upload_to_signed_url(
        self,
        bucket: str,
        path: str,
        token: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        """Upload bytes using a signed-upload token; returns the stored key."""
        endpoint = self._object_url("object/upload/sign", bucket, path)
        headers = {"apikey": self.api_key}
        if upsert:
            headers["x-upsert"] = "true"
        filename = path.rsplit("/", 1)[-1]
        body = await self._request(
            "PUT",
            endpoint,
            operation="upload_to_signed_url",
            params={"token": token},
            headers=headers,
            files={"file": (filename, data, content_type)},
        )
        return str(body.get("Key") or body.get("path") or path)

    async def upload_object(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """Upload bytes directly (service role)."""
        headers = await self._headers()
        headers["Content-Type"] = content_type
        if upsert:
            headers["x-upsert"] = "true"
        endpoint = self._object_url("object", bucket, path)
        body = await self._request(
            "POST", endpoint, operation="upload_object", headers=headers, content=data
        )
        return str(body.get("Key") or path)

    async def remove_object(self, bucket: str, paths: list[str]) -> int:
        """Delete objects by key; returns how many the storage API reported removed."""
        headers = await self._headers()
        endpoint = f"{self.base_url.rstrip('/')}/object/{quote(bucket)}"
        body = await self._request(
            "DELETE", endpoint, operation="remove_object", headers=headers, json={"prefixes": paths}
        )
        removed = body.get("removed")
        return int(removed) if isinstance(removed, int) else len(paths)

    async def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """Mint a time-limited read URL for ``bucket/path``."""
        headers = await self._headers()
        endpoint = self._object_url("object/sign", bucket, path)
        body = await self._request(
            "POST",
            endpoint,
            operation="create_signed_url",
            headers=headers,
            json={"expiresIn": expires_in},
        )
        relative = body.get("signedURL") or body.get("signedUrl")
        if not relative:
            raise StorageError("Storage did not return a signed url")
        return self._absolute(relative)

    async def _request(
        self, method: str, endpoint: str, *, operation: str, **kwargs: Any
    ) -> Mapping[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as exc:
            self.log.warning(
                "storage.request.transport_error",
                extra={"operation": operation, "url": redact_url(endpoint), "error": str(exc)},
            )
            raise StorageError(f"Storage request failed: {exc.__class__.__name__}") from exc
        return self._checked_json(response, operation=operation)

    async def _headers(self) -> dict[str, str]:
        bearer = self.api_key
        if self.token_provider is not None:
            bearer = await self.token_provider() or self.api_key
        return {"apikey": self.api_key, "Authorization": f"Bearer {bearer}"}

    def _object_url(self, prefix: str, bucket: str, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{prefix}/{quote(bucket)}/{quote(path)}"

    def _absolute(self, relative: str) -> str:
        if relative.startswith("http://") or relative.startswith("https://"):
            return relative
        return f"{self.base_url.rstrip('/')}/{relative.lstrip('/')}"

    def _checked_json(self, response: httpx.Response, *, operation: str) -> Mapping[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if 200 <= response.status_code < 300:
            return body
        message = body.get("message") or body.get("error") or f"status {response.status_code}"
        storage_status = _storage_status(body, response.status_code)
        self.log.warning(
            "storage.request.failed",
            extra={"operation": operation, "status_code": response.status_code, "storage_message": message},
        )
        raise StorageError(str(message), storage_status=storage_status)


def _storage_status(body: Mapping[str, Any], http_status: int) -> int:
    # The storage API reports the logical status (e.g. "404") inside a 400 response.
    raw = body.get("statusCode")
    try:
        return int(raw) if raw is not None else http_status
    except (TypeError, ValueError):
        return http_status


def _query_token(url: str) -> str | None:
    values = parse_qs(urlsplit(url).query).get("token")
    return values[0] if values else None


__all__ = ["SignedUpload", "StorageClient", "TokenProvider"]
