"""Strategies for minting signed read URLs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..exceptions import NotFoundTransient, StorageError, TransportError, is_transient_not_found
from ..storage.storage_client import StorageClient
from .edge_client import EdgeFunctionClient
from .orchestrator import FINALIZE_FUNCTION

SIGN_ONLY_ACTION = "SIGN_ONLY"


class UrlSigner(Protocol):
    async def sign(
        self, bucket: str, path: str, ttl_seconds: int, fortune_id: str | None = None
    ) -> str | None: ...


@dataclass(slots=True)
class StorageUrlSigner:
    """Sign directly against object storage with the caller's credentials."""

    storage: StorageClient

    async def sign(
        self, bucket: str, path: str, ttl_seconds: int, fortune_id: str | None = None
    ) -> str | None:
        try:
            return await self.storage.create_signed_url(bucket, path, ttl_seconds)
        except StorageError as exc:
            if exc.is_not_found:
                raise NotFoundTransient(exc.message) from exc
            raise


@dataclass(slots=True)
class EdgeUrlSigner:
    """Ask the finalize function to re-sign the fortune's stored photo.

    The server resolves the object from its media record, so ``bucket`` and
    ``path`` only serve as the cache identity here.
    """

    edge: EdgeFunctionClient

    async def sign(
        self, bucket: str, path: str, ttl_seconds: int, fortune_id: str | None = None
    ) -> str | None:
        if not fortune_id:
            raise ValueError("fortune_id is required for edge signing")
        response = await self.edge.call(
            FINALIZE_FUNCTION,
            {"action": SIGN_ONLY_ACTION, "fortune_id": fortune_id, "ttlSec": ttl_seconds},
        )
        if not response.ok:
            reason = response.error or "Signing failed"
            if response.status_code == 404 or is_transient_not_found(reason):
                raise NotFoundTransient(reason)
            raise TransportError(reason, response_status=response.status_code)
        data = response.data if isinstance(response.data, dict) else {}
        signed_url = data.get("signedUrl")
        return signed_url if isinstance(signed_url, str) and signed_url else None


__all__ = ["EdgeUrlSigner", "StorageUrlSigner", "UrlSigner"]
