"""Finalize uploaded photos into media records and sign read URLs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from ..exceptions import MediaPersistenceError, MissingFieldsError, StorageError
from ..repositories.media_record_repository import MediaRecordRepository
from ..storage.paths import strip_bucket_prefix
from ..storage.storage_client import StorageClient
from .access import MediaAccessPolicy
from .media_models import FinalizeOutcome, FinalizeRequest, MediaRecord
from .validation import optional_int

logger = structlog.get_logger(__name__)

DEFAULT_SIGN_TTL_SECONDS = 300
MAX_SIGN_TTL_SECONDS = 3600


def _first(body: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = body.get(key)
        if value is not None:
            return value
    return None


def parse_finalize_body(body: Mapping[str, Any], default_bucket: str = "photos") -> FinalizeRequest:
    """Accept the historical field aliases and report every missing field at once."""
    fortune_id = body.get("fortune_id")
    bucket = _first(body, "bucket", "bucket_name") or default_bucket
    raw_path = _first(body, "path", "bucketRelativePath", "dbPath", "db_path")
    mime = _first(body, "mime", "mime_type")

    missing: list[str] = []
    if not fortune_id or not isinstance(fortune_id, str):
        missing.append("fortune_id")
    if not raw_path or not isinstance(raw_path, str):
        missing.append("path (or bucketRelativePath/dbPath/db_path)")
    if not mime or not isinstance(mime, str):
        missing.append("mime (or mime_type)")
    if missing:
        raise MissingFieldsError(missing)

    return FinalizeRequest(
        fortune_id=fortune_id,
        bucket=str(bucket),
        path=strip_bucket_prefix(str(bucket), raw_path),
        mime=mime,
        width=optional_int(body.get("width")),
        height=optional_int(body.get("height")),
        size_bytes=optional_int(body.get("size_bytes")),
    )


def clamp_ttl(value: Any) -> int:
    ttl = optional_int(value)
    if ttl is None:
        return DEFAULT_SIGN_TTL_SECONDS
    return max(1, min(ttl, MAX_SIGN_TTL_SECONDS))


@dataclass(slots=True)
class FinalizeService:
    access: MediaAccessPolicy
    media_repo: MediaRecordRepository
    storage: StorageClient
    signed_url_ttl_seconds: int = DEFAULT_SIGN_TTL_SECONDS
    default_bucket: str = "photos"

    async def finalize(self, *, user_id: str, request: FinalizeRequest) -> FinalizeOutcome:
        """Re-check rights, upsert the record, then mint a short-lived read URL.

        Entitlement is checked again because it may have lapsed since the
        ticket was issued.
        """
        self.access.ensure_can_upload(user_id, request.fortune_id)
        record, replaced = self.store_record(user_id=user_id, request=request)
        signed_url = await self.sign(record.bucket, record.path, self.signed_url_ttl_seconds)
        return FinalizeOutcome(signed_url=signed_url, replaced=replaced, record=record)

    def store_record(self, *, user_id: str, request: FinalizeRequest) -> tuple[MediaRecord, bool]:
        try:
            record, replaced = self.media_repo.upsert(
                fortune_id=request.fortune_id,
                user_id=user_id,
                bucket=request.bucket,
                path=request.path,
                mime_type=request.mime,
                width=request.width,
                height=request.height,
                size_bytes=request.size_bytes,
            )
        except MediaPersistenceError as exc:
            logger.error("finalize.upsert_failed", fortune_id=request.fortune_id, error=exc.message)
            raise MediaPersistenceError("Failed to save media record") from exc
        logger.info(
            "finalize.upserted",
            fortune_id=request.fortune_id,
            bucket=record.bucket,
            path=record.path,
            updated_at=record.updated_at.isoformat(),
            replaced=replaced,
        )
        return record, replaced

    async def sign_only(self, *, user_id: str, fortune_id: str, ttl_seconds: int) -> str | None:
        """Re-sign the stored photo for display; no entitlement check."""
        self.access.ensure_owner(user_id, fortune_id)
        record = self.media_repo.get_by_fortune(fortune_id)
        if record is None:
            logger.info("finalize.sign_only.no_media", fortune_id=fortune_id)
            return None
        return await self.sign(record.bucket, record.path, ttl_seconds)

    async def delete(self, *, user_id: str, fortune_id: str) -> bool:
        """Drop the media record, then the stored object it pointed at."""
        self.access.ensure_owner(user_id, fortune_id)
        record = self.media_repo.get_by_fortune(fortune_id)
        deleted = self.media_repo.delete_by_fortune(fortune_id)
        logger.info("finalize.media_deleted", fortune_id=fortune_id, deleted=deleted)
        if record is not None:
            try:
                await self.storage.remove_object(record.bucket, [record.path])
            except StorageError as exc:
                # The record is gone; an orphaned object is only wasted space.
                logger.warning(
                    "finalize.object_remove_failed",
                    bucket=record.bucket,
                    path=record.path,
                    error=exc.message,
                )
        return deleted

    async def sign(self, bucket: str, path: str, ttl_seconds: int) -> str:
        try:
            return await self.storage.create_signed_url(bucket, path, ttl_seconds)
        except StorageError as exc:
            logger.error("finalize.sign_failed", bucket=bucket, path=path, error=exc.message)
            if exc.is_not_found:
                raise StorageError(
                    "Failed to create signed URL: Object not found",
                    storage_status=exc.storage_status,
                    retriable=True,
                ) from exc
            raise StorageError("Failed to create signed URL", storage_status=exc.storage_status) from exc
