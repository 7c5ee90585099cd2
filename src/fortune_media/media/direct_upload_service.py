"""Server-side upload of base64 photo bytes (fallback for clients that cannot use tickets)."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from ..config import ALLOWED_MIME_TYPES
from ..exceptions import StorageError, ValidationError
from ..storage.storage_client import StorageClient
from .access import MediaAccessPolicy
from .finalize_service import FinalizeService
from .media_models import FinalizeOutcome, FinalizeRequest
from .validation import build_object_path, optional_int, validate_mime

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class DirectUploadRequest:
    fortune_id: str
    data: bytes
    mime: str
    width: int | None
    height: int | None


def decode_image_base64(value: str) -> bytes:
    """Decode base64 payloads, tolerating a ``data:<mime>;base64,`` prefix."""
    encoded = value.split(",", 1)[1] if "," in value else value
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Invalid base64 image data") from exc


def parse_direct_upload_body(
    body: Mapping[str, Any],
    max_bytes: int,
    allowed_mime_types: Sequence[str] = ALLOWED_MIME_TYPES,
) -> DirectUploadRequest:
    fortune_id = body.get("fortune_id")
    if not fortune_id or not isinstance(fortune_id, str):
        raise ValidationError("fortune_id is required")
    image_base64 = body.get("image_base64")
    if not image_base64 or not isinstance(image_base64, str):
        raise ValidationError("image_base64 is required")

    mime = body.get("mime_type") or "image/jpeg"
    try:
        validate_mime(mime, allowed_mime_types)
    except ValidationError as exc:
        raise ValidationError(f"Invalid mime_type. {exc.message}") from exc

    data = decode_image_base64(image_base64)
    if len(data) > max_bytes:
        raise ValidationError(f"File too large. Max size: {max_bytes // (1024 * 1024)}MB")

    return DirectUploadRequest(
        fortune_id=fortune_id,
        data=data,
        mime=mime,
        width=optional_int(body.get("width")),
        height=optional_int(body.get("height")),
    )


@dataclass(slots=True)
class DirectUploadService:
    access: MediaAccessPolicy
    storage: StorageClient
    finalizer: FinalizeService
    bucket: str = "photos"
    max_bytes: int = 10 * 1024 * 1024
    allowed_mime_types: Sequence[str] = ALLOWED_MIME_TYPES

    async def upload(self, *, user_id: str, request: DirectUploadRequest) -> FinalizeOutcome:
        self.access.ensure_can_upload(user_id, request.fortune_id)

        path = build_object_path(user_id, request.fortune_id, request.mime)
        try:
            await self.storage.upload_object(
                self.bucket, path, request.data, content_type=request.mime, upsert=True
            )
        except StorageError as exc:
            logger.error("direct_upload.storage_failed", fortune_id=request.fortune_id, error=exc.message)
            raise StorageError("Failed to upload image", storage_status=exc.storage_status) from exc

        record, replaced = self.finalizer.store_record(
            user_id=user_id,
            request=FinalizeRequest(
                fortune_id=request.fortune_id,
                bucket=self.bucket,
                path=path,
                mime=request.mime,
                width=request.width,
                height=request.height,
                size_bytes=len(request.data),
            ),
        )

        # The object and record are durable at this point; a signing failure
        # yields signedUrl=null instead of an error.
        try:
            signed_url: str | None = await self.finalizer.sign(
                self.bucket, path, self.finalizer.signed_url_ttl_seconds
            )
        except StorageError:
            signed_url = None
        logger.info(
            "direct_upload.completed",
            fortune_id=request.fortune_id,
            path=path,
            replaced=replaced,
            signed=signed_url is not None,
        )
        return FinalizeOutcome(signed_url=signed_url, replaced=replaced, record=record)
