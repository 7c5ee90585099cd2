"""Issue one-time upload tickets for fortune photos."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from ..config import ALLOWED_MIME_TYPES
from ..exceptions import StorageError
from ..storage.storage_client import StorageClient
from ..utils.redaction import redact_url
from .access import MediaAccessPolicy
from .media_models import UploadTicket
from .validation import build_object_path

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class UploadTicketService:
    """Validate the caller and mint a storage-scoped upload credential.

    No database write happens here; the ticket is consumed by the client and
    superseded by a fresh one on retry.
    """

    access: MediaAccessPolicy
    storage: StorageClient
    bucket: str = "photos"
    ticket_ttl_seconds: int = 120
    allowed_mime_types: Sequence[str] = ALLOWED_MIME_TYPES

    async def issue(self, *, user_id: str, fortune_id: str, mime: str) -> UploadTicket:
        self.access.ensure_can_upload(user_id, fortune_id)

        path = build_object_path(user_id, fortune_id, mime)
        try:
            signed = await self.storage.create_signed_upload_url(
                self.bucket, path, self.ticket_ttl_seconds
            )
        except StorageError as exc:
            logger.error("ticket.storage_failed", fortune_id=fortune_id, error=exc.message)
            raise StorageError("Failed to create upload URL", storage_status=exc.storage_status) from exc

        logger.info(
            "ticket.issued",
            fortune_id=fortune_id,
            bucket=self.bucket,
            path=path,
            url=redact_url(signed.url),
        )
        return UploadTicket(bucket=self.bucket, path=path, upload_url=signed.url, token=signed.token)
