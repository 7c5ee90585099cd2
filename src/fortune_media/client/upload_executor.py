"""Move photo bytes into storage using the strategy a ticket calls for."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..exceptions import StorageError, UploadStageError
from ..storage.storage_client import StorageClient
from ..utils.redaction import redact_url
from .upload_models import NormalizedTicket, PhotoPayload, UploadMethod, UploadStage

logger = logging.getLogger(__name__)

BODY_SNIPPET_LIMIT = 200


@dataclass(slots=True)
class UploadExecutor:
    """Single-shot transfer; retries belong to the caller."""

    storage: StorageClient
    timeout_seconds: float = 60.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def execute(self, ticket: NormalizedTicket, payload: PhotoPayload) -> None:
        self.log.info(
            "upload.execute",
            extra={
                "method": ticket.upload_method.value,
                "bucket": ticket.bucket,
                "path": ticket.bucket_relative_path,
                "url": redact_url(ticket.upload_url),
                "size_bytes": payload.size_bytes,
            },
        )
        if ticket.upload_method is UploadMethod.SDK_SIGNED_UPLOAD and ticket.signed_upload_token:
            await self._signed_upload(ticket, payload)
            return

        request_kwargs: dict[str, Any]
        if ticket.upload_method is UploadMethod.PUT:
            headers = dict(ticket.required_headers)
            headers["Content-Type"] = payload.mime
            request_kwargs = {"headers": headers, "content": payload.data}
            method = "PUT"
        else:
            # httpx builds the multipart boundary; a hand-set Content-Type would break it.
            request_kwargs = {
                "files": {ticket.form_field_name: (payload.filename, payload.data, payload.mime)}
            }
            method = "POST"

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.request(method, ticket.upload_url, **request_kwargs)
        except httpx.HTTPError as exc:
            raise UploadStageError(
                UploadStage.UPLOAD.value, f"Upload failed: {exc.__class__.__name__}"
            ) from exc

        if not 200 <= response.status_code < 300:
            snippet = response.text[:BODY_SNIPPET_LIMIT]
            raise UploadStageError(
                UploadStage.UPLOAD.value,
                f"Upload failed: {response.status_code} {snippet}".rstrip(),
                status_code=response.status_code,
                body_snippet=snippet,
            )

    async def _signed_upload(self, ticket: NormalizedTicket, payload: PhotoPayload) -> None:
        try:
            await self.storage.upload_to_signed_url(
                ticket.bucket,
                ticket.bucket_relative_path,
                ticket.signed_upload_token or "",
                payload.data,
                content_type=payload.mime,
            )
        except StorageError as exc:
            raise UploadStageError(
                UploadStage.UPLOAD.value,
                exc.message,
                status_code=exc.storage_status,
                body_snippet=exc.message[:BODY_SNIPPET_LIMIT],
            ) from exc


__all__ = ["BODY_SNIPPET_LIMIT", "UploadExecutor"]
