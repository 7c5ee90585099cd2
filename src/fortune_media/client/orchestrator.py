"""Drive one photo upload from ticket to finalized media record."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from ..config import DEFAULT_PHOTO_BUCKET
from ..exceptions import UploadStageError
from .edge_client import EdgeFunctionClient
from .image_probe import probe_dimensions
from .ticket_normalizer import normalize_ticket
from .upload_executor import UploadExecutor
from .upload_models import PhotoPayload, TicketShapeError, UploadResult, UploadStage

logger = structlog.get_logger(__name__)

ISSUE_TICKET_FUNCTION = "issue-fortune-upload-ticket"
FINALIZE_FUNCTION = "finalize-fortune-photo"
GUARD_REASON = "Upload already in progress"

DimensionProbe = Callable[[bytes], Awaitable[tuple[int, int]]]


@dataclass(slots=True)
class UploadOrchestrator:
    """Run guard, ticket, upload, dimension probe and finalize in order.

    ``upload`` always resolves with an :class:`UploadResult`; failures carry the
    stage they happened in. At most one run per fortune is in flight; a second
    concurrent request is answered with a cancelled result and makes no network
    calls.
    """

    edge: EdgeFunctionClient
    executor: UploadExecutor
    default_bucket: str = DEFAULT_PHOTO_BUCKET
    probe: DimensionProbe = probe_dimensions
    _in_flight: set[str] = field(default_factory=set)

    def is_uploading(self, fortune_id: str) -> bool:
        return fortune_id in self._in_flight

    async def upload(self, fortune_id: str, payload: PhotoPayload) -> UploadResult:
        log = logger.bind(fortune_id=fortune_id)
        if fortune_id in self._in_flight:
            log.info("upload.stage", stage=UploadStage.GUARD.value, error=GUARD_REASON)
            return UploadResult.cancelled_result(reason=GUARD_REASON, stage=UploadStage.GUARD)

        # Membership is claimed before the first await so concurrent callers see it.
        self._in_flight.add(fortune_id)
        try:
            result = await self._run(fortune_id, payload, log)
        except Exception as exc:
            log.exception("upload.stage", stage=UploadStage.UNKNOWN.value, error=str(exc))
            result = UploadResult.failure(UploadStage.UNKNOWN, str(exc) or exc.__class__.__name__)
        finally:
            self._in_flight.discard(fortune_id)

        log.info("upload.result", **result.log_view())
        return result

    async def _run(self, fortune_id: str, payload: PhotoPayload, log: Any) -> UploadResult:
        ticket_response = await self.edge.call(
            ISSUE_TICKET_FUNCTION, {"fortune_id": fortune_id, "mime": payload.mime}
        )
        if not ticket_response.ok:
            log.info("upload.stage", stage=UploadStage.TICKET.value, error=ticket_response.error)
            return UploadResult.failure(UploadStage.TICKET, ticket_response.error or "Ticket request failed")

        ticket = normalize_ticket(ticket_response.data, default_bucket=self.default_bucket)
        if isinstance(ticket, TicketShapeError):
            log.info(
                "upload.stage",
                stage=UploadStage.TICKET.value,
                error=ticket.reason,
                ticket_keys=ticket.received_keys,
            )
            return UploadResult.failure(
                UploadStage.TICKET,
                ticket.reason,
                received_keys=ticket.received_keys,
                raw_snippet=ticket.raw_snippet,
            )
        log.info("upload.stage", stage=UploadStage.TICKET.value, **ticket.debug["chosen"])

        context: dict[str, Any] = {
            "bucket": ticket.bucket,
            "path": ticket.bucket_relative_path,
            "mime": payload.mime,
            "size_bytes": payload.size_bytes,
        }
        try:
            await self.executor.execute(ticket, payload)
        except UploadStageError as exc:
            log.info(
                "upload.stage",
                stage=UploadStage.UPLOAD.value,
                error=exc.reason,
                status_code=exc.status_code,
            )
            return UploadResult.failure(UploadStage.UPLOAD, exc.reason, **context)
        log.info("upload.stage", stage=UploadStage.UPLOAD.value, method=ticket.upload_method.value)

        # Not retried: a failure here means the bytes are not an image.
        width, height = await self.probe(payload.data)
        context.update(width=width, height=height)

        finalize_response = await self.edge.call(
            FINALIZE_FUNCTION,
            {
                "fortune_id": fortune_id,
                "bucket": ticket.bucket,
                "path": ticket.bucket_relative_path,
                "width": width,
                "height": height,
                "size_bytes": payload.size_bytes,
                "mime": payload.mime,
            },
        )
        data = finalize_response.data
        if not finalize_response.ok or not isinstance(data, dict):
            reason = finalize_response.error or "Failed to finalize photo"
            log.info("upload.stage", stage=UploadStage.FINALIZE.value, error=reason)
            return UploadResult.failure(UploadStage.FINALIZE, reason, **context)

        log.info("upload.stage", stage="done", replaced=bool(data.get("replaced")))
        media = data.get("media")
        return UploadResult(
            signed_url=data.get("signedUrl"),
            replaced=bool(data.get("replaced")),
            media=media if isinstance(media, dict) else None,
            **context,
        )


__all__ = ["UploadOrchestrator"]
