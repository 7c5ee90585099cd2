"""HTTP routes for the fortune photo functions."""

from __future__ import annotations

import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request

from ..auth.auth_dependencies import get_token_verifier, require_bearer_token
from ..auth.auth_service import UserTokenVerifier
from ..exceptions import ValidationError
from .direct_upload_service import DirectUploadService, parse_direct_upload_body
from .finalize_service import FinalizeService, clamp_ttl, parse_finalize_body
from .media_schemas import (
    DeleteMediaResponse,
    FinalizeResponse,
    SignOnlyResponse,
    UploadTicketResponse,
)
from .ticket_service import UploadTicketService
from .validation import validate_fortune_id, validate_mime

router = APIRouter(prefix="/functions/v1", tags=["photos"])
logger = structlog.get_logger(__name__)

SIGN_ONLY_ACTION = "SIGN_ONLY"
DELETE_ACTION = "DELETE"


def get_ticket_service(request: Request) -> UploadTicketService:
    try:
        return request.app.state.ticket_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UploadTicketService is not configured") from exc


def get_finalize_service(request: Request) -> FinalizeService:
    try:
        return request.app.state.finalize_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("FinalizeService is not configured") from exc


def get_direct_upload_service(request: Request) -> DirectUploadService:
    try:
        return request.app.state.direct_upload_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("DirectUploadService is not configured") from exc


async def read_json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    return body


@router.post("/issue-fortune-upload-ticket", response_model=UploadTicketResponse)
async def issue_upload_ticket(
    request: Request,
    token: str = Depends(require_bearer_token),
    verifier: UserTokenVerifier = Depends(get_token_verifier),
    service: UploadTicketService = Depends(get_ticket_service),
) -> UploadTicketResponse:
    """Return a one-time upload credential for the caller's fortune."""
    body = await read_json_body(request)
    fortune_id = validate_fortune_id(body.get("fortune_id"))
    mime = validate_mime(body.get("mime"), service.allowed_mime_types)
    user = verifier.verify(token)

    ticket = await service.issue(user_id=user.id, fortune_id=fortune_id, mime=mime)
    return UploadTicketResponse.from_ticket(ticket)


@router.post("/finalize-fortune-photo", response_model=None)
async def finalize_fortune_photo(
    request: Request,
    token: str = Depends(require_bearer_token),
    verifier: UserTokenVerifier = Depends(get_token_verifier),
    service: FinalizeService = Depends(get_finalize_service),
) -> FinalizeResponse | SignOnlyResponse | DeleteMediaResponse:
    """Record an uploaded photo; ``action`` switches to re-signing or deletion."""
    body = await read_json_body(request)
    action = body.get("action")

    if action == SIGN_ONLY_ACTION:
        fortune_id = validate_fortune_id(body.get("fortune_id"))
        user = verifier.verify(token)
        signed_url = await service.sign_only(
            user_id=user.id, fortune_id=fortune_id, ttl_seconds=clamp_ttl(body.get("ttlSec"))
        )
        return SignOnlyResponse(signedUrl=signed_url)

    if action == DELETE_ACTION:
        fortune_id = validate_fortune_id(body.get("fortune_id"))
        user = verifier.verify(token)
        deleted = await service.delete(user_id=user.id, fortune_id=fortune_id)
        return DeleteMediaResponse(deleted=deleted)

    if action is not None:
        logger.warning("finalize.unknown_action", action=str(action)[:32])
        raise ValidationError(f"Unsupported action: {action}")

    finalize_request = parse_finalize_body(body, default_bucket=service.default_bucket)
    user = verifier.verify(token)
    outcome = await service.finalize(user_id=user.id, request=finalize_request)
    return FinalizeResponse.from_outcome(outcome)


@router.post("/upload-fortune-photo", response_model=FinalizeResponse)
async def upload_fortune_photo(
    request: Request,
    token: str = Depends(require_bearer_token),
    verifier: UserTokenVerifier = Depends(get_token_verifier),
    service: DirectUploadService = Depends(get_direct_upload_service),
) -> FinalizeResponse:
    """Accept base64 image bytes and store them on the caller's behalf."""
    body = await read_json_body(request)
    upload_request = parse_direct_upload_body(
        body, max_bytes=service.max_bytes, allowed_mime_types=service.allowed_mime_types
    )
    user = verifier.verify(token)

    outcome = await service.upload(user_id=user.id, request=upload_request)
    return FinalizeResponse.from_outcome(outcome)


health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


__all__ = ["health_router", "read_json_body", "router"]
