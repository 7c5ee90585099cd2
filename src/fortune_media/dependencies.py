"""Dependency wiring helpers."""

from fastapi import FastAPI

from .auth.auth_service import UserTokenVerifier
from .config import AppConfig
from .errors import register_error_handlers
from .media.access import MediaAccessPolicy
from .media.direct_upload_service import DirectUploadService
from .media.finalize_service import FinalizeService
from .media.media_api import health_router, router as photos_router
from .media.ticket_service import UploadTicketService
from .repositories.entitlement_repository import EntitlementRepository
from .repositories.fortune_repository import FortuneRepository
from .repositories.media_record_repository import MediaRecordRepository
from .storage.storage_client import StorageClient


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount routers and attach services."""
    fortune_repo = FortuneRepository(config.session_factory)
    entitlement_repo = EntitlementRepository(config.session_factory)
    media_repo = MediaRecordRepository(config.session_factory)
    access = MediaAccessPolicy(fortunes=fortune_repo, entitlements=entitlement_repo)

    storage = StorageClient(
        base_url=config.storage.base_url,
        api_key=config.storage.service_key,
        timeout_seconds=config.storage.timeout_seconds,
    )
    bucket = config.storage.photo_bucket
    limits = config.upload_limits

    ticket_service = UploadTicketService(
        access=access,
        storage=storage,
        bucket=bucket,
        ticket_ttl_seconds=limits.ticket_ttl_seconds,
        allowed_mime_types=limits.allowed_mime_types,
    )
    finalize_service = FinalizeService(
        access=access,
        media_repo=media_repo,
        storage=storage,
        signed_url_ttl_seconds=limits.signed_url_ttl_seconds,
        default_bucket=bucket,
    )
    direct_upload_service = DirectUploadService(
        access=access,
        storage=storage,
        finalizer=finalize_service,
        bucket=bucket,
        max_bytes=limits.direct_upload_max_bytes,
        allowed_mime_types=limits.allowed_mime_types,
    )

    app.state.config = config
    app.state.token_verifier = UserTokenVerifier(
        signing_key=config.jwt_secret, audience=config.jwt_audience
    )
    app.state.media_repo = media_repo
    app.state.storage_client = storage
    app.state.ticket_service = ticket_service
    app.state.finalize_service = finalize_service
    app.state.direct_upload_service = direct_upload_service

    register_error_handlers(app)
    app.include_router(photos_router)
    app.include_router(health_router)
