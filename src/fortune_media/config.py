"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db

DEFAULT_PHOTO_BUCKET = "photos"
ALLOWED_MIME_TYPES: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp", "image/gif")


@dataclass(slots=True)
class StorageSettings:
    base_url: str
    service_key: str
    photo_bucket: str
    timeout_seconds: float


@dataclass(slots=True)
class UploadLimits:
    allowed_mime_types: Sequence[str]
    ticket_ttl_seconds: int
    signed_url_ttl_seconds: int
    direct_upload_max_bytes: int


@dataclass(slots=True)
class AppConfig:
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    storage: StorageSettings
    upload_limits: UploadLimits
    jwt_secret: str
    jwt_audience: str | None


@dataclass(slots=True)
class ClientConfig:
    """Settings consumed by the client-side upload pipeline."""

    functions_url: str
    storage_url: str
    anon_key: str
    photo_bucket: str = DEFAULT_PHOTO_BUCKET
    request_timeout_seconds: float = 30.0
    signed_url_ttl_seconds: int = 300


def _storage_base_url() -> str:
    return os.getenv("STORAGE_URL", "http://localhost:54321/storage/v1").rstrip("/")


def _allowed_mime_types() -> tuple[str, ...]:
    raw = os.getenv("UPLOAD_ALLOWED_MIME_TYPES")
    if not raw:
        return ALLOWED_MIME_TYPES
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_config() -> AppConfig:
    """Load server configuration from environment (SQLite by default)."""
    storage = StorageSettings(
        base_url=_storage_base_url(),
        service_key=os.getenv("STORAGE_SERVICE_KEY", ""),
        photo_bucket=os.getenv("PHOTO_BUCKET", DEFAULT_PHOTO_BUCKET),
        timeout_seconds=float(os.getenv("STORAGE_TIMEOUT_SECONDS", 15)),
    )
    upload_limits = UploadLimits(
        allowed_mime_types=_allowed_mime_types(),
        ticket_ttl_seconds=int(os.getenv("UPLOAD_TICKET_TTL_SECONDS", 120)),
        signed_url_ttl_seconds=int(os.getenv("SIGNED_URL_TTL_SECONDS", 300)),
        direct_upload_max_bytes=int(os.getenv("DIRECT_UPLOAD_MAX_BYTES", 10 * 1024 * 1024)),
    )

    database_url = os.getenv("DATABASE_URL", "sqlite:///fortune_media.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    jwt_secret = os.getenv("AUTH_JWT_SECRET", "")
    if not jwt_secret:
        raise RuntimeError("AUTH_JWT_SECRET is not configured")

    init_db(engine)

    return AppConfig(
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        storage=storage,
        upload_limits=upload_limits,
        jwt_secret=jwt_secret,
        jwt_audience=os.getenv("AUTH_JWT_AUDIENCE", "authenticated") or None,
    )


def load_client_config() -> ClientConfig:
    """Load client configuration from environment."""
    project_url = os.getenv("FORTUNE_PROJECT_URL", "http://localhost:54321").rstrip("/")
    return ClientConfig(
        functions_url=os.getenv("FUNCTIONS_URL", f"{project_url}/functions/v1").rstrip("/"),
        storage_url=os.getenv("STORAGE_URL", f"{project_url}/storage/v1").rstrip("/"),
        anon_key=os.getenv("FORTUNE_ANON_KEY", ""),
        photo_bucket=os.getenv("PHOTO_BUCKET", DEFAULT_PHOTO_BUCKET),
        request_timeout_seconds=float(os.getenv("CLIENT_TIMEOUT_SECONDS", 30)),
        signed_url_ttl_seconds=int(os.getenv("SIGNED_URL_TTL_SECONDS", 300)),
    )
