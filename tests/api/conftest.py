from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.fortune_media.config import ALLOWED_MIME_TYPES, AppConfig, StorageSettings, UploadLimits
from src.fortune_media.main import create_app
from tests.conftest import TEST_JWT_SECRET, build_token, seed_fortune, seed_subscription

STORAGE_BASE = "https://storage.test/storage/v1"


@pytest.fixture
def app_config(engine, session_factory) -> AppConfig:
    return AppConfig(
        database_url="sqlite://",
        engine=engine,
        session_factory=session_factory,
        storage=StorageSettings(
            base_url=STORAGE_BASE,
            service_key="service-key",
            photo_bucket="photos",
            timeout_seconds=5.0,
        ),
        upload_limits=UploadLimits(
            allowed_mime_types=ALLOWED_MIME_TYPES,
            ticket_ttl_seconds=120,
            signed_url_ttl_seconds=300,
            direct_upload_max_bytes=1024,
        ),
        jwt_secret=TEST_JWT_SECRET,
        jwt_audience="authenticated",
    )


@pytest.fixture
def api_client(app_config) -> TestClient:
    seed_fortune(app_config.session_factory)
    seed_subscription(app_config.session_factory)
    return TestClient(create_app(app_config))


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token()}"}
