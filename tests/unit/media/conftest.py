from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.fortune_media.media.access import MediaAccessPolicy
from src.fortune_media.repositories.entitlement_repository import EntitlementRepository
from src.fortune_media.repositories.fortune_repository import FortuneRepository
from src.fortune_media.repositories.media_record_repository import MediaRecordRepository
from tests.conftest import seed_fortune, seed_subscription


@pytest.fixture
def seeded(session_factory):
    seed_fortune(session_factory)
    seed_subscription(session_factory)
    return session_factory


@pytest.fixture
def access(seeded) -> MediaAccessPolicy:
    return MediaAccessPolicy(
        fortunes=FortuneRepository(seeded), entitlements=EntitlementRepository(seeded)
    )


@pytest.fixture
def media_repo(seeded) -> MediaRecordRepository:
    return MediaRecordRepository(seeded)


@pytest.fixture
def storage() -> AsyncMock:
    storage = AsyncMock()
    storage.create_signed_url.return_value = "https://storage.test/object/sign/photos/x?token=read"
    return storage
