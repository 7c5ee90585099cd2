from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-for-fortune-media-tests")
os.environ.setdefault("STORAGE_URL", "https://storage.test/storage/v1")
os.environ.setdefault("STORAGE_SERVICE_KEY", "service-key")

from src.fortune_media.db.db_models import (  # noqa: E402
    Base,
    FortuneModel,
    ProfileModel,
    SubscriptionModel,
)

TEST_JWT_SECRET = os.environ["AUTH_JWT_SECRET"]
OWNER_ID = "11111111-1111-4111-8111-111111111111"
STRANGER_ID = "22222222-2222-4222-8222-222222222222"
FORTUNE_ID = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"


def build_token(
    user_id: str = OWNER_ID,
    *,
    secret: str = TEST_JWT_SECRET,
    expires_in: int = 3600,
    audience: str = "authenticated",
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "aud": audience,
        "role": "authenticated",
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=expires_in)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def seed_fortune(session_factory, *, fortune_id: str = FORTUNE_ID, owner_id: str = OWNER_ID) -> None:
    with session_factory() as session:
        session.add(FortuneModel(id=fortune_id, user_id=owner_id))
        session.commit()


def seed_subscription(
    session_factory, *, user_id: str = OWNER_ID, status: str = "active", is_lifetime: bool = False
) -> None:
    with session_factory() as session:
        session.merge(SubscriptionModel(user_id=user_id, status=status, is_lifetime=is_lifetime))
        session.commit()


def seed_trial(session_factory, *, user_id: str = OWNER_ID, ends_at: datetime) -> None:
    with session_factory() as session:
        session.merge(ProfileModel(user_id=user_id, trial_ends_at=ends_at))
        session.commit()


@pytest.fixture
def engine():
    # StaticPool keeps one in-memory database visible across TestClient threads.
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)
