"""Subscription and trial lookups used to gate photo features."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..db.db_models import ProfileModel, SubscriptionModel

ACTIVE_STATUSES = frozenset({"active", "trialing"})


@dataclass(slots=True)
class EntitlementSnapshot:
    subscription_status: str | None
    is_lifetime: bool
    trial_ends_at: datetime | None

    def has_active_subscription(self) -> bool:
        if self.subscription_status is None:
            return False
        if self.is_lifetime and self.subscription_status == "active":
            return True
        return self.subscription_status in ACTIVE_STATUSES

    def in_trial(self, now: datetime) -> bool:
        if self.trial_ends_at is None:
            return False
        return _as_utc(self.trial_ends_at) > now

    def grants_access(self, now: datetime) -> bool:
        return self.has_active_subscription() or self.in_trial(now)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on read; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EntitlementRepository:
    """Load subscription + profile rows for a user."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def snapshot(self, user_id: str) -> EntitlementSnapshot:
        with self._session_factory() as session:
            subscription = session.get(SubscriptionModel, user_id)
            profile = session.get(ProfileModel, user_id)
            return EntitlementSnapshot(
                subscription_status=subscription.status if subscription else None,
                is_lifetime=bool(subscription.is_lifetime) if subscription else False,
                trial_ends_at=profile.trial_ends_at if profile else None,
            )
