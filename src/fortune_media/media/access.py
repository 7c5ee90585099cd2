"""Ownership and entitlement checks shared by every photo handler."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from ..exceptions import EntitlementError, FortuneNotFoundError, OwnershipError
from ..repositories.entitlement_repository import EntitlementRepository
from ..repositories.fortune_repository import FortuneRepository

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class MediaAccessPolicy:
    fortunes: FortuneRepository
    entitlements: EntitlementRepository

    def ensure_owner(self, user_id: str, fortune_id: str) -> None:
        owner_id = self.fortunes.get_owner_id(fortune_id)
        if owner_id is None:
            logger.info("access.fortune_not_found", fortune_id=fortune_id)
            raise FortuneNotFoundError("Fortune not found")
        if owner_id != user_id:
            logger.warning("access.ownership_mismatch", fortune_id=fortune_id, user_id=user_id)
            raise OwnershipError("Access denied")

    def ensure_entitled(self, user_id: str, now: datetime | None = None) -> None:
        """Active/trialing subscription, active lifetime plan, or an open trial window."""
        snapshot = self.entitlements.snapshot(user_id)
        if snapshot.grants_access(now or datetime.now(timezone.utc)):
            return
        logger.info(
            "access.entitlement_missing",
            user_id=user_id,
            subscription_status=snapshot.subscription_status,
            is_lifetime=snapshot.is_lifetime,
        )
        raise EntitlementError("Pro/Lifetime subscription required")

    def ensure_can_upload(self, user_id: str, fortune_id: str) -> None:
        self.ensure_owner(user_id, fortune_id)
        self.ensure_entitled(user_id)
