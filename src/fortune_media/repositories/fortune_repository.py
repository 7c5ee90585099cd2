"""Read-only access to fortune ownership."""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from ..db.db_models import FortuneModel


class FortuneRepository:
    """Resolve the owner of a fortune row."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get_owner_id(self, fortune_id: str) -> str | None:
        """Return owning user id, or None when the fortune does not exist."""
        with self._session_factory() as session:
            model = session.get(FortuneModel, fortune_id)
            return model.user_id if model is not None else None
