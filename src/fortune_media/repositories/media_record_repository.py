"""Persistence layer for fortune_media records."""

from __future__ import annotations

import uuid
from collections.abc import Callable

from sqlalchemy.orm import Session

from ..db.db_models import FortuneMediaModel, utcnow
from ..exceptions import handle_sqlalchemy_errors
from ..media.media_models import MediaRecord


class MediaRecordRepository:
    """Store at most one media record per fortune."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get_by_fortune(self, fortune_id: str) -> MediaRecord | None:
        with self._session_factory() as session:
            model = self._find(session, fortune_id)
            return self._to_domain(model) if model is not None else None

    def upsert(
        self,
        *,
        fortune_id: str,
        user_id: str,
        bucket: str,
        path: str,
        mime_type: str,
        width: int | None,
        height: int | None,
        size_bytes: int | None,
    ) -> tuple[MediaRecord, bool]:
        """Insert or replace the record keyed on ``fortune_id``.

        Returns the stored record and whether a previous record was replaced.
        ``updated_at`` is bumped on every replace so readers can use it as a
        cache-busting version.
        """
        with handle_sqlalchemy_errors(entity="fortune_media"):
            with self._session_factory() as session:
                model = self._find(session, fortune_id)
                replaced = model is not None
                now = utcnow()
                if model is None:
                    model = FortuneMediaModel(
                        id=str(uuid.uuid4()),
                        fortune_id=fortune_id,
                        user_id=user_id,
                        created_at=now,
                    )
                    session.add(model)
                model.bucket = bucket
                model.path = path
                model.mime_type = mime_type
                model.width = width
                model.height = height
                model.size_bytes = size_bytes
                model.updated_at = now
                session.commit()
                return self._to_domain(model), replaced

    def delete_by_fortune(self, fortune_id: str) -> bool:
        with handle_sqlalchemy_errors(entity="fortune_media"):
            with self._session_factory() as session:
                model = self._find(session, fortune_id)
                if model is None:
                    return False
                session.delete(model)
                session.commit()
                return True

    @staticmethod
    def _find(session: Session, fortune_id: str) -> FortuneMediaModel | None:
        return (
            session.query(FortuneMediaModel)
            .filter(FortuneMediaModel.fortune_id == fortune_id)
            .one_or_none()
        )

    @staticmethod
    def _to_domain(model: FortuneMediaModel) -> MediaRecord:
        return MediaRecord(
            id=model.id,
            fortune_id=model.fortune_id,
            user_id=model.user_id,
            bucket=model.bucket,
            path=model.path,
            mime_type=model.mime_type,
            width=model.width,
            height=model.height,
            size_bytes=model.size_bytes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
