"""Media data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class MediaRecord:
    """Finalized association between a fortune and its stored photo."""

    id: str
    fortune_id: str
    user_id: str
    bucket: str
    path: str
    mime_type: str
    width: int | None
    height: int | None
    size_bytes: int | None
    created_at: datetime
    updated_at: datetime

    def summary(self) -> dict[str, Any]:
        return {
            "fortune_id": self.fortune_id,
            "bucket": self.bucket,
            "path": self.path,
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(slots=True)
class UploadTicket:
    """One-time authorization to write one object; never persisted."""

    bucket: str
    path: str
    upload_url: str
    token: str | None
    upload_method: str = "POST_MULTIPART"
    form_field_name: str = "file"
    required_headers: dict[str, str] = field(default_factory=lambda: {"x-upsert": "true"})


@dataclass(slots=True)
class FinalizeRequest:
    fortune_id: str
    bucket: str
    path: str
    mime: str
    width: int | None = None
    height: int | None = None
    size_bytes: int | None = None


@dataclass(slots=True)
class FinalizeOutcome:
    signed_url: str | None
    replaced: bool
    record: MediaRecord
