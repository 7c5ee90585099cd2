"""Data models for the client-side upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_MIME = "image/jpeg"


class UploadMethod(str, Enum):
    """Transport used to move the bytes into storage."""

    SDK_SIGNED_UPLOAD = "SDK_SIGNED_UPLOAD"
    POST_MULTIPART = "POST_MULTIPART"
    PUT = "PUT"


class UploadStage(str, Enum):
    GUARD = "guard"
    TICKET = "ticket"
    UPLOAD = "upload"
    FINALIZE = "finalize"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class PhotoPayload:
    """Photo bytes picked by the user."""

    data: bytes
    mime: str = DEFAULT_MIME
    filename: str = "photo.jpg"

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class NormalizedTicket:
    upload_url: str
    bucket_relative_path: str
    bucket: str
    upload_method: UploadMethod
    form_field_name: str = "file"
    required_headers: dict[str, str] = field(default_factory=dict)
    signed_upload_token: str | None = None
    is_signed_upload_url: bool = False
    debug: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TicketShapeError:
    """Returned (never raised) when a raw ticket lacks a usable url or path."""

    field: str
    reason: str
    received_keys: list[str]
    raw_snippet: dict[str, Any]
    error: str = "Invalid ticket format"


@dataclass(slots=True)
class UploadResult:
    bucket: str = "photos"
    path: str = ""
    mime: str = ""
    width: int = 0
    height: int = 0
    size_bytes: int = 0
    signed_url: str | None = None
    replaced: bool = False
    media: dict[str, Any] | None = None
    cancelled: bool = False
    error: bool = False
    stage: UploadStage | None = None
    reason: str | None = None
    received_keys: list[str] | None = None
    raw_snippet: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return not self.error and not self.cancelled

    @classmethod
    def cancelled_result(
        cls, reason: str | None = None, stage: UploadStage | None = None
    ) -> "UploadResult":
        return cls(cancelled=True, stage=stage, reason=reason)

    @classmethod
    def failure(cls, stage: UploadStage, reason: str, **fields: Any) -> "UploadResult":
        return cls(error=True, stage=stage, reason=reason, **fields)

    def log_view(self) -> dict[str, Any]:
        """Fields safe to log; the signed URL is never included."""
        return {
            "bucket": self.bucket,
            "path": self.path,
            "mime": self.mime,
            "size_bytes": self.size_bytes,
            "replaced": self.replaced,
            "cancelled": self.cancelled,
            "error": self.error,
            "stage": self.stage.value if self.stage else None,
            "reason": self.reason,
            "has_signed_url": bool(self.signed_url),
        }


__all__ = [
    "DEFAULT_MIME",
    "NormalizedTicket",
    "PhotoPayload",
    "TicketShapeError",
    "UploadMethod",
    "UploadResult",
    "UploadStage",
]
