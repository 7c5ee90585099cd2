"""Input validation for photo upload requests."""

from __future__ import annotations

import re
import uuid
from collections.abc import Sequence
from typing import Any

from ..config import ALLOWED_MIME_TYPES
from ..exceptions import ValidationError

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


def validate_fortune_id(value: Any) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError("fortune_id is required and must be a string")
    if not _UUID_PATTERN.match(value):
        raise ValidationError("fortune_id must be a valid UUID")
    return value


def validate_mime(value: Any, allowed: Sequence[str] = ALLOWED_MIME_TYPES) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError("mime is required and must be a string")
    if value not in allowed:
        raise ValidationError(f"mime must be one of: {', '.join(allowed)}")
    return value


def extension_for_mime(mime: str) -> str:
    return _EXTENSIONS.get(mime, "jpg")


def build_object_path(owner_id: str, fortune_id: str, mime: str) -> str:
    """``{owner}/{fortune}-{random}.{ext}``; never prefixed with the bucket name."""
    suffix = uuid.uuid4().hex[:8]
    return f"{owner_id}/{fortune_id}-{suffix}.{extension_for_mime(mime)}"


def optional_int(value: Any) -> int | None:
    """Coerce optional numeric fields; falsy and non-numeric values become None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value) or None


__all__ = [
    "build_object_path",
    "extension_for_mime",
    "optional_int",
    "validate_fortune_id",
    "validate_mime",
]
