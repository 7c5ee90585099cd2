"""Map upload tickets of varying shape onto one canonical form.

Servers have shipped several field spellings over time, so each logical field
is resolved from an ordered list of candidate keys. The first key holding a
non-empty string wins. Normalization is pure: it never raises and never
performs I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qs, urlsplit

from ..config import DEFAULT_PHOTO_BUCKET
from ..utils.redaction import REDACTED, redact_headers, redact_url, safe_snippet
from .upload_models import NormalizedTicket, TicketShapeError, UploadMethod

UPLOAD_URL_KEYS: tuple[str, ...] = ("url", "uploadUrl", "upload_url", "signedUrl")
PATH_KEYS: tuple[str, ...] = ("bucketRelativePath", "path")
TOKEN_KEYS: tuple[str, ...] = ("token", "uploadToken", "signedUploadToken", "signed_upload_token")
HEADER_KEYS: tuple[str, ...] = ("requiredHeaders", "headers")

SIGNED_UPLOAD_MARKER = "/object/upload/sign/"
UPSERT_HEADER = "x-upsert"
DEFAULT_FORM_FIELD = "file"


def first_string(raw: Mapping[str, Any], candidates: tuple[str, ...]) -> str | None:
    for key in candidates:
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _query_token(url: str) -> str | None:
    try:
        query = urlsplit(url).query
    except ValueError:
        return None
    values = parse_qs(query).get("token")
    return values[0] if values and values[0] else None


def _headers(raw: Mapping[str, Any]) -> dict[str, str]:
    for key in HEADER_KEYS:
        value = raw.get(key)
        if isinstance(value, Mapping):
            return {str(name): str(header) for name, header in value.items()}
    return {}


def _explicit_method(raw: Mapping[str, Any]) -> UploadMethod | None:
    value = raw.get("uploadMethod")
    if not value:
        return None
    if str(value).upper() in ("POST", "POST_MULTIPART"):
        return UploadMethod.POST_MULTIPART
    return UploadMethod.PUT


def _missing(field: str, expected: tuple[str, ...], raw: Mapping[str, Any]) -> TicketShapeError:
    keys = [str(key) for key in raw.keys()]
    if len(expected) > 2:
        expected_text = ", ".join(expected[:-1]) + f", or {expected[-1]}"
    else:
        expected_text = " or ".join(expected)
    return TicketShapeError(
        field=field,
        reason=(
            f"{field} missing or invalid. Expected field: {expected_text}. "
            f"Got keys: {', '.join(keys)}"
        ),
        received_keys=keys,
        raw_snippet=safe_snippet(raw),
        error=f"Missing {field}",
    )


def normalize_ticket(
    raw: Any, default_bucket: str = DEFAULT_PHOTO_BUCKET
) -> NormalizedTicket | TicketShapeError:
    """Return a :class:`NormalizedTicket`, or a :class:`TicketShapeError` describing the gap."""
    if not isinstance(raw, Mapping):
        return TicketShapeError(
            field="ticket",
            reason="Ticket is not an object",
            received_keys=[],
            raw_snippet={"type": type(raw).__name__},
        )

    upload_url = first_string(raw, UPLOAD_URL_KEYS)
    if upload_url is None:
        return _missing("uploadUrl", UPLOAD_URL_KEYS, raw)
    path = first_string(raw, PATH_KEYS)
    if path is None:
        return _missing("bucketRelativePath", PATH_KEYS, raw)

    token = first_string(raw, TOKEN_KEYS)
    query_token = _query_token(upload_url)
    is_signed = SIGNED_UPLOAD_MARKER in upload_url or token is not None or query_token is not None
    if is_signed and token is None:
        token = query_token

    if is_signed:
        method = UploadMethod.SDK_SIGNED_UPLOAD if token else UploadMethod.POST_MULTIPART
    else:
        method = _explicit_method(raw) or (
            UploadMethod.POST_MULTIPART if "formFieldName" in raw else UploadMethod.PUT
        )

    headers = _headers(raw)
    if is_signed:
        # Signed endpoints reject the overwrite header; upsert is fixed at signing time.
        headers = {name: value for name, value in headers.items() if name.lower() != UPSERT_HEADER}
    elif not any(name.lower() == UPSERT_HEADER for name in headers):
        headers[UPSERT_HEADER] = "true"

    form_field = raw.get("formFieldName")
    form_field_name = form_field if isinstance(form_field, str) and form_field else DEFAULT_FORM_FIELD
    bucket_value = raw.get("bucket")
    bucket = bucket_value if isinstance(bucket_value, str) and bucket_value else default_bucket

    debug = {
        "received_keys": [str(key) for key in raw.keys()],
        "chosen": {
            "upload_url": redact_url(upload_url),
            "bucket_relative_path": path,
            "bucket": bucket,
            "upload_method": method.value,
            "form_field_name": form_field_name,
            "required_headers": redact_headers(headers),
            "signed_upload_token": REDACTED if token else None,
            "is_signed_upload_url": is_signed,
        },
    }
    return NormalizedTicket(
        upload_url=upload_url,
        bucket_relative_path=path,
        bucket=bucket,
        upload_method=method,
        form_field_name=form_field_name,
        required_headers=headers,
        signed_upload_token=token,
        is_signed_upload_url=is_signed,
        debug=debug,
    )


__all__ = [
    "PATH_KEYS",
    "TOKEN_KEYS",
    "UPLOAD_URL_KEYS",
    "first_string",
    "normalize_ticket",
]
