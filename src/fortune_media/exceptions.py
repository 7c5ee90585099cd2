"""Domain level exceptions shared by the server handlers and the client pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import status
from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "ValidationError",
    "MissingFieldsError",
    "AuthError",
    "InvalidTokenError",
    "TokenExpiredError",
    "OwnershipError",
    "EntitlementError",
    "FortuneNotFoundError",
    "MediaPersistenceError",
    "StorageError",
    "TransportError",
    "NotFoundTransient",
    "UploadStageError",
    "handle_sqlalchemy_errors",
    "is_transient_not_found",
]


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and ``{error}`` body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    """Bad input shape, UUID or MIME type. Never retried."""

    status_code = status.HTTP_400_BAD_REQUEST


class MissingFieldsError(ValidationError):
    """Raised when a request body lacks required fields."""

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__("Missing required fields")
        self.missing_fields = missing_fields

    def payload(self) -> dict[str, Any]:
        return {"error": self.message, "missingFields": list(self.missing_fields)}


class AuthError(AppError):
    """Missing or invalid bearer credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(AuthError):
    """Raised when a token cannot be decoded or verified."""


class TokenExpiredError(InvalidTokenError):
    """Raised when a token is expired."""


class OwnershipError(AppError):
    """Caller does not own the fortune."""

    status_code = status.HTTP_403_FORBIDDEN


class EntitlementError(AppError):
    """Caller has no active subscription, lifetime plan or trial."""

    status_code = status.HTTP_403_FORBIDDEN


class FortuneNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class MediaPersistenceError(AppError):
    """Raised when the media record upsert fails."""


class StorageError(AppError):
    """Object storage rejected a request.

    ``storage_status`` is the HTTP status reported by the storage API, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        storage_status: int | None = None,
        retriable: bool = False,
    ) -> None:
        super().__init__(message)
        self.storage_status = storage_status
        self.retriable = retriable

    @property
    def is_not_found(self) -> bool:
        return self.storage_status == 404 or is_transient_not_found(self.message)

    def payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.retriable:
            body["retriable"] = True
        return body


class TransportError(AppError):
    """Network failure or non-2xx response seen by a client component."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, response_status: int | None = None) -> None:
        super().__init__(message)
        self.response_status = response_status


class NotFoundTransient(AppError):
    """Object storage read raced an in-progress write."""

    status_code = status.HTTP_404_NOT_FOUND


class UploadStageError(Exception):
    """Failure inside one orchestrator stage; ``stage`` names where it happened."""

    def __init__(
        self,
        stage: str,
        reason: str,
        *,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(reason)
        self.stage = stage
        self.reason = reason
        self.status_code = status_code
        self.body_snippet = body_snippet


_TRANSIENT_MARKERS = ("not found", "404")


def is_transient_not_found(message: str | None) -> bool:
    """Return True for storage messages that indicate a read racing a write."""

    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in _TRANSIENT_MARKERS)


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into :class:`MediaPersistenceError`."""

    prefix = f"{entity}: " if entity else ""
    try:
        yield
    except sa_exc.IntegrityError as exc:
        raise MediaPersistenceError(f"{prefix}integrity constraint violated") from exc
    except sa_exc.SQLAlchemyError as exc:
        raise MediaPersistenceError(f"{prefix}database operation failed") from exc
