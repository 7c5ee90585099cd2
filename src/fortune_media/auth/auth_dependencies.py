"""Common authentication dependencies for FastAPI routers."""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..exceptions import AuthError
from .auth_service import UserTokenVerifier

security = HTTPBearer(auto_error=False)


def get_token_verifier(request: Request) -> UserTokenVerifier:
    try:
        return request.app.state.token_verifier  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UserTokenVerifier is not configured") from exc


def require_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Return the raw bearer credential; verification happens after body validation."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Authorization required")
    return credentials.credentials


__all__ = ["get_token_verifier", "require_bearer_token", "security"]
