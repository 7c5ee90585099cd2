"""Verification of bearer tokens issued by the hosted auth provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt
import structlog
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError

from ..exceptions import InvalidTokenError, TokenExpiredError

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AuthenticatedUser:
    id: str
    role: str | None = None


@dataclass(slots=True)
class UserTokenVerifier:
    """Decode HS256 access tokens signed with the project's JWT secret."""

    signing_key: str
    audience: str | None = "authenticated"
    algorithm: str = "HS256"

    def verify(self, token: str) -> AuthenticatedUser:
        options: dict[str, Any] = {"require": ["sub", "exp"]}
        if self.audience is None:
            options["verify_aud"] = False
        try:
            payload = jwt.decode(
                token,
                self.signing_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except ExpiredSignatureError as exc:
            logger.info("auth.token.expired")
            raise TokenExpiredError("Invalid authorization") from exc
        except PyJWTInvalidTokenError as exc:
            logger.info("auth.token.invalid", reason=str(exc))
            raise InvalidTokenError("Invalid authorization") from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Invalid authorization")
        return AuthenticatedUser(id=subject, role=payload.get("role"))


__all__ = ["AuthenticatedUser", "UserTokenVerifier"]
