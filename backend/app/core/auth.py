"""Requester identity for API calls.

Tokens are issued elsewhere. Here the ``X-User-Id`` header names the acting
user and, when ``LOCAL_AUTH_TOKEN`` is configured, a matching bearer token
must accompany it.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from app.core.config import settings
from app.db.session import get_session
from app.models.users import User


@dataclass(frozen=True, slots=True)
class AuthContext:
    user: User

    @property
    def user_id(self) -> UUID:
        return self.user.id


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _verify_token(authorization: str | None) -> bool:
    expected = settings.local_auth_token
    if not expected:
        return True
    if not authorization:
        return False
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return False
    return hmac.compare_digest(token.strip(), expected)


def get_auth_context(
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> AuthContext:
    if not _verify_token(authorization):
        raise _unauthorized()
    if not x_user_id:
        raise _unauthorized("X-User-Id header is required")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise _unauthorized("X-User-Id is not a valid id") from None
    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise _unauthorized()
    return AuthContext(user=user)


def require_local_token(authorization: str | None = Header(default=None)) -> None:
    """Token check alone, for endpoints that run before any user exists."""
    if not _verify_token(authorization):
        raise _unauthorized()
