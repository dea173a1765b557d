from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi_pagination.ext.sqlmodel import paginate
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.api.deps import AUTH_DEP, SESSION_DEP
from app.core.auth import AuthContext, require_local_token
from app.core.logging import get_logger
from app.models.users import User
from app.schemas.pagination import DefaultLimitOffsetPage
from app.schemas.users import UserCreate, UserRead, UserRole, UserStats
from app.services.statistics import user_statistics

router = APIRouter(prefix="/users", tags=["users"])
logger = get_logger(__name__)


def _to_user_reads(items: Sequence[Any]) -> list[UserRead]:
    return [UserRead.model_validate(item, from_attributes=True) for item in items]


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_local_token)],
)
def create_user(payload: UserCreate, session: Session = SESSION_DEP) -> User:
    user = User(**payload.model_dump())
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already in use",
        ) from None
    session.refresh(user)
    logger.info("user.created user_id=%s role=%s", user.id, user.role)
    return user


@router.get("", response_model=DefaultLimitOffsetPage[UserRead])
def list_users(
    search: str | None = Query(default=None),
    role: UserRole | None = Query(default=None),
    session: Session = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> DefaultLimitOffsetPage[UserRead]:
    statement = select(User).where(col(User.is_active).is_(True))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        statement = statement.where(
            or_(
                col(User.username).ilike(pattern),
                col(User.first_name).ilike(pattern),
                col(User.last_name).ilike(pattern),
                col(User.email).ilike(pattern),
            )
        )
    if role is not None:
        statement = statement.where(col(User.role) == role)
    statement = statement.order_by(col(User.first_name).asc(), col(User.last_name).asc())
    return paginate(session, statement, transformer=_to_user_reads)


@router.get("/stats", response_model=UserStats)
def get_user_stats(session: Session = SESSION_DEP, auth: AuthContext = AUTH_DEP) -> UserStats:
    return user_statistics(session)


@router.get("/me", response_model=UserRead)
def get_me(auth: AuthContext = AUTH_DEP) -> User:
    return auth.user


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: UUID, session: Session = SESSION_DEP, auth: AuthContext = AUTH_DEP) -> User:
    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
