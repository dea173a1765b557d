from __future__ import annotations

from fastapi import Depends
from sqlmodel import Session

from app.core.auth import AuthContext, get_auth_context
from app.db.repository import SqlWorkRepository
from app.db.session import get_session
from app.services.work import WorkService

SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)


def get_work_service(session: Session = SESSION_DEP) -> WorkService:
    return WorkService(SqlWorkRepository(session))


SERVICE_DEP = Depends(get_work_service)

__all__ = ["AUTH_DEP", "SERVICE_DEP", "SESSION_DEP", "AuthContext", "get_work_service"]
