from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query
from sqlmodel import Session

from app.api.deps import AUTH_DEP, SESSION_DEP
from app.core.auth import AuthContext
from app.core.config import settings
from app.schemas.stats import SearchResponse, SearchType, Statistics, TimeRange
from app.services.search import search
from app.services.statistics import build_statistics

router = APIRouter(prefix="/advanced", tags=["advanced"])


@router.get("/stats", response_model=Statistics)
def get_statistics(
    project_id: UUID | None = Query(default=None),
    time_range: TimeRange = Query(default="month"),
    session: Session = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Statistics:
    return build_statistics(session, auth.user_id, project_id=project_id, time_range=time_range)


@router.get("/search", response_model=SearchResponse)
def advanced_search(
    q: str = Query(min_length=1),
    search_type: SearchType = Query(default="all", alias="type"),
    session: Session = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> SearchResponse:
    return search(session, auth.user_id, q, search_type=search_type, limit=settings.search_limit)
