# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable, Iterator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.session import get_session
from app.main import app
from app.models.projects import Project
from app.schemas.projects import ProjectCreate
from app.services.work import WorkService

from .fakes import InMemoryWorkRepository


@pytest.fixture()
def repo() -> InMemoryWorkRepository:
    return InMemoryWorkRepository()


@pytest.fixture()
def service(repo: InMemoryWorkRepository) -> WorkService:
    return WorkService(repo)


@pytest.fixture()
def people(repo: InMemoryWorkRepository) -> SimpleNamespace:
    """owner creates the project; lead and dev join it; outsider never does."""
    return SimpleNamespace(
        owner=repo.add_user("olivia", role="manager"),
        lead=repo.add_user("liam"),
        dev=repo.add_user("dana"),
        outsider=repo.add_user("oscar"),
    )


@pytest.fixture()
def project(service: WorkService, people: SimpleNamespace) -> Project:
    created = service.create_project(
        people.owner.id,
        ProjectCreate(name="Apollo", description="Launch the new site"),
    )
    service.add_team_member(people.owner.id, created.id, people.lead.id, "lead")
    service.add_team_member(people.owner.id, created.id, people.dev.id)
    return created


# --- API -------------------------------------------------------------------


@pytest.fixture()
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def client(db_session: Session) -> Iterator[TestClient]:
    def _get_session() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_session] = _get_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(client: TestClient) -> Callable[..., dict[str, str]]:
    """Create a user over the API and return request headers acting as them."""

    def _make(username: str, role: str = "developer") -> dict[str, str]:
        resp = client.post(
            "/api/users",
            json={"username": username, "email": f"{username}@example.com", "role": role},
        )
        assert resp.status_code == 201, resp.text
        return {"X-User-Id": resp.json()["id"]}

    return _make
