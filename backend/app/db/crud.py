"""Small generic helpers around a SQLModel session."""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import delete
from sqlmodel import Session, SQLModel

ModelT = TypeVar("ModelT", bound=SQLModel)


def get_by_id(session: Session, model: type[ModelT], obj_id: Any) -> ModelT | None:
    if obj_id is None:
        return None
    return session.get(model, obj_id)


def save(session: Session, obj: ModelT) -> ModelT:
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


def delete_where(session: Session, model: type[SQLModel], *criteria: Any) -> int:
    """Delete rows matching ``criteria`` without committing; returns the row count."""
    result = session.execute(delete(model).where(*criteria))
    return result.rowcount or 0
