from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator
from sqlmodel import SQLModel

from app.core.time import to_naive_utc

# Columns store naive UTC, so offsets are applied on input rather than dropped.
UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


class OkResponse(SQLModel):
    ok: bool = True
