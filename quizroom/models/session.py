from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from quizroom.core.time import utc_now


def json_column(**kwargs) -> Column:
    # JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests)
    return Column(JSON().with_variant(JSONB(), "postgresql"), **kwargs)


ACTIVE_POINTER_ID = "active"


class ActiveSessionPointer(SQLModel, table=True):
    __tablename__ = "active_session_pointer"

    id: str = Field(default=ACTIVE_POINTER_ID, primary_key=True)
    active_session_id: str
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))


class SessionDocument(SQLModel, table=True):
    __tablename__ = "session_documents"

    id: str = Field(primary_key=True)
    document: dict[str, Any] = Field(default_factory=dict, sa_column=json_column(nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
