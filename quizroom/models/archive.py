import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from quizroom.core.time import utc_now
from quizroom.models.session import json_column


class ArchivedRoundBlockRecord(SQLModel, table=True):
    """Append-only: rows are inserted once per closed round-block and never updated."""

    __tablename__ = "archived_round_blocks"
    __table_args__ = (UniqueConstraint("session_id", "block_number"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    session_id: str = Field(index=True)
    block_number: int
    archived_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
    lives: dict[str, int] = Field(default_factory=dict, sa_column=json_column(nullable=False))
    history: list[Any] = Field(default_factory=list, sa_column=json_column(nullable=False))
