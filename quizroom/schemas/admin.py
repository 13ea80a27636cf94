from datetime import datetime
from typing import List

from pydantic import BaseModel

from quizroom.schemas.session import QuestionRecord


class ArchivedRoundBlockRead(BaseModel):
    session_id: str
    block_number: int
    archived_at: datetime
    lives: dict[str, int]
    history: List[QuestionRecord]


class ActiveSessionRead(BaseModel):
    session_id: str
    round_block: int
    player_count: int
    verified_count: int
