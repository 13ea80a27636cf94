from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from quizroom.schemas.round import Round, WaitingRound


class Player(BaseModel):
    name: str
    code: str
    lives: int = 3
    verified: bool = False
    connected: bool = False
    answer: Any = None
    has_answered: bool = False


class QuestionRecord(BaseModel):
    question: str
    type: str
    answer_key: Any = None
    answers: Dict[str, Any] = Field(default_factory=dict)


class ArchivedRoundBlock(BaseModel):
    block_number: int
    archived_at: datetime
    lives: Dict[str, int] = Field(default_factory=dict)
    history: List[QuestionRecord] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    """Persisted document for one session."""

    roster: Dict[str, Player] = Field(default_factory=dict)
    current_round: Round = Field(default_factory=WaitingRound)
    history: List[QuestionRecord] = Field(default_factory=list)
    round_block: int = 1


class PublicPlayer(BaseModel):
    name: str
    lives: int
    has_answered: bool
    connected: bool
    answer: Any = None


class PublicState(BaseModel):
    session_id: str
    round_block: int
    round: Dict[str, Any]
    players: List[PublicPlayer]


class HostState(BaseModel):
    session_id: str
    round_block: int
    round: Round
    roster: Dict[str, Player]
    history: List[QuestionRecord]


class LoginMessage(BaseModel):
    name: str
    code: Any


class AnswerMessage(BaseModel):
    name: str
    answer: Any = None


class LivesMessage(BaseModel):
    name: str
    delta: int
