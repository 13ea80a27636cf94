from quizroom.schemas.admin import ActiveSessionRead, ArchivedRoundBlockRead
from quizroom.schemas.round import (
    ANSWERABLE_ROUND_TYPES,
    CLOSED_BY_DEFAULT_ROUND_TYPES,
    UNARCHIVED_ROUND_TYPES,
    MatchingPair,
    Round,
    RoundSpec,
    RoundType,
    WaitingRound,
)
from quizroom.schemas.session import (
    AnswerMessage,
    ArchivedRoundBlock,
    HostState,
    LivesMessage,
    LoginMessage,
    Player,
    PublicPlayer,
    PublicState,
    QuestionRecord,
    SessionSnapshot,
)

__all__ = [
    "ActiveSessionRead",
    "ArchivedRoundBlockRead",
    "ANSWERABLE_ROUND_TYPES",
    "CLOSED_BY_DEFAULT_ROUND_TYPES",
    "UNARCHIVED_ROUND_TYPES",
    "MatchingPair",
    "Round",
    "RoundSpec",
    "RoundType",
    "WaitingRound",
    "AnswerMessage",
    "ArchivedRoundBlock",
    "HostState",
    "LivesMessage",
    "LoginMessage",
    "Player",
    "PublicPlayer",
    "PublicState",
    "QuestionRecord",
    "SessionSnapshot",
]
