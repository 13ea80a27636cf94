from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class RoundType(str):
    WAITING = "WAITING"
    TEXT = "TEXT"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SEQUENCE = "SEQUENCE"
    MATCHING = "MATCHING"
    NUMERIC_RANGE = "NUMERIC_RANGE"
    PLAYER_VOTE = "PLAYER_VOTE"
    INFO = "INFO"
    MEDIA_STREAM = "MEDIA_STREAM"


ALL_ROUND_TYPES = frozenset(
    {
        RoundType.WAITING,
        RoundType.TEXT,
        RoundType.MULTIPLE_CHOICE,
        RoundType.SEQUENCE,
        RoundType.MATCHING,
        RoundType.NUMERIC_RANGE,
        RoundType.PLAYER_VOTE,
        RoundType.INFO,
        RoundType.MEDIA_STREAM,
    }
)

ANSWERABLE_ROUND_TYPES = frozenset(
    {
        RoundType.TEXT,
        RoundType.MULTIPLE_CHOICE,
        RoundType.SEQUENCE,
        RoundType.MATCHING,
        RoundType.NUMERIC_RANGE,
        RoundType.PLAYER_VOTE,
    }
)

# Rounds that leave nothing worth recording in history
UNARCHIVED_ROUND_TYPES = frozenset({RoundType.WAITING, RoundType.INFO})

# Rounds that open closed unless the host says otherwise
CLOSED_BY_DEFAULT_ROUND_TYPES = frozenset({RoundType.INFO, RoundType.MEDIA_STREAM})


class RoundBase(BaseModel):
    question: str = ""
    answering_open: bool = False
    revealed: bool = False
    revealed_answers: List[str] = Field(default_factory=list)
    input_blocked: bool = False
    # None means every verified player may answer
    eligible_players: Optional[List[str]] = None
    media: Optional[str] = None
    media_visible: bool = False


class WaitingRound(RoundBase):
    type: Literal["WAITING"] = RoundType.WAITING
    message: Optional[str] = None


class TextRound(RoundBase):
    type: Literal["TEXT"] = RoundType.TEXT
    answer_key: Any = None


class MultipleChoiceRound(RoundBase):
    type: Literal["MULTIPLE_CHOICE"] = RoundType.MULTIPLE_CHOICE
    options: List[Any] = Field(default_factory=list)
    # Stored exactly as the host sent it, e.g. one option or a list of accepted options
    answer_key: Any = None


class SequenceRound(RoundBase):
    type: Literal["SEQUENCE"] = RoundType.SEQUENCE
    items: List[Any] = Field(default_factory=list)
    answer_key: List[Any] = Field(default_factory=list)


class MatchingRound(RoundBase):
    type: Literal["MATCHING"] = RoundType.MATCHING
    left: List[str] = Field(default_factory=list)
    right: List[str] = Field(default_factory=list)
    answer_key: Dict[str, str] = Field(default_factory=dict)


class NumericRangeRound(RoundBase):
    type: Literal["NUMERIC_RANGE"] = RoundType.NUMERIC_RANGE
    min_value: float = 0.0
    max_value: float = 100.0
    answer_key: Optional[float] = None


class PlayerVoteRound(RoundBase):
    type: Literal["PLAYER_VOTE"] = RoundType.PLAYER_VOTE
    candidates: List[str] = Field(default_factory=list)
    answer_key: Any = None


class InfoRound(RoundBase):
    type: Literal["INFO"] = RoundType.INFO


class MediaStreamRound(RoundBase):
    type: Literal["MEDIA_STREAM"] = RoundType.MEDIA_STREAM


Round = Annotated[
    Union[
        WaitingRound,
        TextRound,
        MultipleChoiceRound,
        SequenceRound,
        MatchingRound,
        NumericRangeRound,
        PlayerVoteRound,
        InfoRound,
        MediaStreamRound,
    ],
    Field(discriminator="type"),
]


class MatchingPair(BaseModel):
    left: str
    right: str


class RoundSpec(BaseModel):
    """What the host sends to start a round; canonicalized by the round controller."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    question: str = ""
    options: List[Any] = Field(default_factory=list)
    items: List[Any] = Field(default_factory=list)
    pairs: List[MatchingPair] = Field(default_factory=list)
    min: Any = None
    max: Any = None
    correct_answer: Any = Field(
        default=None,
        validation_alias=AliasChoices("correct_answer", "correctAnswer"),
    )
    candidates: Optional[List[str]] = None
    eligible_players: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("eligible_players", "eligiblePlayers", "targetPlayers"),
    )
    media: Optional[str] = None
    answering_open: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("answering_open", "answeringOpen"),
    )

    @field_validator("type")
    @classmethod
    def known_type(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ALL_ROUND_TYPES:
            raise ValueError(f"unknown round type {value!r}")
        return value
