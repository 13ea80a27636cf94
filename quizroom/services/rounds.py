"""Round lifecycle: starting, gating, revealing and archiving rounds.

Every function takes the live GameSession explicitly and mutates it in place.
Persistence and broadcasting are left to the runtime.
"""
import copy
import math
import random
from typing import Any, Dict, Optional

from quizroom.core.config import settings
from quizroom.core.time import utc_now
from quizroom.schemas import (
    ANSWERABLE_ROUND_TYPES,
    CLOSED_BY_DEFAULT_ROUND_TYPES,
    UNARCHIVED_ROUND_TYPES,
    ArchivedRoundBlock,
    QuestionRecord,
    Round,
    RoundSpec,
    RoundType,
    WaitingRound,
)
from quizroom.schemas.round import (
    InfoRound,
    MatchingRound,
    MediaStreamRound,
    MultipleChoiceRound,
    NumericRangeRound,
    PlayerVoteRound,
    SequenceRound,
    TextRound,
)
from quizroom.services.shuffle import shuffled
from quizroom.services.state import GameSession

DEFAULT_MIN_VALUE = 0.0
DEFAULT_MAX_VALUE = 100.0


def _coerce_number(value: Any, default: Optional[float]) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def has_content(answer: Any) -> bool:
    if answer is None:
        return False
    if isinstance(answer, str):
        return bool(answer.strip())
    if isinstance(answer, (list, tuple, dict)):
        return len(answer) > 0
    return True


def build_round(spec: RoundSpec, session: GameSession, rng: Optional[random.Random] = None) -> Round:
    common = {
        "question": spec.question,
        "eligible_players": list(spec.eligible_players) if spec.eligible_players is not None else None,
        "media": spec.media,
    }

    if spec.type == RoundType.TEXT:
        new_round = TextRound(**common, answer_key=copy.deepcopy(spec.correct_answer))
    elif spec.type == RoundType.MULTIPLE_CHOICE:
        new_round = MultipleChoiceRound(
            **common,
            options=shuffled(spec.options, rng),
            answer_key=copy.deepcopy(spec.correct_answer),
        )
    elif spec.type == RoundType.SEQUENCE:
        ordered = list(spec.items or spec.options)
        # The served order is drawn independently of the key
        new_round = SequenceRound(**common, items=shuffled(ordered, rng), answer_key=ordered)
    elif spec.type == RoundType.MATCHING:
        left = [pair.left for pair in spec.pairs]
        right = [pair.right for pair in spec.pairs]
        new_round = MatchingRound(
            **common,
            left=left,
            right=shuffled(right, rng),
            answer_key={pair.left: pair.right for pair in spec.pairs},
        )
    elif spec.type == RoundType.NUMERIC_RANGE:
        new_round = NumericRangeRound(
            **common,
            min_value=_coerce_number(spec.min, DEFAULT_MIN_VALUE),
            max_value=_coerce_number(spec.max, DEFAULT_MAX_VALUE),
            answer_key=_coerce_number(spec.correct_answer, None),
        )
    elif spec.type == RoundType.PLAYER_VOTE:
        candidates = spec.candidates if spec.candidates is not None else session.verified_names()
        new_round = PlayerVoteRound(
            **common,
            candidates=list(candidates),
            answer_key=copy.deepcopy(spec.correct_answer),
        )
    elif spec.type == RoundType.INFO:
        new_round = InfoRound(**common)
    elif spec.type == RoundType.MEDIA_STREAM:
        new_round = MediaStreamRound(**common)
    else:
        new_round = WaitingRound(question=spec.question)

    if spec.answering_open is not None:
        new_round.answering_open = spec.answering_open
    else:
        new_round.answering_open = (
            new_round.type in ANSWERABLE_ROUND_TYPES and new_round.type not in CLOSED_BY_DEFAULT_ROUND_TYPES
        )
    return new_round


def archive_current_question(session: GameSession) -> Optional[QuestionRecord]:
    current = session.current_round
    if current.type in UNARCHIVED_ROUND_TYPES:
        return None
    answers = {
        name: player.answer
        for name, player in session.roster.items()
        if player.has_answered and has_content(player.answer)
    }
    record = QuestionRecord(
        question=current.question,
        type=current.type,
        answer_key=getattr(current, "answer_key", None),
        answers=answers,
    )
    session.history.append(record)
    return record


def clear_answers(session: GameSession) -> None:
    for player in session.roster.values():
        player.answer = None
        player.has_answered = False


def start_round(session: GameSession, spec: RoundSpec, rng: Optional[random.Random] = None) -> Round:
    archive_current_question(session)
    session.current_round = build_round(spec, session, rng)
    clear_answers(session)
    return session.current_round


def close_answering(session: GameSession) -> None:
    session.current_round.answering_open = False


def reveal(session: GameSession) -> None:
    session.current_round.revealed = True
    session.current_round.answering_open = False


def reopen_answering(session: GameSession) -> None:
    session.current_round.answering_open = True
    session.current_round.revealed = False


def reveal_single(session: GameSession, name: str) -> bool:
    revealed = session.current_round.revealed_answers
    if name in revealed:
        return False
    revealed.append(name)
    return True


def toggle_media_visible(session: GameSession, visible: bool) -> None:
    session.current_round.media_visible = visible


def toggle_input_blocked(session: GameSession, blocked: bool) -> None:
    session.current_round.input_blocked = blocked


def can_answer(session: GameSession, name: str) -> bool:
    current = session.current_round
    if current.type not in ANSWERABLE_ROUND_TYPES:
        return False
    if not current.answering_open or current.input_blocked:
        return False
    player = session.get_player(name)
    if player is None or not player.verified or player.lives <= 0:
        return False
    if current.eligible_players is not None and name not in current.eligible_players:
        return False
    return True


def submit_answer(session: GameSession, name: str, answer: Any) -> bool:
    """Record an answer; False means the submission was silently dropped."""
    if answer is None or not can_answer(session, name):
        return False
    player = session.roster[name]
    player.answer = answer
    player.has_answered = True
    return True


def set_bulk_answers(session: GameSession, answers: Dict[str, Any]) -> list[str]:
    stamped = []
    for name, answer in answers.items():
        if not isinstance(name, str):
            continue
        name = name.strip()
        player = session.get_player(name)
        if player is None:
            continue
        player.answer = answer
        player.has_answered = has_content(answer)
        stamped.append(name)
    return stamped


def modify_lives(
    session: GameSession,
    name: str,
    delta: int,
    lives_range: Optional[tuple[int, int]] = None,
) -> Optional[int]:
    player = session.get_player(name)
    if player is None:
        return None
    low, high = lives_range or settings.lives_range
    player.lives = max(low, min(high, player.lives + delta))
    return player.lives


def advance_round_block(session: GameSession) -> ArchivedRoundBlock:
    archive_current_question(session)
    block = ArchivedRoundBlock(
        block_number=session.round_block,
        archived_at=utc_now(),
        lives=session.lives_snapshot(),
        history=list(session.history),
    )
    end_round_block(session, session.round_block)
    return block


def end_round_block(session: GameSession, finished: int) -> None:
    """Leave the session waiting at the start of the block after `finished`."""
    session.history = []
    session.round_block = finished + 1
    session.current_round = WaitingRound(message=f"Round-block {finished} ended")
    clear_answers(session)
