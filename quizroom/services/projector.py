from typing import Any, Dict

from quizroom.schemas import HostState, PublicPlayer, PublicState
from quizroom.services.state import GameSession


def answer_visible(session: GameSession, name: str) -> bool:
    current = session.current_round
    return current.revealed or name in current.revealed_answers


def public_round(session: GameSession) -> Dict[str, Any]:
    current = session.current_round
    payload = current.model_dump(mode="json")
    if not current.revealed:
        payload.pop("answer_key", None)
    if not current.media_visible:
        payload["media"] = None
    return payload


def to_public_view(session: GameSession) -> PublicState:
    """Group view: verified players only, answers withheld until revealed."""
    players = []
    for name, player in session.roster.items():
        if not player.verified:
            continue
        players.append(
            PublicPlayer(
                name=name,
                lives=player.lives,
                has_answered=player.has_answered,
                connected=player.connected,
                answer=player.answer if answer_visible(session, name) else None,
            )
        )
    return PublicState(
        session_id=session.session_id,
        round_block=session.round_block,
        round=public_round(session),
        players=players,
    )


def to_host_view(session: GameSession) -> HostState:
    return HostState(
        session_id=session.session_id,
        round_block=session.round_block,
        round=session.current_round.model_copy(deep=True),
        roster={name: player.model_copy(deep=True) for name, player in session.roster.items()},
        history=[record.model_copy(deep=True) for record in session.history],
    )
