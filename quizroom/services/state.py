import uuid
from typing import Dict, List, Optional

from quizroom.core.time import utc_now
from quizroom.schemas import UNARCHIVED_ROUND_TYPES, Player, QuestionRecord, Round, SessionSnapshot, WaitingRound


def new_session_id() -> str:
    """Time-derived id with a random suffix so restarts within a second never collide."""
    return f"{utc_now():%Y%m%d-%H%M%S}-{uuid.uuid4().hex[:6]}"


class GameSession:
    """Authoritative in-memory state of the one live game.

    The runtime owns exactly one instance and hands it to the round, identity
    and projection helpers; a reset replaces the instance instead of clearing it.
    """

    def __init__(
        self,
        session_id: str,
        roster: Optional[Dict[str, Player]] = None,
        current_round: Optional[Round] = None,
        history: Optional[List[QuestionRecord]] = None,
        round_block: int = 1,
    ):
        self.session_id = session_id
        self.roster: Dict[str, Player] = roster if roster is not None else {}
        self.current_round: Round = current_round if current_round is not None else WaitingRound()
        self.history: List[QuestionRecord] = history if history is not None else []
        self.round_block = round_block

    @classmethod
    def fresh(cls) -> "GameSession":
        return cls(new_session_id())

    @classmethod
    def from_snapshot(cls, session_id: str, snapshot: SessionSnapshot) -> "GameSession":
        roster = {}
        for name, player in snapshot.roster.items():
            # No socket survives a restart
            roster[name] = player.model_copy(update={"connected": False})
        return cls(
            session_id,
            roster=roster,
            current_round=snapshot.current_round,
            history=list(snapshot.history),
            round_block=snapshot.round_block,
        )

    def snapshot(self) -> SessionSnapshot:
        """Copy of the state as it is written to the store, without media payloads."""
        return SessionSnapshot(
            roster={name: player.model_copy(deep=True) for name, player in self.roster.items()},
            current_round=self.current_round.model_copy(update={"media": None}, deep=True),
            history=[record.model_copy(deep=True) for record in self.history],
            round_block=self.round_block,
        )

    def get_player(self, name: Optional[str]) -> Optional[Player]:
        if name is None:
            return None
        return self.roster.get(name)

    def verified_names(self) -> List[str]:
        return [name for name, player in self.roster.items() if player.verified]

    def lives_snapshot(self) -> Dict[str, int]:
        return {name: player.lives for name, player in self.roster.items()}

    def has_open_block(self) -> bool:
        return bool(self.history) or self.current_round.type not in UNARCHIVED_ROUND_TYPES
