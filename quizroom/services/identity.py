import random
from dataclasses import dataclass
from typing import Any, Optional

from quizroom.core.config import settings
from quizroom.core.exceptions import ValidationRejection
from quizroom.schemas import Player
from quizroom.services.state import GameSession


@dataclass
class JoinResult:
    player: Player
    is_new: bool
    # Already verified earlier in this session, no code needed
    auto_login: bool
    notify_host: bool


def generate_code(rng: Optional[random.Random] = None) -> str:
    # Codes are unique per name only; other players may share one
    return str((rng or random).randint(1000, 9999))


def normalize_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationRejection("invalid_name")
    return name.strip()


def _create_player(session: GameSession, name: str, connected: bool, rng, initial_lives) -> Player:
    lives = settings.lives_initial if initial_lives is None else initial_lives
    player = Player(name=name, code=generate_code(rng), lives=lives, connected=connected)
    session.roster[name] = player
    return player


def announce(
    session: GameSession,
    name: Any,
    rng: Optional[random.Random] = None,
    initial_lives: Optional[int] = None,
) -> JoinResult:
    name = normalize_name(name)
    player = session.get_player(name)
    if player is None:
        player = _create_player(session, name, True, rng, initial_lives)
        return JoinResult(player=player, is_new=True, auto_login=False, notify_host=True)

    player.connected = True
    if player.verified:
        return JoinResult(player=player, is_new=False, auto_login=True, notify_host=False)
    return JoinResult(player=player, is_new=False, auto_login=False, notify_host=True)


def host_create(
    session: GameSession,
    name: Any,
    rng: Optional[random.Random] = None,
    initial_lives: Optional[int] = None,
) -> JoinResult:
    name = normalize_name(name)
    player = session.get_player(name)
    if player is not None:
        # Existing players keep their code; the host just gets it again
        return JoinResult(player=player, is_new=False, auto_login=False, notify_host=True)
    player = _create_player(session, name, False, rng, initial_lives)
    return JoinResult(player=player, is_new=True, auto_login=False, notify_host=True)


def login(session: GameSession, name: Any, code: Any) -> Player:
    """Validate a code. Raises ValidationRejection without touching state on failure."""
    if not isinstance(name, str) or code is None:
        raise ValidationRejection("invalid_payload")
    player = session.get_player(name.strip())
    if player is None:
        raise ValidationRejection("unknown_player")
    if str(player.code).strip() != str(code).strip():
        raise ValidationRejection("wrong_code")
    player.verified = True
    player.connected = True
    return player
