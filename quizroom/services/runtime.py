import asyncio
import logging
import random
import secrets
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from quizroom.core.config import settings
from quizroom.core.exceptions import TransientStoreFailure, ValidationRejection
from quizroom.schemas import AnswerMessage, LivesMessage, LoginMessage, RoundSpec, SessionSnapshot
from quizroom.services import identity, rounds
from quizroom.services.projector import to_host_view, to_public_view
from quizroom.services.state import GameSession
from quizroom.services.store import SessionStore

HOST_EVENTS = frozenset(
    {
        "hostCreatePlayer",
        "hostStartRound",
        "hostCloseAnswering",
        "hostReopenAnswering",
        "hostReveal",
        "hostRevealSingle",
        "hostModifyLives",
        "hostAdvanceRoundBlock",
        "hostResetAll",
        "hostSetBulkAnswers",
        "hostToggleMediaVisible",
        "hostToggleInputBlocked",
    }
)


@dataclass
class Connection:
    """One attached client socket and what it has authenticated as."""

    socket: Any
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    is_host: bool = False
    player_name: Optional[str] = None


def _parse(model: type[BaseModel], data: Any):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ValidationRejection("invalid_payload", str(exc)) from exc


def _text_arg(data: Any, key: str) -> str:
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, str):
        raise ValidationRejection("invalid_payload", f"{key} must be a string")
    return data


def _bool_arg(data: Any, key: str) -> bool:
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, bool):
        raise ValidationRejection("invalid_payload", f"{key} must be a boolean")
    return data


class RuntimeController:
    """Owns the single live session and processes client events one at a time."""

    def __init__(
        self,
        store: SessionStore,
        host_password: Optional[str] = None,
        lives_range: Optional[tuple[int, int]] = None,
        initial_lives: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.logger = logging.getLogger("runtime")
        self.host_logger = logging.getLogger("host")
        self.store_logger = logging.getLogger("store")
        self.store = store
        self.host_password = host_password if host_password is not None else settings.host_password
        self.lives_range = lives_range or settings.lives_range
        self.initial_lives = initial_lives if initial_lives is not None else settings.lives_initial
        self.rng = rng
        self.game: Optional[GameSession] = None
        # Events are ignored until bootstrap has loaded or created a session
        self.ready = False
        self.lock = asyncio.Lock()
        self.connections: Dict[str, Connection] = {}
        self._pending_writes: set[asyncio.Task] = set()
        self._last_write: Optional[asyncio.Task] = None
        self.handlers: Dict[str, Callable[[Connection, Any], Awaitable[None]]] = {
            "hostLogin": self._host_login,
            "hostCreatePlayer": self._host_create_player,
            "hostStartRound": self._host_start_round,
            "hostCloseAnswering": self._host_close_answering,
            "hostReopenAnswering": self._host_reopen_answering,
            "hostReveal": self._host_reveal,
            "hostRevealSingle": self._host_reveal_single,
            "hostModifyLives": self._host_modify_lives,
            "hostAdvanceRoundBlock": self._host_advance_round_block,
            "hostResetAll": self._host_reset_all,
            "hostSetBulkAnswers": self._host_set_bulk_answers,
            "hostToggleMediaVisible": self._host_toggle_media_visible,
            "hostToggleInputBlocked": self._host_toggle_input_blocked,
            "playerAnnounce": self._player_announce,
            "playerLogin": self._player_login,
            "playerSubmitAnswer": self._player_submit_answer,
        }

    # --- session lifecycle ---

    async def bootstrap(self):
        """Recover the active session from the store, or start a fresh one."""
        try:
            session_id = await self.store.load_pointer()
            if session_id:
                document = await self.store.load_session(session_id)
                if document is None:
                    self.logger.warning("Active session %s has no document, recreating it empty", session_id)
                    self.game = GameSession(session_id)
                    self.persist_in_background()
                else:
                    snapshot = SessionSnapshot.model_validate(document)
                    self.game = GameSession.from_snapshot(session_id, snapshot)
                    self.logger.info(
                        "Recovered session %s players=%s round_block=%s round=%s",
                        session_id,
                        len(self.game.roster),
                        self.game.round_block,
                        self.game.current_round.type,
                    )
                await self._reconcile_round_block()
                self.ready = True
                return
        except Exception as exc:
            self.logger.error("Bootstrap load failed, starting a fresh session: %s", exc)
        self.reset_session()
        self.ready = True

    async def _reconcile_round_block(self):
        """Move past round-blocks archived by writes that landed after the last saved document."""
        try:
            blocks = await self.store.list_round_blocks(self.game.session_id)
        except TransientStoreFailure as exc:
            self.logger.error("Could not check archived round-blocks: %s", exc)
            return
        if not blocks:
            return
        last = max(block["block_number"] for block in blocks)
        if self.game.round_block > last:
            return
        self.logger.warning(
            "Session %s document is behind its archive (round_block=%s, archived=%s), moving on",
            self.game.session_id,
            self.game.round_block,
            last,
        )
        rounds.end_round_block(self.game, last)
        self.persist_in_background()

    def reset_session(self) -> GameSession:
        self.game = GameSession.fresh()
        document = self.game.snapshot().model_dump(mode="json")
        self._schedule_write("reset_session", self._write_fresh_session, self.game.session_id, document)
        self.logger.info("Started session %s", self.game.session_id)
        return self.game

    async def _write_fresh_session(self, session_id: str, document: Dict[str, Any]):
        # Pointer first: a crash in between leaves it naming a session that gets recreated empty
        await self.store.save_pointer(session_id)
        await self.store.save_session(session_id, document)

    def retire_session(self):
        """Close the open round-block of the outgoing session into its archive."""
        if self.game is None or not self.game.has_open_block():
            return
        self._archive_block(rounds.advance_round_block(self.game))
        self.persist_in_background()
        self.logger.info("Retired session %s", self.game.session_id)

    # --- persistence ---

    def persist_in_background(self):
        """Best-effort write of the current state; the event path never waits for it."""
        session_id = self.game.session_id
        document = self.game.snapshot().model_dump(mode="json")
        self._schedule_write("save_session", self.store.save_session, session_id, document)

    def _archive_block(self, block):
        self._schedule_write(
            "append_round_block", self.store.append_round_block, self.game.session_id, block.model_dump()
        )

    def _schedule_write(self, label: str, operation, *args):
        previous = self._last_write

        async def run():
            # Writes land in the order they were scheduled
            if previous is not None and not previous.done():
                await asyncio.wait({previous})
            try:
                await operation(*args)
            except TransientStoreFailure as exc:
                self.store_logger.error("Dropped store write %s: %s", label, exc)
            except Exception:
                self.store_logger.exception("Unexpected error during store write %s", label)

        task = asyncio.create_task(run())
        self._last_write = task
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def flush_writes(self):
        while self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    # --- connections ---

    async def connect(self, socket) -> Connection:
        connection = Connection(socket=socket)
        self.connections[connection.id] = connection
        if self.ready:
            await self._send(connection, "publicStateUpdate", self.public_view())
        return connection

    async def disconnect(self, connection: Connection):
        self.connections.pop(connection.id, None)
        name = connection.player_name
        if not self.ready or name is None:
            return
        async with self.lock:
            if any(c.player_name == name for c in self.connections.values()):
                return
            player = self.game.get_player(name)
            if player is None or not player.connected:
                return
            player.connected = False
            await self.commit()

    # --- dispatch ---

    async def handle(self, connection: Connection, event: Optional[str], data: Any = None):
        if not self.ready:
            return
        handler = self.handlers.get(event)
        if handler is None:
            await self._send(connection, "rejected", {"event": event, "reason": "unknown_event"})
            return
        if event in HOST_EVENTS and not connection.is_host:
            await self._send(connection, "rejected", {"event": event, "reason": "not_host"})
            return
        async with self.lock:
            try:
                await handler(connection, data)
            except ValidationRejection as exc:
                await self._send(connection, "rejected", {"event": event, "reason": exc.reason})

    async def commit(self):
        self.persist_in_background()
        await self.broadcast_state()

    # --- projections & sending ---

    def public_view(self) -> dict:
        return to_public_view(self.game).model_dump(mode="json")

    def host_view(self) -> dict:
        return to_host_view(self.game).model_dump(mode="json")

    async def broadcast_state(self):
        public = self.public_view()
        host = self.host_view()
        for connection in list(self.connections.values()):
            await self._send(connection, "publicStateUpdate", public)
            if connection.is_host:
                await self._send(connection, "hostStateUpdate", host)

    async def _notify_hosts(self, event: str, data: Any):
        for connection in list(self.connections.values()):
            if connection.is_host:
                await self._send(connection, event, data)

    async def _send(self, connection: Connection, event: str, data: Any = None) -> bool:
        try:
            await connection.socket.send_json({"event": event, "data": data})
            return True
        except Exception as exc:
            self.logger.debug("Dropping connection %s after failed send: %s", connection.id, exc)
            self.connections.pop(connection.id, None)
            return False

    async def round_blocks(self, session_id: str) -> List[dict]:
        return await self.store.list_round_blocks(session_id)

    # --- host events ---

    async def _host_login(self, connection: Connection, data: Any):
        password = data.get("password") if isinstance(data, dict) else data
        if not isinstance(password, str) or not secrets.compare_digest(
            password.encode("utf-8"), self.host_password.encode("utf-8")
        ):
            await self._send(connection, "hostLoginFailed")
            return
        connection.is_host = True
        self.host_logger.info("Host joined on connection %s", connection.id)
        await self._send(connection, "hostLoginSucceeded")
        await self._send(connection, "hostStateUpdate", self.host_view())

    async def _host_create_player(self, connection: Connection, data: Any):
        result = identity.host_create(
            self.game, _text_arg(data, "name"), rng=self.rng, initial_lives=self.initial_lives
        )
        player = result.player
        self.host_logger.info("Host created player %s new=%s", player.name, result.is_new)
        await self._notify_hosts("hostPlayerJoined", {"name": player.name, "code": player.code, "is_manual": True})
        await self.commit()

    async def _host_start_round(self, connection: Connection, data: Any):
        spec = _parse(RoundSpec, data)
        started = rounds.start_round(self.game, spec, self.rng)
        self.host_logger.info("Round started type=%s question=%r", started.type, started.question)
        await self.commit()

    async def _host_close_answering(self, connection: Connection, data: Any):
        rounds.close_answering(self.game)
        await self.commit()

    async def _host_reopen_answering(self, connection: Connection, data: Any):
        rounds.reopen_answering(self.game)
        await self.commit()

    async def _host_reveal(self, connection: Connection, data: Any):
        rounds.reveal(self.game)
        await self.commit()

    async def _host_reveal_single(self, connection: Connection, data: Any):
        if rounds.reveal_single(self.game, identity.normalize_name(_text_arg(data, "name"))):
            await self.commit()

    async def _host_modify_lives(self, connection: Connection, data: Any):
        message = _parse(LivesMessage, data)
        name = identity.normalize_name(message.name)
        lives = rounds.modify_lives(self.game, name, message.delta, self.lives_range)
        if lives is None:
            return
        self.host_logger.info("Lives %s %+d -> %s", name, message.delta, lives)
        await self.commit()

    async def _host_advance_round_block(self, connection: Connection, data: Any):
        block = rounds.advance_round_block(self.game)
        self._archive_block(block)
        self.host_logger.info(
            "Round-block %s closed with %s questions", block.block_number, len(block.history)
        )
        await self.commit()

    async def _host_reset_all(self, connection: Connection, data: Any):
        self.retire_session()
        self.reset_session()
        for other in self.connections.values():
            other.player_name = None
        await self.broadcast_state()

    async def _host_set_bulk_answers(self, connection: Connection, data: Any):
        if not isinstance(data, dict):
            raise ValidationRejection("invalid_payload", "answers must be a mapping")
        stamped = rounds.set_bulk_answers(self.game, data)
        self.host_logger.info("Host stamped answers for %s", stamped)
        await self.commit()

    async def _host_toggle_media_visible(self, connection: Connection, data: Any):
        rounds.toggle_media_visible(self.game, _bool_arg(data, "visible"))
        await self.commit()

    async def _host_toggle_input_blocked(self, connection: Connection, data: Any):
        rounds.toggle_input_blocked(self.game, _bool_arg(data, "blocked"))
        await self.commit()

    # --- player events ---

    async def _confirm_login(self, connection: Connection, player):
        connection.player_name = player.name
        await self._send(connection, "loginSucceeded", {"name": player.name})
        if player.has_answered:
            await self._send(connection, "answerConfirmed", {"answer": player.answer})

    async def _player_announce(self, connection: Connection, data: Any):
        result = identity.announce(
            self.game, _text_arg(data, "name"), rng=self.rng, initial_lives=self.initial_lives
        )
        player = result.player
        connection.player_name = player.name
        if result.is_new:
            self.logger.info("Player %s joined", player.name)
        if result.auto_login:
            await self._confirm_login(connection, player)
        if result.notify_host:
            await self._notify_hosts(
                "hostPlayerJoined", {"name": player.name, "code": player.code, "is_manual": False}
            )
        await self.commit()

    async def _player_login(self, connection: Connection, data: Any):
        try:
            message = _parse(LoginMessage, data)
            player = identity.login(self.game, message.name, message.code)
        except ValidationRejection as exc:
            await self._send(connection, "loginFailed", {"reason": exc.reason})
            return
        await self._confirm_login(connection, player)
        await self.commit()

    async def _player_submit_answer(self, connection: Connection, data: Any):
        message = _parse(AnswerMessage, data)
        name = identity.normalize_name(message.name)
        # Only the socket that logged in as this player may answer for them
        if connection.player_name != name:
            return
        if not rounds.submit_answer(self.game, name, message.answer):
            return
        await self._send(connection, "answerConfirmed", {"answer": message.answer})
        await self.commit()
