"""Durable mirror of the live session.

The store is never the source of truth while the process runs: it is read at
bootstrap and written after every mutation. Backends raise
TransientStoreFailure for anything that goes wrong talking to storage.
"""
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from quizroom.core.exceptions import TransientStoreFailure
from quizroom.core.time import utc_now
from quizroom.db import get_session
from quizroom.models import ActiveSessionPointer, ArchivedRoundBlockRecord, SessionDocument
from quizroom.models.session import ACTIVE_POINTER_ID


class SessionStore(ABC):
    @abstractmethod
    async def load_pointer(self) -> Optional[str]:
        ...

    @abstractmethod
    async def save_pointer(self, session_id: str) -> None:
        ...

    @abstractmethod
    async def load_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def save_session(self, session_id: str, document: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def append_round_block(self, session_id: str, block: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def list_round_blocks(self, session_id: str) -> List[Dict[str, Any]]:
        ...


class MemoryStore(SessionStore):
    """Process-local store for development without a database, and for tests."""

    def __init__(self):
        self.pointer: Optional[str] = None
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.round_blocks: Dict[str, List[Dict[str, Any]]] = {}

    async def load_pointer(self) -> Optional[str]:
        return self.pointer

    async def save_pointer(self, session_id: str) -> None:
        self.pointer = session_id

    async def load_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        document = self.sessions.get(session_id)
        return copy.deepcopy(document) if document is not None else None

    async def save_session(self, session_id: str, document: Dict[str, Any]) -> None:
        self.sessions[session_id] = copy.deepcopy(document)

    async def append_round_block(self, session_id: str, block: Dict[str, Any]) -> None:
        self.round_blocks.setdefault(session_id, []).append(copy.deepcopy(block))

    async def list_round_blocks(self, session_id: str) -> List[Dict[str, Any]]:
        blocks = self.round_blocks.get(session_id, [])
        return sorted((copy.deepcopy(b) for b in blocks), key=lambda b: b["block_number"])


class SqlStore(SessionStore):
    """SQLModel-backed store: one document row per session plus an append-only block table."""

    def __init__(self, engine: Optional[AsyncEngine] = None):
        self.engine = engine
        self.logger = logging.getLogger("store")

    async def load_pointer(self) -> Optional[str]:
        try:
            async with get_session(self.engine) as db:
                pointer = await db.get(ActiveSessionPointer, ACTIVE_POINTER_ID)
                return pointer.active_session_id if pointer else None
        except (SQLAlchemyError, OSError) as exc:
            raise TransientStoreFailure("load_pointer", exc) from exc

    async def save_pointer(self, session_id: str) -> None:
        try:
            async with get_session(self.engine) as db:
                pointer = await db.get(ActiveSessionPointer, ACTIVE_POINTER_ID)
                if pointer:
                    pointer.active_session_id = session_id
                    pointer.updated_at = utc_now()
                else:
                    db.add(ActiveSessionPointer(active_session_id=session_id))
                await db.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise TransientStoreFailure("save_pointer", exc) from exc
        self.logger.info("Active session pointer -> %s", session_id)

    async def load_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            async with get_session(self.engine) as db:
                row = await db.get(SessionDocument, session_id)
                return dict(row.document) if row else None
        except (SQLAlchemyError, OSError) as exc:
            raise TransientStoreFailure("load_session", exc) from exc

    async def save_session(self, session_id: str, document: Dict[str, Any]) -> None:
        try:
            async with get_session(self.engine) as db:
                row = await db.get(SessionDocument, session_id)
                if row:
                    row.document = document
                    row.updated_at = utc_now()
                else:
                    db.add(SessionDocument(id=session_id, document=document))
                await db.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise TransientStoreFailure("save_session", exc) from exc

    async def append_round_block(self, session_id: str, block: Dict[str, Any]) -> None:
        try:
            async with get_session(self.engine) as db:
                db.add(
                    ArchivedRoundBlockRecord(
                        session_id=session_id,
                        block_number=block["block_number"],
                        archived_at=block.get("archived_at") or utc_now(),
                        lives=block["lives"],
                        history=block["history"],
                    )
                )
                await db.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise TransientStoreFailure("append_round_block", exc) from exc
        self.logger.info("Archived round-block %s for session %s", block["block_number"], session_id)

    async def list_round_blocks(self, session_id: str) -> List[Dict[str, Any]]:
        try:
            async with get_session(self.engine) as db:
                result = await db.exec(
                    select(ArchivedRoundBlockRecord)
                    .where(ArchivedRoundBlockRecord.session_id == session_id)
                    .order_by(ArchivedRoundBlockRecord.block_number)
                )
                rows = result.all()
        except (SQLAlchemyError, OSError) as exc:
            raise TransientStoreFailure("list_round_blocks", exc) from exc
        return [
            {
                "block_number": row.block_number,
                "archived_at": row.archived_at,
                "lives": row.lives,
                "history": row.history,
            }
            for row in rows
        ]
