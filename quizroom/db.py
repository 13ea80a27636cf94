from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from quizroom.core.config import settings
from quizroom import models  # noqa: F401


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    return create_async_engine(settings.assembled_db_url, echo=False, future=True)


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def get_session(engine: Optional[AsyncEngine] = None):
    async_session = AsyncSession(engine or get_engine(), expire_on_commit=False)
    try:
        yield async_session
    finally:
        await async_session.close()
