from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from quizroom.core.exceptions import TransientStoreFailure
from quizroom.db import init_db
from quizroom.services.store import MemoryStore, SqlStore


@pytest.fixture
async def sql_store():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    yield SqlStore(engine)
    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
async def any_store(request, sql_store):
    if request.param == "memory":
        return MemoryStore()
    return sql_store


def block(number, lives=None):
    return {
        "block_number": number,
        "archived_at": datetime(2026, 10, 19, 20, number, tzinfo=timezone.utc),
        "lives": lives or {"Max": 3},
        "history": [{"question": f"Q{number}", "type": "TEXT", "answer_key": None, "answers": {"Max": "x"}}],
    }


async def test_pointer_starts_empty_and_moves(any_store):
    assert await any_store.load_pointer() is None
    await any_store.save_pointer("first")
    await any_store.save_pointer("second")
    assert await any_store.load_pointer() == "second"


async def test_session_document_is_replaced(any_store):
    assert await any_store.load_session("s1") is None
    await any_store.save_session("s1", {"round_block": 1, "roster": {}})
    await any_store.save_session("s1", {"round_block": 2, "roster": {"Max": {"lives": 3}}})

    loaded = await any_store.load_session("s1")

    assert loaded == {"round_block": 2, "roster": {"Max": {"lives": 3}}}


async def test_round_blocks_are_listed_in_order(any_store):
    await any_store.append_round_block("s1", block(2))
    await any_store.append_round_block("s1", block(1, lives={"Max": 1}))
    await any_store.append_round_block("other", block(1))

    blocks = await any_store.list_round_blocks("s1")

    assert [b["block_number"] for b in blocks] == [1, 2]
    assert blocks[0]["lives"] == {"Max": 1}
    assert blocks[1]["history"][0]["question"] == "Q2"


async def test_memory_store_hands_out_copies():
    store = MemoryStore()
    document = {"roster": {"Max": {"lives": 3}}}
    await store.save_session("s1", document)
    document["roster"]["Max"]["lives"] = 0

    loaded = await store.load_session("s1")
    loaded["roster"].clear()

    assert (await store.load_session("s1"))["roster"]["Max"]["lives"] == 3


async def test_duplicate_block_number_is_a_store_failure(sql_store):
    await sql_store.append_round_block("s1", block(1))
    with pytest.raises(TransientStoreFailure) as exc:
        await sql_store.append_round_block("s1", block(1))
    assert exc.value.operation == "append_round_block"


async def test_unreachable_database_raises_store_failure():
    engine = create_async_engine("sqlite+aiosqlite:////nonexistent-dir/quiz.db")
    store = SqlStore(engine)
    with pytest.raises(TransientStoreFailure):
        await store.load_pointer()
    await engine.dispose()
