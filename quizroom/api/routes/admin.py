from typing import List

from fastapi import APIRouter, Depends, HTTPException

from quizroom.core.exceptions import TransientStoreFailure
from quizroom.dependencies import get_runtime, require_host
from quizroom.schemas import ActiveSessionRead, ArchivedRoundBlockRead
from quizroom.services.runtime import RuntimeController

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_host)])


def _live_runtime(runtime: RuntimeController = Depends(get_runtime)) -> RuntimeController:
    if not runtime.ready:
        raise HTTPException(status_code=503, detail="Session not ready")
    return runtime


@router.get("/session", response_model=ActiveSessionRead)
async def active_session(runtime: RuntimeController = Depends(_live_runtime)):
    game = runtime.game
    return ActiveSessionRead(
        session_id=game.session_id,
        round_block=game.round_block,
        player_count=len(game.roster),
        verified_count=len(game.verified_names()),
    )


@router.get("/state")
async def host_state(runtime: RuntimeController = Depends(_live_runtime)):
    return runtime.host_view()


@router.get("/sessions/{session_id}/blocks", response_model=List[ArchivedRoundBlockRead])
async def archived_blocks(session_id: str, runtime: RuntimeController = Depends(_live_runtime)):
    try:
        blocks = await runtime.round_blocks(session_id)
    except TransientStoreFailure as exc:
        raise HTTPException(status_code=503, detail=f"Archive unavailable: {exc.operation}")
    return [ArchivedRoundBlockRead(session_id=session_id, **block) for block in blocks]
