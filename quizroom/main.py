from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizroom.api.routes import admin, root
from quizroom.api.ws import router as ws_router
from quizroom.core.config import settings
from quizroom.core.logging import configure_logging
from quizroom.db import init_db
from quizroom.dependencies import build_store
from quizroom.services.runtime import RuntimeController
from quizroom.services.store import SessionStore, SqlStore


def create_app(store: Optional[SessionStore] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_dir)
        session_store = store or build_store()
        if isinstance(session_store, SqlStore):
            try:
                await init_db(session_store.engine)
            except Exception as exc:
                # Keep serving from memory; bootstrap falls back to a fresh session
                logging.getLogger("store").error("Database init failed: %s", exc)
        runtime = RuntimeController(session_store)
        app.state.runtime = runtime
        await runtime.bootstrap()
        yield
        await runtime.flush_writes()

    app = FastAPI(title="Quiz Room", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # HTTP routes
    app.include_router(root.router)
    app.include_router(admin.router)

    # WebSocket routes
    app.include_router(ws_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("quizroom.main:app", host="0.0.0.0", port=8000, reload=True)
