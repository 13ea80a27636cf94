import secrets

from fastapi import Header, HTTPException
from fastapi.requests import HTTPConnection

from quizroom.core.config import settings
from quizroom.services.runtime import RuntimeController
from quizroom.services.store import MemoryStore, SessionStore, SqlStore


def build_store() -> SessionStore:
    if settings.store_backend == "memory":
        return MemoryStore()
    return SqlStore()


def get_runtime(connection: HTTPConnection) -> RuntimeController:
    return connection.app.state.runtime


def require_host(x_host_password: str = Header(default="")) -> None:
    if not secrets.compare_digest(x_host_password.encode("utf-8"), settings.host_password.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Host password required")
