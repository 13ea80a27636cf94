import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from quizroom.dependencies import get_runtime

router = APIRouter()


@router.websocket("/ws")
async def game_socket(websocket: WebSocket):
    runtime = get_runtime(websocket)
    await websocket.accept()
    connection = await runtime.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                continue
            if not isinstance(message, dict):
                continue
            await runtime.handle(connection, message.get("event"), message.get("data"))
    except WebSocketDisconnect:
        return
    finally:
        await runtime.disconnect(connection)
