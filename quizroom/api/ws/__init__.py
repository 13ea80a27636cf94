from quizroom.api.ws.routes import router

__all__ = ["router"]
