"""
Error taxonomy for the session server.

Client-caused problems are rejections reported back to the sender only;
store problems are logged and never reach clients.
"""


class QuizRoomError(Exception):
    """Base class for all session server errors."""
    pass


class ValidationRejection(QuizRoomError):
    """A client event was malformed or not allowed in the current state."""

    def __init__(self, reason: str, detail: str | None = None):
        self.reason = reason
        self.detail = detail
        super().__init__(detail or reason)


class TransientStoreFailure(QuizRoomError):
    """A read or write against the durable store failed."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")
