from quizroom.models.archive import ArchivedRoundBlockRecord
from quizroom.models.session import ActiveSessionPointer, SessionDocument

__all__ = ["ActiveSessionPointer", "ArchivedRoundBlockRecord", "SessionDocument"]
