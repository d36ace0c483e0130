"""Errors raised by the ranking core. None of them is fatal to the app."""

from typing import Optional


class RankingError(Exception):
    pass


class SessionNotFoundError(RankingError):
    def __init__(self, session_id: str):
        super().__init__(f"Sort session not found: {session_id}")
        self.session_id = session_id


class InvalidStateError(RankingError):
    pass


class StaleReferenceError(RankingError):
    """A decision referenced ids that are no longer the displayed duel."""

    def __init__(self, item_ids: tuple[str, ...], message: str = ""):
        super().__init__(message or f"Stale duel reference: {', '.join(item_ids)}")
        self.item_ids = item_ids


class PersistenceFailure(RankingError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
