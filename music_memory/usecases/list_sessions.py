"""Use cases: browse and delete stored sort sessions."""

from music_memory.domain.model import SortSession
from music_memory.domain.session_listing import SortOption
from music_memory.storage.session_store import SessionStore


class ListSessionsUseCase:

    def __init__(self, store: SessionStore):
        self.store = store

    def execute(
        self,
        query: str = "",
        sort_by: SortOption = SortOption.DATE,
        ascending: bool = False,
    ) -> list[SortSession]:
        return self.store.list_sessions(query=query, sort_by=sort_by, ascending=ascending)


class DeleteSessionUseCase:

    def __init__(self, store: SessionStore):
        self.store = store

    def execute(self, session_id: str) -> None:
        self.store.delete(session_id)
