"""Use case: start a new sort session over a source collection."""

import logging
from typing import Optional

from music_memory.domain.model import ContentType, SortSession, SourceDescriptor
from music_memory.domain.ports import LibraryProviderPort
from music_memory.storage.session_store import SessionStore

logger = logging.getLogger("music_memory.sessions")


class CreateSessionUseCase:

    def __init__(self, library: LibraryProviderPort, store: SessionStore):
        self.library = library
        self.store = store

    def execute(
        self,
        source: SourceDescriptor,
        content_type: ContentType,
        title: Optional[str] = None,
        artwork_ref: Optional[str] = None,
    ) -> SortSession:
        items = self.library.candidates(source, content_type)
        logger.info("Library returned %d %s candidates for %s", len(items), content_type.value, source.display_name)
        if artwork_ref is None and items:
            artwork_ref = items[0].artwork_ref
        artwork = self.library.artwork_snapshot(artwork_ref)
        return self.store.create(items, content_type, source, title=title, artwork=artwork)
