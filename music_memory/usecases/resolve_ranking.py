"""Use case: resolve a session's ranked ids back into library items."""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from music_memory.domain.model import ContentType, ItemReference, SongRef, SortSession
from music_memory.domain.ports import LibraryProviderPort
from music_memory.storage.session_store import SessionStore


@dataclass
class RankingStats:
    total_plays: int = 0
    # Only songs carry a playback duration.
    total_duration_s: Optional[float] = None


@dataclass
class ResolvedRanking:
    session: SortSession
    items: list[ItemReference] = field(default_factory=list)
    stats: RankingStats = field(default_factory=RankingStats)
    missing_ids: list[str] = field(default_factory=list)


def project_ranking(ranked_ids: list[str], lookup: Mapping[str, ItemReference]) -> list[ItemReference]:
    """Map ids to items in rank order, dropping ids the library no longer knows."""
    return [lookup[item_id] for item_id in ranked_ids if item_id in lookup]


def ranking_stats(content_type: ContentType, items: list[ItemReference]) -> RankingStats:
    total_plays = sum(item.raw_metric for item in items)
    if content_type is ContentType.SONG:
        duration = sum(item.duration_s for item in items if isinstance(item, SongRef))
        return RankingStats(total_plays=total_plays, total_duration_s=duration)
    return RankingStats(total_plays=total_plays)


class ResolveRankingUseCase:

    def __init__(self, library: LibraryProviderPort, store: SessionStore):
        self.library = library
        self.store = store

    def execute(self, session_id: str) -> ResolvedRanking:
        session = self.store.load(session_id)
        lookup = self.library.resolve(session.content_type, list(session.ranked_ids))
        items = project_ranking(session.ranked_ids, lookup)
        return ResolvedRanking(
            session=session,
            items=items,
            stats=ranking_stats(session.content_type, items),
            missing_ids=[item_id for item_id in session.ranked_ids if item_id not in lookup],
        )
