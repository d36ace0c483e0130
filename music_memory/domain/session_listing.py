"""Side-effect-free views over stored sort sessions."""

from enum import Enum
from typing import Iterable

from music_memory.domain.model import SortSession


class SortOption(str, Enum):
    DATE = "date"
    TITLE = "title"
    SOURCE = "source"


_SORT_KEYS = {
    SortOption.DATE: lambda s: s.created_at,
    SortOption.TITLE: lambda s: s.title.lower(),
    SortOption.SOURCE: lambda s: s.source.display_name.lower(),
}


def matches(session: SortSession, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return needle in session.title.lower() or needle in session.source.display_name.lower()


def filter_and_sort(
    sessions: Iterable[SortSession],
    query: str = "",
    sort_by: SortOption = SortOption.DATE,
    ascending: bool = False,
) -> list[SortSession]:
    """Filter by title/source name, then order. Newest first by default."""
    selected = [s for s in sessions if matches(s, query)]
    return sorted(selected, key=_SORT_KEYS[SortOption(sort_by)], reverse=not ascending)
