"""Pure domain objects with no framework dependency."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional


class ContentType(str, Enum):
    SONG = "song"
    ALBUM = "album"
    ARTIST = "artist"
    GENRE = "genre"
    PLAYLIST = "playlist"

    @property
    def plural_label(self) -> str:
        return f"{self.value.capitalize()}s"


class SourceKind(str, Enum):
    ALBUM = "album"
    ARTIST = "artist"
    GENRE = "genre"
    PLAYLIST = "playlist"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Outcome(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    TIE = "tie"
    SKIP = "skip"


# ── Item references ─────────────────────────────────────────────────


@dataclass(eq=False)
class ItemReference:
    """One rankable unit as seen by the library provider.

    Identity is the ``id`` alone: two references with the same id compare
    equal even if their cached metadata differs.
    """

    content_type: ClassVar[ContentType]

    id: str
    title: str
    subtitle: str = ""
    artwork_ref: Optional[str] = None
    raw_metric: int = 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, ItemReference):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(eq=False)
class SongRef(ItemReference):
    content_type: ClassVar[ContentType] = ContentType.SONG

    artist: str = ""
    album: str = ""
    duration_s: float = 0.0


@dataclass(eq=False)
class AlbumRef(ItemReference):
    content_type: ClassVar[ContentType] = ContentType.ALBUM

    artist: str = ""
    track_count: int = 0


@dataclass(eq=False)
class ArtistRef(ItemReference):
    content_type: ClassVar[ContentType] = ContentType.ARTIST

    album_count: int = 0


@dataclass(eq=False)
class GenreRef(ItemReference):
    content_type: ClassVar[ContentType] = ContentType.GENRE

    song_count: int = 0


@dataclass(eq=False)
class PlaylistRef(ItemReference):
    content_type: ClassVar[ContentType] = ContentType.PLAYLIST

    track_count: int = 0


ITEM_TYPES: dict[ContentType, type[ItemReference]] = {
    ContentType.SONG: SongRef,
    ContentType.ALBUM: AlbumRef,
    ContentType.ARTIST: ArtistRef,
    ContentType.GENRE: GenreRef,
    ContentType.PLAYLIST: PlaylistRef,
}


# ── Sessions ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SourceDescriptor:
    kind: SourceKind
    id: str
    display_name: str


@dataclass(frozen=True)
class DuelRecord:
    left_id: str
    right_id: str
    battle_index: int
    # Absent on records written before outcomes were tracked.
    outcome: Optional[Outcome] = None
    placed: Optional[int] = None


@dataclass(frozen=True)
class Duel:
    left_id: str
    right_id: str
    battle_index: int
    estimated_total: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SortSession:
    id: str
    title: str
    content_type: ContentType
    source: SourceDescriptor
    candidate_ids: tuple[str, ...] = ()
    ranked_ids: list[str] = field(default_factory=list)
    decision_history: list[DuelRecord] = field(default_factory=list)
    battle_index: int = 0
    is_complete: bool = False
    artwork_snapshot: Optional[bytes] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def pool(self) -> list[str]:
        ranked = set(self.ranked_ids)
        return [item_id for item_id in self.candidate_ids if item_id not in ranked]

    @property
    def decision_count(self) -> int:
        return len(self.ranked_ids)

    @property
    def total_items(self) -> int:
        return len(self.candidate_ids)

    @property
    def progress(self) -> float:
        if self.total_items <= 1:
            return 1.0
        return self.decision_count / self.total_items

    @property
    def source_description(self) -> str:
        return f"From {self.source.kind.label}: {self.source.display_name}"

    @property
    def can_undo(self) -> bool:
        return bool(self.decision_history)
