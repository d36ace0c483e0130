"""Shared in-memory adapters and fixtures for all bounded contexts."""

import random
from typing import Optional

import pytest

from music_memory.domain.model import (
    ContentType,
    ItemReference,
    SongRef,
    SortSession,
    SourceDescriptor,
    SourceKind,
)
from music_memory.domain.ports import ConfigPort, LibraryProviderPort, SessionRepositoryPort
from music_memory.storage.session_store import SessionStore


# ── In-memory adapters ──────────────────────────────────────────────


class InMemorySessionRepository(SessionRepositoryPort):
    def __init__(self, records: Optional[list[dict]] = None):
        self.records: list[dict] = list(records or [])
        self.writes = 0

    def read_all(self) -> list[dict]:
        return [dict(r) for r in self.records]

    def write_all(self, records: list[dict]) -> None:
        self.records = list(records)
        self.writes += 1


class FailingRepository(InMemorySessionRepository):
    """Refuses every write while ``fail`` is set."""

    def __init__(self):
        super().__init__()
        self.fail = True

    def write_all(self, records: list[dict]) -> None:
        if self.fail:
            raise OSError("No space left on device")
        super().write_all(records)


class InMemoryLibrary(LibraryProviderPort):
    def __init__(self, items: list[ItemReference], artwork: Optional[bytes] = None):
        self.items = {item.id: item for item in items}
        self.artwork = artwork
        self.artwork_requests: list[Optional[str]] = []

    def candidates(self, source: SourceDescriptor, content_type: ContentType) -> list[ItemReference]:
        return [item for item in self.items.values() if item.content_type == content_type]

    def resolve(self, content_type: ContentType, item_ids: list[str]) -> dict[str, ItemReference]:
        return {
            item_id: self.items[item_id]
            for item_id in item_ids
            if item_id in self.items and self.items[item_id].content_type == content_type
        }

    def artwork_snapshot(self, artwork_ref: Optional[str]) -> Optional[bytes]:
        self.artwork_requests.append(artwork_ref)
        return self.artwork if artwork_ref else None

    def forget(self, item_id: str) -> None:
        self.items.pop(item_id, None)


class InMemoryConfig(ConfigPort):
    def __init__(self, data: Optional[dict] = None):
        self._data = data or {}

    def load(self) -> dict:
        return dict(self._data)

    def save(self, cfg: dict) -> None:
        self._data = dict(cfg)

    def is_configured(self) -> bool:
        return bool(self._data.get("spotify_client_id") and self._data.get("spotify_client_secret"))


def scripted_pairs(*pairs: tuple[str, str]):
    """Pair selector that serves ``pairs`` in order, then the first two pool ids."""
    remaining = list(pairs)

    def select(pool: list[str]) -> tuple[str, str]:
        if remaining:
            return remaining.pop(0)
        return pool[0], pool[1]

    return select


def make_session(candidate_ids, session_id: str = "s1", **fields) -> SortSession:
    fields.setdefault("title", "Sort: Late Night")
    fields.setdefault("content_type", ContentType.SONG)
    fields.setdefault("source", SourceDescriptor(kind=SourceKind.ALBUM, id="alb-1", display_name="Late Night"))
    return SortSession(id=session_id, candidate_ids=tuple(candidate_ids), **fields)


# ── Shared fixtures ─────────────────────────────────────────────────


@pytest.fixture
def song_a():
    return SongRef(id="A", title="Chill Vibes", subtitle="DJ Smooth", artist="DJ Smooth", album="Late Night",
                   artwork_ref="https://cdn.example/a.jpg", raw_metric=72, duration_s=200.0)


@pytest.fixture
def song_b():
    return SongRef(id="B", title="Party Starter", subtitle="MC Hype", artist="MC Hype", album="Late Night",
                   raw_metric=88, duration_s=180.0)


@pytest.fixture
def song_c():
    return SongRef(id="C", title="Slow Motion", subtitle="The Drifters", artist="The Drifters", album="Late Night",
                   raw_metric=55, duration_s=240.0)


@pytest.fixture
def song_d():
    return SongRef(id="D", title="Night Drive", subtitle="Neon Coast", artist="Neon Coast", album="Late Night",
                   raw_metric=61, duration_s=215.0)


@pytest.fixture
def songs(song_a, song_b, song_c, song_d):
    return [song_a, song_b, song_c, song_d]


@pytest.fixture
def album_source():
    return SourceDescriptor(kind=SourceKind.ALBUM, id="alb-1", display_name="Late Night")


@pytest.fixture
def repository():
    return InMemorySessionRepository()


@pytest.fixture
def store(repository):
    store = SessionStore(repository, rng=random.Random(7))
    yield store
    store.close()


@pytest.fixture
def library(songs):
    return InMemoryLibrary(songs, artwork=b"\x89PNG cover")


@pytest.fixture
def abcd_session(store):
    store.save(make_session(["A", "B", "C", "D"]))
    return store.load("s1")


@pytest.fixture
def scripted():
    return scripted_pairs


@pytest.fixture
def new_session():
    return make_session
