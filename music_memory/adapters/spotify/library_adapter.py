"""Spotify adapter supplying duel candidates and resolving ranked ids."""

import logging
import urllib.request
from typing import Callable, Optional

import spotipy

from music_memory.config import ARTWORK_SNAPSHOT_TIMEOUT_S
from music_memory.domain.model import (
    AlbumRef,
    ArtistRef,
    ContentType,
    GenreRef,
    ItemReference,
    PlaylistRef,
    SongRef,
    SourceDescriptor,
    SourceKind,
)
from music_memory.domain.ports import LibraryProviderPort

logger = logging.getLogger("music_memory.spotify")

# Source id meaning "the current user's own library".
LIBRARY_SOURCE_ID = "me"
MAX_SEARCH_RESULTS = 100
TRACK_BATCH = 50
ALBUM_BATCH = 20
ARTIST_BATCH = 50


def _image_url(images: list) -> Optional[str]:
    """Pick the image closest to 300px; Spotify lists them largest first."""
    candidates = [img for img in images or [] if isinstance(img, dict) and img.get("url")]
    if not candidates:
        return None
    best = min(candidates, key=lambda img: abs((img.get("width") or 300) - 300))
    return best["url"]


def _artist_names(obj: dict) -> str:
    return ", ".join(a["name"] for a in obj.get("artists", []) if a.get("name"))


def song_from_track(t: dict) -> SongRef:
    album = t.get("album") or {}
    artists = _artist_names(t)
    return SongRef(
        id=t["id"],
        title=t.get("name", ""),
        subtitle=artists,
        artwork_ref=_image_url(album.get("images", [])),
        raw_metric=int(t.get("popularity") or 0),
        artist=artists,
        album=album.get("name", ""),
        duration_s=(t.get("duration_ms") or 0) / 1000,
    )


def album_from_payload(a: dict) -> AlbumRef:
    artists = _artist_names(a)
    return AlbumRef(
        id=a["id"],
        title=a.get("name", ""),
        subtitle=artists,
        artwork_ref=_image_url(a.get("images", [])),
        raw_metric=int(a.get("popularity") or 0),
        artist=artists,
        track_count=int(a.get("total_tracks") or 0),
    )


def artist_from_payload(a: dict) -> ArtistRef:
    genres = a.get("genres") or []
    return ArtistRef(
        id=a["id"],
        title=a.get("name", ""),
        subtitle=", ".join(genres[:2]),
        artwork_ref=_image_url(a.get("images", [])),
        raw_metric=int(a.get("popularity") or 0),
    )


def playlist_from_payload(p: dict) -> PlaylistRef:
    owner = p.get("owner") or {}
    tracks = p.get("tracks") or {}
    return PlaylistRef(
        id=p["id"],
        title=p.get("name", ""),
        subtitle=owner.get("display_name") or owner.get("id", ""),
        artwork_ref=_image_url(p.get("images", [])),
        track_count=int(tracks.get("total") or 0),
    )


class SpotifyLibraryAdapter(LibraryProviderPort):
    """Maps Spotify catalog and library objects onto item references.

    Spotify exposes no personal play counts, so ``raw_metric`` carries the
    0-100 popularity score instead.
    """

    def __init__(self, sp: spotipy.Spotify, opener: Callable = urllib.request.urlopen):
        self.sp = sp
        self._open = opener

    def candidates(self, source: SourceDescriptor, content_type: ContentType) -> list[ItemReference]:
        kind = SourceKind(source.kind)
        content_type = ContentType(content_type)
        if content_type is ContentType.SONG:
            if kind is SourceKind.ALBUM:
                return self._album_songs(source.id)
            if kind is SourceKind.PLAYLIST:
                return self._playlist_songs(source.id)
            if kind is SourceKind.ARTIST:
                top = self.sp.artist_top_tracks(source.id).get("tracks", [])
                return [song_from_track(t) for t in top if t and t.get("id")]
            if kind is SourceKind.GENRE:
                return [song_from_track(t) for t in self._search_genre(source.id, "track")]
        elif content_type is ContentType.ALBUM and kind is SourceKind.ARTIST:
            return self._artist_albums(source.id)
        elif content_type is ContentType.ARTIST and kind is SourceKind.GENRE:
            return [artist_from_payload(a) for a in self._search_genre(source.id, "artist")]
        elif content_type is ContentType.PLAYLIST and kind is SourceKind.PLAYLIST and source.id == LIBRARY_SOURCE_ID:
            return self._user_playlists()
        raise ValueError(f"Cannot rank {content_type.value}s from a Spotify {kind.value}")

    def resolve(self, content_type: ContentType, item_ids: list[str]) -> dict[str, ItemReference]:
        content_type = ContentType(content_type)
        resolved: dict[str, ItemReference] = {}
        if content_type is ContentType.SONG:
            for batch in _batches(item_ids, TRACK_BATCH):
                for t in self.sp.tracks(batch).get("tracks", []):
                    if t and t.get("id"):
                        resolved[t["id"]] = song_from_track(t)
        elif content_type is ContentType.ALBUM:
            for batch in _batches(item_ids, ALBUM_BATCH):
                for a in self.sp.albums(batch).get("albums", []):
                    if a and a.get("id"):
                        resolved[a["id"]] = album_from_payload(a)
        elif content_type is ContentType.ARTIST:
            for batch in _batches(item_ids, ARTIST_BATCH):
                for a in self.sp.artists(batch).get("artists", []):
                    if a and a.get("id"):
                        resolved[a["id"]] = artist_from_payload(a)
        elif content_type is ContentType.GENRE:
            for genre in item_ids:
                resolved[genre] = GenreRef(id=genre, title=genre.title())
        else:
            for playlist_id in item_ids:
                try:
                    payload = self.sp.playlist(playlist_id, fields="id,name,owner,images,tracks.total")
                except spotipy.SpotifyException as exc:
                    logger.warning("Playlist %s no longer available (%s)", playlist_id, exc.http_status)
                    continue
                resolved[playlist_id] = playlist_from_payload(payload)
        return resolved

    def artwork_snapshot(self, artwork_ref: Optional[str]) -> Optional[bytes]:
        if not artwork_ref:
            return None
        try:
            with self._open(artwork_ref, timeout=ARTWORK_SNAPSHOT_TIMEOUT_S) as resp:
                return resp.read()
        except (OSError, ValueError) as exc:
            logger.warning("Artwork snapshot failed for %s: %s", artwork_ref, exc)
            return None

    # Paginated fetches

    def _album_songs(self, album_id: str) -> list[ItemReference]:
        track_ids: list[str] = []
        offset = 0
        limit = 50
        while True:
            results = self.sp.album_tracks(album_id, limit=limit, offset=offset)
            items = results.get("items", [])
            if not items:
                break
            track_ids.extend(t["id"] for t in items if t and t.get("id"))
            offset += limit
            if offset >= results.get("total", 0):
                break
        # Album track listings omit popularity and artwork; fetch full tracks.
        resolved = self.resolve(ContentType.SONG, track_ids)
        return [resolved[t] for t in track_ids if t in resolved]

    def _playlist_songs(self, playlist_id: str) -> list[ItemReference]:
        songs: list[ItemReference] = []
        offset = 0
        limit = 100
        while True:
            results = self.sp.playlist_items(playlist_id, limit=limit, offset=offset, additional_types=("track",))
            items = results.get("items", [])
            if not items:
                break
            for item in items:
                t = item.get("track")
                # Local files and removed tracks come back without an id.
                if t and t.get("id") and t.get("type", "track") == "track":
                    songs.append(song_from_track(t))
            offset += limit
            if offset >= results.get("total", 0):
                break
        return songs

    def _artist_albums(self, artist_id: str) -> list[ItemReference]:
        albums: list[ItemReference] = []
        offset = 0
        limit = 50
        while True:
            results = self.sp.artist_albums(artist_id, album_type="album", limit=limit, offset=offset)
            items = results.get("items", [])
            if not items:
                break
            albums.extend(album_from_payload(a) for a in items if a and a.get("id"))
            offset += limit
            if offset >= results.get("total", 0):
                break
        return albums

    def _user_playlists(self) -> list[ItemReference]:
        playlists: list[ItemReference] = []
        offset = 0
        limit = 50
        while True:
            results = self.sp.current_user_playlists(limit=limit, offset=offset)
            items = results.get("items", [])
            if not items:
                break
            playlists.extend(playlist_from_payload(p) for p in items if p and p.get("id"))
            offset += limit
            if offset >= results.get("total", 0):
                break
        return playlists

    def _search_genre(self, genre: str, kind: str) -> list[dict]:
        found: list[dict] = []
        offset = 0
        limit = 50
        while offset < MAX_SEARCH_RESULTS:
            results = self.sp.search(q=f'genre:"{genre}"', type=kind, limit=limit, offset=offset)
            page = results.get(f"{kind}s", {})
            items = [i for i in page.get("items", []) if i and i.get("id")]
            if not items:
                break
            found.extend(items)
            offset += limit
            if offset >= page.get("total", 0):
                break
        return found


def _batches(values: list[str], size: int):
    for start in range(0, len(values), size):
        yield values[start : start + size]
