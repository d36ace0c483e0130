"""In-memory sort session store with serialized background flushes."""

from __future__ import annotations

import logging
import queue
import random
import threading
import uuid
from dataclasses import replace
from typing import Callable, Optional

from music_memory.domain.errors import PersistenceFailure, SessionNotFoundError
from music_memory.domain.model import ITEM_TYPES, ContentType, ItemReference, SortSession, SourceDescriptor
from music_memory.domain.ports import SessionRepositoryPort
from music_memory.domain.session_listing import SortOption, filter_and_sort
from music_memory.storage.session_codec import session_from_dict, session_to_dict

logger = logging.getLogger("music_memory.session_store")

_STOP = object()


def _valid_ranked_ids(session: SortSession) -> list[str]:
    candidates = set(session.candidate_ids)
    seen: set[str] = set()
    ranked: list[str] = []
    for item_id in session.ranked_ids:
        if item_id in candidates and item_id not in seen:
            seen.add(item_id)
            ranked.append(item_id)
    return ranked


def migrate(session: SortSession) -> SortSession:
    """Repair records written before ``battle_index`` was persisted.

    Ranked ids that are duplicated or not among the candidates are dropped.
    The history of such a record no longer matches its ranking, so it is
    cleared and the session cannot be undone past that point.

    Pure and idempotent: returns the input unchanged when nothing needs fixing.
    """
    ranked = _valid_ranked_ids(session)
    if ranked != session.ranked_ids:
        logger.warning(
            "Session %s: dropped %d invalid ranked ids",
            session.id,
            len(session.ranked_ids) - len(ranked),
        )
        return replace(
            session,
            ranked_ids=ranked,
            decision_history=[],
            battle_index=len(ranked),
            is_complete=len(ranked) == len(session.candidate_ids),
        )
    if session.battle_index == 0 and session.ranked_ids:
        return replace(
            session,
            ranked_ids=list(session.ranked_ids),
            decision_history=list(session.decision_history),
            battle_index=len(session.ranked_ids),
        )
    return session


class SessionStore:
    """Owns every SortSession; the duel controller borrows one at a time.

    Mutations update memory synchronously. The encoded list is then queued for
    a single writer thread so writes reach the repository in submission order.
    """

    def __init__(
        self,
        repository: SessionRepositoryPort,
        rng: Optional[random.Random] = None,
        on_persistence_failure: Optional[Callable[[PersistenceFailure], None]] = None,
    ):
        self.repository = repository
        self.on_persistence_failure = on_persistence_failure
        self.last_error: Optional[PersistenceFailure] = None
        self._rng = rng or random.Random()
        self._sessions: dict[str, SortSession] = {}
        self._lock = threading.Lock()
        self._queue: queue.Queue = queue.Queue()
        self._writer: Optional[threading.Thread] = None
        self._load_all()

    # CRUD

    def create(
        self,
        items: list[ItemReference],
        content_type: ContentType,
        source: SourceDescriptor,
        title: Optional[str] = None,
        artwork: Optional[bytes] = None,
    ) -> SortSession:
        content_type = ContentType(content_type)
        item_type = ITEM_TYPES[content_type]
        candidate_ids: list[str] = []
        for item in items:
            if not isinstance(item, item_type):
                raise ValueError(f"Cannot rank {type(item).__name__} {item.id!r} in a {content_type.value} session")
            if item.id not in candidate_ids:
                candidate_ids.append(item.id)
        if len(candidate_ids) < 2:
            raise ValueError("A sort session needs at least two distinct items")

        self._rng.shuffle(candidate_ids)
        session = SortSession(
            id=str(uuid.uuid4()),
            title=title or f"Sort: {source.display_name}",
            content_type=content_type,
            source=source,
            candidate_ids=tuple(candidate_ids),
            artwork_snapshot=artwork,
        )

        with self._lock:
            superseded = [
                s.id
                for s in self._sessions.values()
                if s.content_type == session.content_type
                and s.source.kind == source.kind
                and s.source.id == source.id
            ]
            for session_id in superseded:
                del self._sessions[session_id]
            self._sessions[session.id] = session
            self._enqueue(self._snapshot())

        if superseded:
            logger.info("New session %s supersedes %s", session.id, ", ".join(superseded))
        logger.info(
            "Created sort session %s (%s from %s, %d candidates)",
            session.id,
            session.content_type.value,
            source.display_name,
            len(candidate_ids),
        )
        return session

    def load(self, session_id: str) -> SortSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            migrated = migrate(session)
            if migrated is not session:
                self._sessions[session_id] = migrated
            return migrated

    def save(self, session: SortSession) -> None:
        with self._lock:
            self._sessions[session.id] = session
            self._enqueue(self._snapshot())

    def delete(self, session_id: str) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            del self._sessions[session_id]
            self._enqueue(self._snapshot())
        logger.info("Deleted sort session %s", session_id)

    def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def all_sessions(self) -> list[SortSession]:
        with self._lock:
            return list(self._sessions.values())

    def list_sessions(
        self,
        query: str = "",
        sort_by: SortOption = SortOption.DATE,
        ascending: bool = False,
    ) -> list[SortSession]:
        return filter_and_sort(self.all_sessions(), query=query, sort_by=sort_by, ascending=ascending)

    # Persistence

    def flush(self) -> None:
        """Block until every queued write has been attempted."""
        self._queue.join()

    def close(self) -> None:
        if self._writer is None or not self._writer.is_alive():
            return
        self._queue.put(_STOP)
        self._writer.join()
        self._writer = None

    def _load_all(self) -> None:
        for raw in self.repository.read_all():
            try:
                session = migrate(session_from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.exception("Skipping unreadable sort session record")
                continue
            self._sessions[session.id] = session
        logger.info("Loaded %d sort sessions", len(self._sessions))

    def _snapshot(self) -> list[dict]:
        return [session_to_dict(s) for s in self._sessions.values()]

    def _enqueue(self, payload: list[dict]) -> None:
        if self._writer is None or not self._writer.is_alive():
            self._writer = threading.Thread(target=self._run_writer, name="session-writer", daemon=True)
            self._writer.start()
        self._queue.put(payload)

    def _run_writer(self) -> None:
        while True:
            payload = self._queue.get()
            taken = 1
            stop = payload is _STOP
            # Only the newest snapshot matters; older queued ones are superseded.
            while not stop:
                try:
                    newer = self._queue.get_nowait()
                except queue.Empty:
                    break
                taken += 1
                if newer is _STOP:
                    stop = True
                else:
                    payload = newer
            try:
                if payload is not _STOP:
                    self._write(payload)
            finally:
                for _ in range(taken):
                    self._queue.task_done()
            if stop:
                return

    def _write(self, payload: list[dict]) -> None:
        try:
            self.repository.write_all(payload)
        except Exception as exc:
            logger.exception("Failed to persist %d sort sessions", len(payload))
            failure = PersistenceFailure("Progress could not be saved and may not survive a crash", cause=exc)
            self.last_error = failure
            if self.on_persistence_failure:
                self.on_persistence_failure(failure)
            return
        self.last_error = None
