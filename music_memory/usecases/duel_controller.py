"""Use case: run duels over one sort session until its pool is exhausted."""

import logging
import random
from enum import Enum
from typing import Callable, Optional

from music_memory.domain.errors import InvalidStateError, StaleReferenceError
from music_memory.domain.model import Duel, DuelRecord, Outcome, SortSession
from music_memory.domain.progress import duel_progress, estimate_total_duels
from music_memory.storage.session_store import SessionStore

logger = logging.getLogger("music_memory.duel")


PairSelector = Callable[[list[str]], tuple[str, str]]


class DuelState(str, Enum):
    AWAITING_DUEL = "awaiting_duel"
    RESOLVING = "resolving"
    FINISHED = "finished"


class DuelController:
    """Borrows a SortSession from the store and drives it to completion.

    The pool (candidates not yet ranked) lives only here, derived from the
    session on construction and after every undo. Every forward transition and
    every undo is written back to the store before returning.
    """

    def __init__(
        self,
        session: SortSession,
        store: SessionStore,
        rng: Optional[random.Random] = None,
        select_pair: Optional[PairSelector] = None,
    ):
        self.session = session
        self.store = store
        self._rng = rng or random.Random()
        self._select_pair = select_pair or self._random_pair
        self._pool: list[str] = session.pool
        self._pair: Optional[tuple[str, str]] = None
        self._closed = False
        self._state = DuelState.AWAITING_DUEL
        self._settle()

    # Read side

    @property
    def state(self) -> DuelState:
        return self._state

    @property
    def is_finished(self) -> bool:
        return self._state is DuelState.FINISHED

    @property
    def pool(self) -> tuple[str, ...]:
        return tuple(self._pool)

    @property
    def can_undo(self) -> bool:
        return not self._closed and self.session.can_undo

    @property
    def estimated_total(self) -> int:
        return estimate_total_duels(self.session.total_items)

    @property
    def progress(self) -> float:
        if self.is_finished:
            return 1.0
        return duel_progress(self.session.battle_index, self.session.total_items)

    def get_next_duel(self) -> Optional[Duel]:
        """Return the displayed duel, drawing a new pair if none is shown."""
        if self._state is DuelState.FINISHED:
            return None
        if self._pair is None:
            self._pair = self._select_pair(list(self._pool))
        left_id, right_id = self._pair
        return Duel(
            left_id=left_id,
            right_id=right_id,
            battle_index=self.session.battle_index,
            estimated_total=self.estimated_total,
        )

    # Transitions

    def decide(
        self,
        outcome: Outcome,
        left_id: Optional[str] = None,
        right_id: Optional[str] = None,
    ) -> Optional[Duel]:
        """Apply one decision to the displayed duel and return the next one.

        ``left_id``/``right_id`` are the ids the caller believes it is
        showing; a mismatch is rejected without touching the session.
        """
        self._require_open()
        outcome = Outcome(outcome)
        duel = self.get_next_duel()
        if duel is None:
            raise InvalidStateError("No duel left to decide: the session is finished")

        left, right = duel.left_id, duel.right_id
        stale = (left_id is not None and left_id != left) or (right_id is not None and right_id != right)
        if stale or left not in self._pool or right not in self._pool:
            logger.warning(
                "Rejected stale decision %s for (%s, %s); displayed duel is (%s, %s)",
                outcome.value,
                left_id,
                right_id,
                left,
                right,
            )
            raise StaleReferenceError((left_id or left, right_id or right))

        self._state = DuelState.RESOLVING
        if outcome is Outcome.LEFT:
            placed = [left]
        elif outcome is Outcome.RIGHT:
            placed = [right]
        elif outcome is Outcome.TIE:
            placed = [left, right]
        else:
            placed = []

        pool = [item_id for item_id in self._pool if item_id not in placed]
        if len(pool) == 1:
            placed.append(pool.pop())

        session = self.session
        session.decision_history.append(
            DuelRecord(
                left_id=left,
                right_id=right,
                battle_index=session.battle_index,
                outcome=outcome,
                placed=len(placed),
            )
        )
        session.ranked_ids.extend(placed)
        session.battle_index += 1
        session.is_complete = not pool
        self._pool = pool
        self._pair = None
        self._state = DuelState.AWAITING_DUEL if len(pool) >= 2 else DuelState.FINISHED

        logger.debug("Battle %d: %s on (%s, %s)", session.battle_index, outcome.value, left, right)
        if session.is_complete:
            logger.info("Sort session %s complete after %d battles", session.id, session.battle_index)
        self.store.save(session)
        return self.get_next_duel()

    def undo(self) -> Optional[Duel]:
        """Revert the last forward transition and show its duel again.

        Returns None, changing nothing, when there is no decision to undo.
        """
        self._require_open()
        session = self.session
        if not session.decision_history:
            logger.info("Nothing to undo in session %s", session.id)
            return None

        record = session.decision_history[-1]
        count = record.placed if record.placed is not None else self._guess_placed(record)
        if count > len(session.ranked_ids):
            raise InvalidStateError(
                f"History entry {record.battle_index} placed {count} items but only "
                f"{len(session.ranked_ids)} are ranked"
            )

        session.decision_history.pop()
        if count:
            del session.ranked_ids[-count:]
        session.battle_index = max(session.battle_index - 1, 0)
        self._pool = session.pool
        session.is_complete = not self._pool

        if record.left_id in self._pool and record.right_id in self._pool and record.left_id != record.right_id:
            self._pair = (record.left_id, record.right_id)
        else:
            self._pair = None
        self._state = DuelState.AWAITING_DUEL if len(self._pool) >= 2 else DuelState.FINISHED

        logger.info("Undid battle %d of session %s", record.battle_index + 1, session.id)
        self.store.save(session)
        return self.get_next_duel()

    def abandon(self, keep_progress: bool) -> None:
        """Leave the session: keep it resumable, or delete it from the store."""
        self._require_open()
        self._closed = True
        self._pair = None
        self._state = DuelState.FINISHED
        if keep_progress:
            self.store.save(self.session)
            self.store.flush()
            logger.info("Saved progress of session %s (%d ranked)", self.session.id, len(self.session.ranked_ids))
        else:
            self.store.delete(self.session.id)
            logger.info("Discarded session %s", self.session.id)

    # Helpers

    def _settle(self) -> None:
        """Bring a freshly loaded session in line with its pool size."""
        session = self.session
        changed = False
        if len(self._pool) == 1:
            session.ranked_ids.append(self._pool.pop())
            changed = True
        if session.is_complete != (not self._pool):
            session.is_complete = not self._pool
            changed = True
        if len(self._pool) < 2:
            self._state = DuelState.FINISHED
        if changed:
            self.store.save(session)

    def _random_pair(self, pool: list[str]) -> tuple[str, str]:
        # Uniform and unweighted: earlier outcomes never bias the pairing.
        left_index, right_index = self._rng.sample(range(len(pool)), 2)
        return pool[left_index], pool[right_index]

    def _guess_placed(self, record: DuelRecord) -> int:
        # Older history entries do not say how many ids they placed.
        ranked = self.session.ranked_ids
        pair = {record.left_id, record.right_id}
        if len(ranked) >= 2 and ranked[-1] in pair and ranked[-2] in pair:
            return 2
        return 1 if ranked else 0

    def _require_open(self) -> None:
        if self._closed:
            raise InvalidStateError("Session was abandoned; open it again to continue")
