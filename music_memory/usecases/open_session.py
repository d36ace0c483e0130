"""Use case: resume a stored sort session in a duel controller."""

import random
from typing import Optional

from music_memory.storage.session_store import SessionStore
from music_memory.usecases.duel_controller import DuelController, PairSelector


class OpenSessionUseCase:

    def __init__(self, store: SessionStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng

    def execute(self, session_id: str, select_pair: Optional[PairSelector] = None) -> DuelController:
        session = self.store.load(session_id)
        return DuelController(session, self.store, rng=self.rng, select_pair=select_pair)
