"""Bounded context: Ranking

Business rules for duels: picking a favourite, liking both, skipping and
going back.
"""

import logging
import random

import pytest

from music_memory.domain.errors import InvalidStateError, StaleReferenceError
from music_memory.domain.model import DuelRecord, Outcome
from music_memory.usecases.duel_controller import DuelController, DuelState


def state_of(controller):
    session = controller.session
    return list(session.ranked_ids), set(controller.pool), session.battle_index, len(session.decision_history)


class TestExampleScenario:
    """Four songs: one win, then a tie, then the last song ranks itself."""

    def test_win_then_tie_completes_the_ranking(self, store, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B"), ("C", "D")))

        duel = controller.get_next_duel()
        assert (duel.left_id, duel.right_id) == ("A", "B")

        duel = controller.decide(Outcome.LEFT, "A", "B")
        assert abcd_session.ranked_ids == ["A"]
        assert set(controller.pool) == {"B", "C", "D"}
        assert abcd_session.battle_index == 1
        assert (duel.left_id, duel.right_id) == ("C", "D")

        duel = controller.decide(Outcome.TIE, "C", "D")
        assert duel is None
        assert abcd_session.ranked_ids == ["A", "C", "D", "B"]
        assert abcd_session.battle_index == 2
        assert abcd_session.is_complete
        assert controller.is_finished

    def test_undo_after_tie_shows_the_same_duel_again(self, store, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B"), ("C", "D")))
        controller.decide(Outcome.LEFT, "A", "B")
        controller.decide(Outcome.TIE, "C", "D")

        duel = controller.undo()

        assert abcd_session.ranked_ids == ["A"]
        assert set(controller.pool) == {"B", "C", "D"}
        assert abcd_session.battle_index == 1
        assert not abcd_session.is_complete
        assert controller.state is DuelState.AWAITING_DUEL
        assert (duel.left_id, duel.right_id) == ("C", "D")


class TestPickFavourite:
    """Picking one song ranks it and keeps the other in contention."""

    def test_winner_leaves_pool_and_loser_stays(self, store, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("B", "D")))

        controller.decide(Outcome.RIGHT, "B", "D")

        assert abcd_session.ranked_ids == ["D"]
        assert "B" in controller.pool
        assert abcd_session.decision_history[-1] == DuelRecord(
            left_id="B", right_id="D", battle_index=0, outcome=Outcome.RIGHT, placed=1
        )

    def test_n_items_complete_after_n_minus_one_wins(self, store, new_session):
        session = new_session(["a", "b", "c", "d", "e", "f"])
        store.save(session)
        controller = DuelController(session, store, rng=random.Random(3))

        decisions = 0
        while not controller.is_finished:
            controller.decide(Outcome.LEFT)
            decisions += 1

        assert decisions == 5
        assert session.is_complete
        assert sorted(session.ranked_ids) == sorted(session.candidate_ids)

    def test_every_decision_is_saved_to_the_store(self, store, repository, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B")))

        controller.decide(Outcome.LEFT)
        store.flush()

        assert repository.records[0]["ranked_ids"] == ["A"]
        assert repository.records[0]["battle_index"] == 1


class TestLikeBoth:
    """Liking both songs ranks them next to each other in display order."""

    def test_tie_inserts_both_ids_adjacently(self, store, new_session, scripted):
        session = new_session(["A", "B", "C", "D", "E"])
        store.save(session)
        controller = DuelController(session, store, select_pair=scripted(("A", "B"), ("D", "C")))

        controller.decide(Outcome.LEFT, "A", "B")
        controller.decide(Outcome.TIE, "D", "C")

        assert session.ranked_ids == ["A", "D", "C"]
        assert set(controller.pool) == {"B", "E"}


class TestNoOpinion:
    """Skipping moves on without ranking anything."""

    def test_skip_keeps_ranking_and_pool(self, store, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B"), ("C", "D")))

        duel = controller.decide(Outcome.SKIP, "A", "B")

        assert abcd_session.ranked_ids == []
        assert set(controller.pool) == {"A", "B", "C", "D"}
        assert abcd_session.battle_index == 1
        assert len(abcd_session.decision_history) == 1
        assert abcd_session.decision_history[0].placed == 0
        assert (duel.left_id, duel.right_id) == ("C", "D")


class TestGoBack:
    """Going back restores exactly the state before the last decision."""

    @pytest.mark.parametrize("outcome", list(Outcome))
    def test_decide_then_undo_restores_state(self, store, abcd_session, scripted, outcome):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B"), ("C", "D")))
        controller.decide(Outcome.LEFT, "A", "B")
        before = state_of(controller)

        controller.decide(outcome, "C", "D")
        duel = controller.undo()

        assert state_of(controller) == before
        assert (duel.left_id, duel.right_id) == ("C", "D")

    @pytest.mark.parametrize("outcome", [Outcome.LEFT, Outcome.RIGHT, Outcome.TIE])
    def test_undo_returns_auto_ranked_item_to_pool(self, store, new_session, scripted, outcome):
        session = new_session(["A", "B", "C"])
        store.save(session)
        controller = DuelController(session, store, select_pair=scripted(("A", "B")))
        controller.decide(outcome)
        while not controller.is_finished:
            controller.decide(Outcome.LEFT)
        assert session.is_complete

        controller.undo()

        assert not session.is_complete
        assert len(session.ranked_ids) + len(controller.pool) == 3
        assert not controller.is_finished

    def test_undo_with_empty_history_changes_nothing(self, store, abcd_session):
        controller = DuelController(abcd_session, store, rng=random.Random(1))

        assert controller.can_undo is False
        assert controller.undo() is None
        assert abcd_session.battle_index == 0
        assert abcd_session.ranked_ids == []

    def test_legacy_history_without_placed_counts(self, store, new_session):
        session = new_session(
            ["A", "B", "C", "D", "E"],
            ranked_ids=["A", "C", "D"],
            decision_history=[DuelRecord("A", "B", 0), DuelRecord("C", "D", 1)],
            battle_index=2,
        )
        store.save(session)
        controller = DuelController(session, store, rng=random.Random(1))

        duel = controller.undo()
        assert session.ranked_ids == ["A"]
        assert (duel.left_id, duel.right_id) == ("C", "D")

        duel = controller.undo()
        assert session.ranked_ids == []
        assert session.battle_index == 0
        assert (duel.left_id, duel.right_id) == ("A", "B")

    def test_migrated_session_without_history_cannot_undo(self, store, new_session):
        store.save(new_session(["A", "B", "C"], ranked_ids=["A"]))
        session = store.load("s1")
        controller = DuelController(session, store, rng=random.Random(1))

        assert session.battle_index == 1
        assert controller.can_undo is False


class TestRejectedDecisions:
    """Out-of-date or impossible decisions never touch the ranking."""

    def test_stale_pair_is_rejected_and_logged(self, store, abcd_session, scripted, caplog):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B")))

        with caplog.at_level(logging.WARNING, logger="music_memory.duel"):
            with pytest.raises(StaleReferenceError):
                controller.decide(Outcome.LEFT, "C", "D")

        assert "stale" in caplog.text
        assert abcd_session.ranked_ids == []
        assert abcd_session.battle_index == 0
        assert abcd_session.decision_history == []

    def test_decision_on_finished_session_is_invalid(self, store, new_session, scripted):
        session = new_session(["A", "B"])
        store.save(session)
        controller = DuelController(session, store, select_pair=scripted(("A", "B")))
        controller.decide(Outcome.LEFT)

        assert controller.get_next_duel() is None
        with pytest.raises(InvalidStateError):
            controller.decide(Outcome.LEFT)

    def test_session_with_one_item_left_finishes_on_open(self, store, new_session):
        store.save(new_session(["A", "B"], ranked_ids=["A"], battle_index=1))
        session = store.load("s1")

        controller = DuelController(session, store, rng=random.Random(1))

        assert controller.is_finished
        assert session.ranked_ids == ["A", "B"]
        assert session.is_complete


class TestCancelSorting:
    """Cancelling either keeps the progress for later or discards the session."""

    def test_save_progress_keeps_session_resumable(self, store, repository, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B")))
        controller.decide(Outcome.LEFT)

        controller.abandon(keep_progress=True)

        assert store.exists("s1")
        assert repository.records[0]["ranked_ids"] == ["A"]
        assert repository.records[0]["is_complete"] is False
        with pytest.raises(InvalidStateError):
            controller.decide(Outcome.LEFT)

    def test_discard_deletes_session(self, store, abcd_session):
        controller = DuelController(abcd_session, store, rng=random.Random(1))

        controller.abandon(keep_progress=False)

        assert not store.exists("s1")
        assert controller.can_undo is False


class TestRankingInvariants:
    """Whatever the user clicks, the ranking stays consistent."""

    def test_random_walk_keeps_ranking_consistent(self, store, new_session):
        rng = random.Random(11)
        session = new_session([f"id-{n}" for n in range(8)])
        store.save(session)
        controller = DuelController(session, store, rng=random.Random(5))

        for _ in range(500):
            if controller.is_finished:
                break
            if controller.can_undo and rng.random() < 0.2:
                controller.undo()
            else:
                controller.decide(rng.choice(list(Outcome)))

            ranked = session.ranked_ids
            assert len(ranked) == len(set(ranked))
            assert set(ranked) <= set(session.candidate_ids)
            assert session.is_complete == (len(ranked) == len(session.candidate_ids))
            assert len(session.decision_history) == session.battle_index

        assert controller.is_finished

    def test_progress_uses_n_log_n_estimate(self, store, abcd_session, scripted):
        controller = DuelController(abcd_session, store, select_pair=scripted(("A", "B")))

        assert controller.estimated_total == 8
        controller.decide(Outcome.LEFT)
        assert controller.progress == pytest.approx(1 / 8)
