"""
Tests for merge rules, deferred completion and scoring.
"""

import pytest

from fruit_drop.core.scoring import ScoreTracker
from fruit_drop.core.session import Session


@pytest.fixture
def config(make_config):
    # Every drop is the smallest fruit
    return make_config(rng={"spawnable_count": 1})


@pytest.fixture
def session(config, fake_time):
    return Session(config=config, seed=0, time_source=fake_time)


def step_until_committed(session, max_steps=240):
    """Step without advancing game time until a merge is in flight."""
    for _ in range(max_steps):
        session.step()
        if session.merger.in_flight_count:
            return True
    return False


class TestMergeRules:
    """Test collision-driven merges."""

    def test_stacked_pair_merges(self, session, fake_time):
        """A fruit falling onto an equal one merges into the next level."""
        physics = session.physics
        a = physics.spawn_fruit(0, 300, 730)
        b = physics.spawn_fruit(0, 300, 600)

        assert step_until_committed(session)

        # Sources leave the world at commit, replacement is not in yet
        assert physics.fruit_count == 0
        assert session.pending_merge_ids == {a.uid, b.uid}
        assert session.score == 0

        fake_time.advance(0.06)
        completed = session.step()

        assert len(completed) == 1
        result = completed[0]
        assert result.new_level == 1
        assert set(result.removed_uids) == {a.uid, b.uid}
        assert result.score_event.points == 2
        assert session.score == 2
        assert session.pending_merge_ids == set()

        new_fruit = physics.get_fruit(result.created_uid)
        assert new_fruit is not None
        assert new_fruit.level_id == 1
        assert new_fruit.body.is_merging is False

    def test_replacement_spawns_at_midpoint(self, session):
        """The new fruit is placed halfway between the two sources."""
        physics = session.physics
        a = physics.spawn_fruit(0, 200, 400)
        b = physics.spawn_fruit(0, 260, 420)

        committed = session.merger.resolve_merges([(a.body, b.body)])

        assert len(committed) == 1
        assert committed[0].position == pytest.approx((230, 410))

    def test_completion_waits_for_delay(self, session, fake_time):
        """Nothing is inserted before the merge delay has elapsed."""
        physics = session.physics
        a = physics.spawn_fruit(0, 200, 400)
        b = physics.spawn_fruit(0, 260, 400)
        session.merger.resolve_merges([(a.body, b.body)])

        fake_time.advance(0.03)
        assert session.step() == []
        assert physics.fruit_count == 0

        fake_time.advance(0.03)
        assert len(session.step()) == 1
        assert physics.fruit_count == 1

    def test_one_merge_per_fruit(self, session):
        """Three touching equals produce a single merge; the third stays."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)
        c = physics.spawn_fruit(0, 350, 400)

        committed = session.merger.resolve_merges([
            (a.body, b.body),
            (a.body, c.body),
            (b.body, c.body),
        ])

        assert len(committed) == 1
        assert committed[0].uids == (a.uid, b.uid)
        assert physics.get_fruit(c.uid) is c
        assert c.is_merging is False

    def test_duplicate_report_is_ignored(self, session):
        """The same pair reported twice in a batch commits once."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)

        committed = session.merger.resolve_merges([
            (a.body, b.body),
            (b.body, a.body),
        ])

        assert len(committed) == 1
        assert session.merger.in_flight_count == 1

    def test_different_levels_do_not_merge(self, session):
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(1, 250, 400)

        assert session.merger.resolve_merges([(a.body, b.body)]) == []
        assert physics.fruit_count == 2

    def test_terminal_level_does_not_merge(self, session):
        """Two fruits of the last level stay in the world."""
        physics = session.physics
        last = session.table.terminal_level
        a = physics.spawn_fruit(last, 200, 400)
        b = physics.spawn_fruit(last, 400, 400)

        assert session.merger.resolve_merges([(a.body, b.body)]) == []
        assert physics.fruit_count == 2
        assert session.score == 0

    def test_wall_pairs_are_ignored(self, session):
        physics = session.physics
        fruit = physics.spawn_fruit(0, 300, 400)
        wall = physics.walls[0]

        assert session.merger.resolve_merges([(wall, fruit.body)]) == []
        assert session.merger.resolve_merges([(fruit.body, wall)]) == []
        assert physics.fruit_count == 1

    def test_commit_rejects_mismatched_levels(self, session):
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(2, 250, 400)

        with pytest.raises(ValueError):
            session.merger._commit(a, b)

    def test_commit_rejects_terminal_level(self, session):
        physics = session.physics
        last = session.table.terminal_level
        a = physics.spawn_fruit(last, 200, 400)
        b = physics.spawn_fruit(last, 400, 400)

        with pytest.raises(ValueError):
            session.merger._commit(a, b)

    def test_no_merges_while_paused(self, session):
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)

        session.toggle_pause()
        assert session.merger.resolve_merges([(a.body, b.body)]) == []
        assert physics.fruit_count == 2

    def test_dropped_pair_merges(self, session, fake_time):
        """Two drops at the same x land on each other and merge."""
        first = session.drop(300)
        assert first.position == pytest.approx((300, 80))
        for _ in range(90):
            session.step()

        assert session.next_level == 0
        second = session.drop(300)
        assert step_until_committed(session)
        assert session.pending_merge_ids == {first.uid, second.uid}

        fake_time.advance(0.06)
        completed = session.step()

        assert [m.new_level for m in completed] == [1]
        assert session.score == 2
        assert session.is_playing
        fruits = list(session.physics.fruits.values())
        assert len(fruits) == 1
        assert fruits[0].level_id == 1
        assert fruits[0].position[0] == pytest.approx(300, abs=1.0)

    def test_chain_merge(self, session, fake_time):
        """Merging two level-1 fruits scores 4 points."""
        physics = session.physics
        a = physics.spawn_fruit(1, 150, 400)
        b = physics.spawn_fruit(1, 250, 400)

        session.merger.resolve_merges([(a.body, b.body)])
        fake_time.advance(0.06)
        completed = session.step()

        assert completed[0].new_level == 2
        assert session.score == 4


class TestDeferredCompletion:
    """Test how in-flight merges interact with pause, reset and game over."""

    def test_pause_holds_completion(self, session, fake_time):
        """Paused time does not count toward the merge delay."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)
        session.merger.resolve_merges([(a.body, b.body)])

        session.toggle_pause()
        fake_time.advance(1.0)
        assert session.step() == []

        session.toggle_pause()
        assert session.step() == []
        assert physics.fruit_count == 0

        fake_time.advance(0.06)
        assert len(session.step()) == 1
        assert session.score == 2

    def test_overlapping_merges(self, session, fake_time):
        """Two merges in flight at once both complete on their own timers."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 200, 400)
        c = physics.spawn_fruit(1, 300, 400)
        d = physics.spawn_fruit(1, 400, 400)

        assert len(session.merger.resolve_merges([(a.body, b.body)])) == 1
        fake_time.advance(0.03)
        assert len(session.merger.resolve_merges([(c.body, d.body)])) == 1

        assert session.merger.in_flight_count == 2
        assert session.pending_merge_ids == {a.uid, b.uid, c.uid, d.uid}

        fake_time.advance(0.03)
        first = session.step()
        assert [m.new_level for m in first] == [1]
        assert session.score == 2
        assert session.pending_merge_ids == {c.uid, d.uid}

        fake_time.advance(0.03)
        second = session.step()
        assert [m.new_level for m in second] == [2]
        assert session.score == 2 + 4
        assert session.pending_merge_ids == set()
        assert session.merger.in_flight_count == 0
        assert physics.fruit_count == 2

    def test_reset_cancels_in_flight_tasks(self, session):
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)
        session.merger.resolve_merges([(a.body, b.body)])
        assert session.scheduler.pending_count == 1

        session.reset()

        assert session.scheduler.pending_count == 0
        assert session.merger.in_flight_count == 0

    def test_stale_generation_completion_is_noop(self, session):
        """A completion carrying an old generation inserts nothing."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)
        pending = session.merger.resolve_merges([(a.body, b.body)])[0]

        session.reset()

        assert session.merger._complete(pending) is None
        assert physics.fruit_count == 0
        assert session.score == 0

    def test_reset_discards_stale_completion(self, session, fake_time):
        """A completion from before a reset inserts nothing."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)
        session.merger.resolve_merges([(a.body, b.body)])

        session.reset()
        fake_time.advance(0.06)
        completed = session.step()

        assert completed == []
        assert physics.fruit_count == 0
        assert physics.wall_count == 3
        assert session.score == 0
        assert session.pending_merge_ids == set()

    def test_game_over_counts_committed_merges(self, session):
        """Merges already committed when the game ends still score."""
        physics = session.physics
        a = physics.spawn_fruit(0, 150, 400)
        b = physics.spawn_fruit(0, 250, 400)
        session.merger.resolve_merges([(a.body, b.body)])

        session.trigger_game_over()

        assert session.game_over
        assert session.score == 2
        assert physics.fruit_count == 1
        assert session.pending_merge_ids == set()


class TestScoring:
    """Test score calculation."""

    @pytest.fixture
    def scorer(self, config):
        return ScoreTracker(config)

    def test_initial_score_zero(self, scorer):
        assert scorer.score == 0
        assert scorer.merges == 0

    def test_merge_scores_next_level_power(self, scorer):
        """Merging level L awards 2^(L+1)."""
        assert scorer.get_merge_score(0) == 2
        assert scorer.get_merge_score(3) == 16
        assert scorer.get_merge_score(9) == 1024

    def test_terminal_level_has_no_merge_score(self, scorer, config):
        with pytest.raises(ValueError):
            scorer.get_merge_score(config.num_levels - 1)

    def test_apply_and_reset(self, scorer):
        scorer.apply_merge(0)
        scorer.apply_merge(2)
        assert scorer.score == 2 + 8
        assert scorer.merges == 2

        scorer.reset()
        assert scorer.score == 0
        assert scorer.merges == 0
