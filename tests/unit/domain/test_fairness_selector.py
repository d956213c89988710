"""Unit tests for fair round-robin ordering."""

import random
from collections import Counter

import pytest

from jukebox.domain.models.queue_item import QueueState
from jukebox.domain.services.fairness_selector import (
    assign_turns,
    rank_pending,
    select_next,
)
from tests.helpers import make_item


def _tables(ranked_items) -> list[str]:
    return [r.item.table_id for r in ranked_items]


class TestSelectNext:
    """Tests for select_next."""

    def test_empty_snapshot_returns_none(self) -> None:
        """Nothing pending means nothing to play."""
        assert select_next([]) is None

    def test_only_terminal_items_returns_none(self) -> None:
        """FINISHED, REMOVED and PLAYING items are not candidates."""
        items = [
            make_item(sequence=1, state=QueueState.FINISHED),
            make_item(sequence=2, state=QueueState.REMOVED),
            make_item(sequence=3, state=QueueState.PLAYING),
        ]
        assert select_next(items) is None

    def test_single_table_is_fifo(self) -> None:
        """Within a table the oldest submission goes first."""
        a2 = make_item("A", sequence=2)
        a1 = make_item("A", sequence=1)
        assert select_next([a2, a1]) is a1

    def test_turn_beats_age(self) -> None:
        """A table's first item beats another table's older second item."""
        a1 = make_item("A", sequence=1)
        a2 = make_item("A", sequence=2)
        b1 = make_item("B", sequence=3)
        assert select_next([a1, a2, b1]) is a1
        assert [r.item for r in rank_pending([a1, a2, b1])] == [a1, b1, a2]

    def test_tie_broken_by_table_id(self) -> None:
        """Equal turns are served in ascending table id."""
        b1 = make_item("B", sequence=1)
        a1 = make_item("A", sequence=2)
        assert select_next([b1, a1]) is a1

    def test_does_not_mutate_snapshot(self) -> None:
        """Selection is pure."""
        items = [make_item("A", sequence=2), make_item("B", sequence=1)]
        before = list(items)
        select_next(items)
        assert items == before
        assert all(i.state == QueueState.PENDING for i in items)


class TestRankPending:
    """Tests for rank_pending and assign_turns."""

    def test_round_robin_example(self) -> None:
        """A submits three, B submits one: A, B, A, A."""
        items = [
            make_item("A", sequence=1),
            make_item("A", sequence=2),
            make_item("A", sequence=3),
            make_item("B", sequence=4),
        ]
        ranked = rank_pending(items)
        assert _tables(ranked) == ["A", "B", "A", "A"]
        assert [r.turn for r in ranked] == [1, 1, 2, 3]

    def test_three_tables_interleave(self) -> None:
        """Each round serves every table that still has items."""
        items = [
            make_item("C", sequence=1),
            make_item("C", sequence=2),
            make_item("A", sequence=3),
            make_item("B", sequence=4),
            make_item("B", sequence=5),
            make_item("A", sequence=6),
            make_item("C", sequence=7),
        ]
        assert _tables(rank_pending(items)) == ["A", "B", "C", "A", "B", "C", "C"]

    def test_turns_skip_non_pending(self) -> None:
        """A table's played items do not push its pending items back."""
        items = [
            make_item("A", sequence=1, state=QueueState.FINISHED),
            make_item("A", sequence=2),
            make_item("B", sequence=3),
        ]
        turns = {r.item.sequence: r.turn for r in assign_turns(items)}
        assert turns == {2: 1, 3: 1}

    def test_head_matches_select_next(self) -> None:
        """select_next returns the head of rank_pending."""
        items = [make_item(t, sequence=s) for s, t in enumerate("BACABC", start=1)]
        assert select_next(items) is rank_pending(items)[0].item

    def test_deterministic_for_any_input_order(self) -> None:
        """The order depends only on the snapshot's contents."""
        items = [make_item(t, sequence=s) for s, t in enumerate("ABBCCCA", start=1)]
        expected = [r.item.id for r in rank_pending(items)]

        rng = random.Random(7)
        for _ in range(20):
            shuffled = list(items)
            rng.shuffle(shuffled)
            assert [r.item.id for r in rank_pending(shuffled)] == expected


class TestFairnessProperty:
    """Randomized checks of the serving order."""

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_no_table_served_twice_while_another_waits(self, seed: int) -> None:
        """Among the first k*n served, each of n waiting tables gets k slots."""
        rng = random.Random(seed)
        tables = [f"table-{i}" for i in range(rng.randint(2, 6))]
        items = []
        for sequence in range(1, rng.randint(20, 60)):
            items.append(make_item(rng.choice(tables), sequence=sequence))

        order = _tables(rank_pending(items))
        totals = Counter(i.table_id for i in items)
        served: Counter[str] = Counter()
        for table in order:
            served[table] += 1
            turn = served[table]
            # Every table with at least turn - 1 items has had turn - 1 slots
            for other, total in totals.items():
                assert served[other] >= min(total, turn - 1)

    @pytest.mark.parametrize("seed", [11, 12, 13])
    def test_per_table_fifo(self, seed: int) -> None:
        """Each table's items come out in submission order."""
        rng = random.Random(seed)
        items = [
            make_item(rng.choice("ABCD"), sequence=sequence)
            for sequence in range(1, 40)
        ]
        order = rank_pending(items)
        for table in "ABCD":
            sequences = [r.item.sequence for r in order if r.item.table_id == table]
            assert sequences == sorted(sequences)


class TestLeastRecentlyServed:
    """Equal turns go to the table whose last play is oldest."""

    def test_table_that_just_played_goes_last(self) -> None:
        """After a1 plays, b1 goes before a2."""
        a1 = make_item("A", sequence=1, state=QueueState.PLAYING, played_sequence=5)
        a2 = make_item("A", sequence=2)
        b1 = make_item("B", sequence=4)

        ranked = rank_pending([a1, a2, b1])
        assert [r.item for r in ranked] == [b1, a2]
        assert [(r.turn, r.table_last_played) for r in ranked] == [(1, 0), (1, 5)]

    def test_older_last_play_goes_first(self) -> None:
        """Recency beats table id."""
        a0 = make_item("A", sequence=1, state=QueueState.FINISHED, played_sequence=4)
        b0 = make_item("B", sequence=2, state=QueueState.FINISHED, played_sequence=3)
        a1 = make_item("A", sequence=5)
        b1 = make_item("B", sequence=6)

        assert select_next([a0, b0, a1, b1]) is b1

    def test_never_played_goes_first(self) -> None:
        a0 = make_item("A", sequence=1, state=QueueState.FINISHED, played_sequence=2)
        a1 = make_item("A", sequence=3)
        c1 = make_item("C", sequence=4)

        assert select_next([a0, a1, c1]) is c1

    def test_removed_after_play_still_counts(self) -> None:
        """An item removed while playing still used the output."""
        a1 = make_item("A", sequence=1, state=QueueState.REMOVED, played_sequence=3)
        a2 = make_item("A", sequence=2)
        b1 = make_item("B", sequence=4)

        assert select_next([a1, a2, b1]) is b1

    def test_removed_before_play_ignored(self) -> None:
        a1 = make_item("A", sequence=1, state=QueueState.REMOVED)
        a2 = make_item("A", sequence=2)
        b1 = make_item("B", sequence=3)

        assert select_next([a1, a2, b1]) is a2

    def test_history_keeps_fifo(self) -> None:
        """Plays never reorder a table's pending items."""
        a1 = make_item("A", sequence=1, state=QueueState.FINISHED, played_sequence=4)
        a2 = make_item("A", sequence=2, state=QueueState.FINISHED, played_sequence=5)
        a3 = make_item("A", sequence=3)
        a4 = make_item("A", sequence=6)

        ranked = rank_pending([a1, a2, a3, a4])
        assert [r.item for r in ranked] == [a3, a4]
        assert [r.turn for r in ranked] == [1, 2]

    def test_one_at_a_time_table_cannot_jump_backlog(self) -> None:
        """A table resubmitting after each play alternates with a backlog."""
        snapshot = [make_item("A", sequence=s) for s in (1, 2, 3)]
        counter = 3
        served = []

        def take() -> None:
            nonlocal counter, snapshot
            head = select_next(snapshot)
            assert head is not None
            counter += 1
            served.append(head.table_id)
            snapshot = [
                i if i.id != head.id else i.with_playback(counter) for i in snapshot
            ]

        take()
        for _ in range(5):
            counter += 1
            snapshot.append(make_item("B", sequence=counter))
            take()

        assert served == ["A", "B", "A", "B", "A", "B"]

    @pytest.mark.parametrize("seed", [21, 22, 23, 24])
    def test_draining_follows_peek_order(self, seed: int) -> None:
        """Repeatedly taking the head serves exactly the ranked order."""
        rng = random.Random(seed)
        counter = 0
        snapshot = []
        for table in "ABCDE":
            if rng.random() < 0.5:
                counter += 1
                snapshot.append(
                    make_item(
                        table,
                        sequence=counter,
                        state=QueueState.FINISHED,
                        played_sequence=rng.randint(counter + 1, 100),
                    )
                )
        for _ in range(rng.randint(10, 40)):
            counter += 1
            snapshot.append(make_item(rng.choice("ABCDE"), sequence=counter))
        expected = [r.item.id for r in rank_pending(snapshot)]

        counter += 100
        served = []
        while (head := select_next(snapshot)) is not None:
            counter += 1
            served.append(head.id)
            snapshot = [
                i if i.id != head.id else i.with_playback(counter) for i in snapshot
            ]
        assert served == expected
