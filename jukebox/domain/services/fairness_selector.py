"""Fair round-robin ordering of pending queue items.

Pending items of one venue are grouped by table and given a 1-based
turn: their rank among the table's pending items, oldest first. The
venue is served by ascending turn, so every table with something
pending gets one slot per round regardless of how many items it has
queued:

    Table A submits a1, a2, a3; table B submits b1.
    Turns: a1=1, b1=1, a2=2, a3=3  ->  served a1, b1, a2, a3.

Within a turn, tables are served least recently played first: a table
that has never played goes before one that has, and a table whose last
play is older goes before one whose last play is newer. Turns are
recomputed from pending items only, so after a1 plays a2 is back on
turn 1; it is the recency order that puts b1 ahead of it and hands the
output to B. The same rule keeps a table that submits one video at a
time from jumping a backlogged table: the table that just played is
always the most recent, so any other table with something pending goes
first.

Remaining ties (tables that never played) are broken by ascending table
id, then by sequence, which makes the order fully deterministic for a
given snapshot. Draining a snapshot with select_next serves exactly the
order rank_pending returns.

Everything here is pure: it reads a snapshot and never mutates it.
The caller decides what to do with the chosen item.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from jukebox.domain.models.queue_item import QueueItem

# Recency of a table that has never played
NEVER_PLAYED = 0


@dataclass(frozen=True)
class RankedQueueItem:
    """A pending item together with its per-table turn.

    Attributes:
        item: The pending queue item.
        turn: 1-based round in which the item is served.
        table_last_played: played_sequence of the table's most recent
            play, NEVER_PLAYED if the table has not played.
    """

    item: QueueItem
    turn: int
    table_last_played: int = NEVER_PLAYED

    @property
    def sort_key(self) -> tuple[int, int, str, int]:
        """Serving key: turn, table recency, table id, sequence."""
        return (
            self.turn,
            self.table_last_played,
            self.item.table_id,
            self.item.sequence,
        )


def assign_turns(items: Iterable[QueueItem]) -> list[RankedQueueItem]:
    """Assign turns to the pending items of a venue snapshot.

    The snapshot may also hold items that already played (any state
    with a played_sequence); they are not ranked but give their table's
    recency. Items that never played and are not pending are ignored.
    The result is grouped by table and not yet in serving order.

    Args:
        items: Snapshot of queue items for one venue.

    Returns:
        One RankedQueueItem per pending input item.
    """
    pending: dict[str, list[QueueItem]] = defaultdict(list)
    last_played: dict[str, int] = {}
    for item in items:
        if item.is_pending:
            pending[item.table_id].append(item)
        elif item.played_sequence is not None:
            last_played[item.table_id] = max(
                item.played_sequence, last_played.get(item.table_id, NEVER_PLAYED)
            )

    ranked: list[RankedQueueItem] = []
    for table_id, table_items in pending.items():
        table_items.sort(key=lambda i: (i.sequence, i.submitted_at))
        recency = last_played.get(table_id, NEVER_PLAYED)
        ranked.extend(
            RankedQueueItem(item=item, turn=rank, table_last_played=recency)
            for rank, item in enumerate(table_items, start=1)
        )
    return ranked


def rank_pending(items: Iterable[QueueItem]) -> list[RankedQueueItem]:
    """Materialize the full fairness order of a venue's pending items.

    Args:
        items: Snapshot of queue items for one venue.

    Returns:
        Pending items in the order they would be served.
    """
    return sorted(assign_turns(items), key=lambda r: r.sort_key)


def select_next(items: Iterable[QueueItem]) -> QueueItem | None:
    """Select the item that should play next.

    Args:
        items: Snapshot of queue items for one venue.

    Returns:
        The head of the fairness order, or None when nothing is pending.
    """
    ranked = assign_turns(items)
    if not ranked:
        return None
    return min(ranked, key=lambda r: r.sort_key).item
