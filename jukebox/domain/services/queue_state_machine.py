"""Queue item state machine.

Decides whether a trigger may be applied to a queue item. The decision
is pure; persisting it is the job of the store's conditional update.

Transition table:
    MARK_PLAYING: PENDING -> PLAYING   (PLAYING -> PLAYING is a no-op)
    COMPLETE:     PLAYING -> FINISHED
    REMOVE:       PENDING | PLAYING -> REMOVED

Anything else, and every trigger on a FINISHED or REMOVED item, is
rejected with InvalidTransitionError. The MARK_PLAYING no-op lets a
retrying caller repeat an "advance" without counting a play twice.
"""

from __future__ import annotations

from enum import Enum

from jukebox.domain.errors.queue import InvalidTransitionError
from jukebox.domain.models.queue_item import QueueItem, QueueState


class QueueTrigger(Enum):
    """Operations that move a queue item between states."""

    MARK_PLAYING = "MARK_PLAYING"
    COMPLETE = "COMPLETE"
    REMOVE = "REMOVE"

    @property
    def target_state(self) -> QueueState:
        """State the trigger moves an item into."""
        return _TRIGGER_TARGETS[self]


_TRIGGER_TARGETS: dict[QueueTrigger, QueueState] = {
    QueueTrigger.MARK_PLAYING: QueueState.PLAYING,
    QueueTrigger.COMPLETE: QueueState.FINISHED,
    QueueTrigger.REMOVE: QueueState.REMOVED,
}

# Triggers that succeed without change when the item is already there
_IDEMPOTENT_TRIGGERS: frozenset[QueueTrigger] = frozenset({QueueTrigger.MARK_PLAYING})


class TransitionPlan(Enum):
    """Outcome of planning a transition.

    APPLY: the item must be moved to the trigger's target state.
    NOOP: the item is already in the target state; report success.
    """

    APPLY = "APPLY"
    NOOP = "NOOP"


class QueueStateMachine:
    """Enforces legal transitions and idempotency for queue items."""

    def plan(self, item: QueueItem, trigger: QueueTrigger) -> TransitionPlan:
        """Plan applying ``trigger`` to ``item``.

        Args:
            item: The item as last read from the store.
            trigger: The requested operation.

        Returns:
            APPLY or NOOP.

        Raises:
            InvalidTransitionError: If the transition is not allowed.
        """
        target = trigger.target_state

        if item.state == target and trigger in _IDEMPOTENT_TRIGGERS:
            return TransitionPlan.NOOP

        allowed = item.state.valid_transitions()
        if target not in allowed:
            raise InvalidTransitionError(
                item_id=item.id,
                from_state=item.state,
                to_state=target,
                allowed_transitions=sorted(allowed, key=lambda s: s.value),
            )
        return TransitionPlan.APPLY

    def apply(self, item: QueueItem, trigger: QueueTrigger) -> QueueItem:
        """Return the item as it looks after ``trigger``.

        Raises:
            InvalidTransitionError: If the transition is not allowed.
        """
        if self.plan(item, trigger) is TransitionPlan.NOOP:
            return item
        return item.with_state(trigger.target_state)
