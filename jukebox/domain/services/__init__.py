"""Pure domain services: fairness ordering and the queue state machine."""

from jukebox.domain.services.fairness_selector import (
    RankedQueueItem,
    assign_turns,
    rank_pending,
    select_next,
)
from jukebox.domain.services.queue_state_machine import (
    QueueStateMachine,
    QueueTrigger,
    TransitionPlan,
)

__all__: list[str] = [
    "QueueStateMachine",
    "QueueTrigger",
    "RankedQueueItem",
    "TransitionPlan",
    "assign_turns",
    "rank_pending",
    "select_next",
]
