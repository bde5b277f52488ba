"""
Model Layer - States, Transitions and History

Defines the pure journey model: states, partial transitions, the root
transition, breadcrumbs with their retention strategies, and the codec used
to persist them.
"""

from journey_fsm.model.journey import (
    JourneyModel,
    JourneyState,
    Moved,
    Rejected,
    StatePattern,
    Transition,
    TransitionResult,
    goto,
    matches,
)
from journey_fsm.model.breadcrumbs import (
    Breadcrumbs,
    RetentionStrategy,
    StateAndBreadcrumbs,
    clear,
    compose,
    drop_matching,
    keep_all,
    max_depth,
)
from journey_fsm.model.codec import JourneyCodec

__all__ = [
    # States & Transitions
    "JourneyModel",
    "JourneyState",
    "Moved",
    "Rejected",
    "StatePattern",
    "Transition",
    "TransitionResult",
    "goto",
    "matches",
    # History
    "Breadcrumbs",
    "RetentionStrategy",
    "StateAndBreadcrumbs",
    "clear",
    "compose",
    "drop_matching",
    "keep_all",
    "max_depth",
    # Persistence
    "JourneyCodec",
]
