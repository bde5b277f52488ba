"""
Model Layer - Journey History

Breadcrumbs are the states a journey went through, most recent first. The
current state is never part of its own breadcrumbs.

A retention strategy is a pure function applied to the breadcrumbs after
every push. It may be invoked several times while history is rewound, so it
must not have side effects.
"""

from dataclasses import dataclass
from typing import Any, Callable, Tuple

from .journey import StatePattern, matches

Breadcrumbs = Tuple[Any, ...]

RetentionStrategy = Callable[[Breadcrumbs], Breadcrumbs]


@dataclass(frozen=True)
class StateAndBreadcrumbs:
    """
    The unit of persistence: the current state and its history.
    Always read and written as a whole.
    """
    state: Any
    breadcrumbs: Breadcrumbs = ()

    def push(self, new_state: Any, retention: "RetentionStrategy") -> "StateAndBreadcrumbs":
        """Moves to `new_state`, pushing the current state onto the history."""
        return StateAndBreadcrumbs(
            state=new_state,
            breadcrumbs=retention((self.state,) + tuple(self.breadcrumbs)),
        )


def keep_all(breadcrumbs: Breadcrumbs) -> Breadcrumbs:
    return breadcrumbs


def clear(breadcrumbs: Breadcrumbs) -> Breadcrumbs:
    return ()


def max_depth(depth: int) -> RetentionStrategy:
    """Keeps only the `depth` most recent breadcrumbs."""
    if depth < 0:
        raise ValueError(f"Breadcrumbs depth must not be negative, got {depth}")

    def strategy(breadcrumbs: Breadcrumbs) -> Breadcrumbs:
        return tuple(breadcrumbs[:depth])

    return strategy


def drop_matching(pattern: StatePattern) -> RetentionStrategy:
    """Drops every breadcrumb matching `pattern`, e.g. error states."""

    def strategy(breadcrumbs: Breadcrumbs) -> Breadcrumbs:
        return tuple(state for state in breadcrumbs if not matches(pattern, state))

    return strategy


def compose(*strategies: RetentionStrategy) -> RetentionStrategy:
    """Applies strategies left to right."""

    def strategy(breadcrumbs: Breadcrumbs) -> Breadcrumbs:
        for each in strategies:
            breadcrumbs = each(breadcrumbs)
        return breadcrumbs

    return strategy
