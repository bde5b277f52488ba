"""
Model Layer - States and Transitions

This module defines the pure part of a journey: what a state is, what a
transition is, and how a transition is applied to a state. Nothing here
touches the network or the persistence backend.

A Transition is a partial function. It is built from an ordered mapping of
state patterns to outcome computations; a state that no pattern covers is
rejected. Outcomes may be plain functions or coroutines, which is how
transitions await injected upstream lookups without hidden side effects.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class JourneyState(BaseModel):
    """
    Base class for application states.

    States are frozen pydantic models: immutable, hashable, compared by type
    and field values, and serializable to JSON for persistence. A journey
    declares its states as a closed set of subclasses, each carrying a
    `kind` literal so the union can be decoded again.
    """
    model_config = ConfigDict(frozen=True)


"""
StatePattern selects the states a transition case (or a show action) applies to:
- a state class, or a tuple of state classes (isinstance check)
- any other callable, used as a predicate over the state
"""
StatePattern = Union[Type[Any], Tuple[Type[Any], ...], Callable[[Any], bool]]


def matches(pattern: StatePattern, state: Any) -> bool:
    if isinstance(pattern, type) or isinstance(pattern, tuple):
        return isinstance(state, pattern)
    return bool(pattern(state))


@dataclass(frozen=True)
class Moved:
    """The transition matched the origin and computed a destination."""
    state: Any


@dataclass(frozen=True)
class Rejected:
    """The transition is not defined for the origin state."""
    origin: Any


TransitionResult = Union[Moved, Rejected]

Outcome = Callable[[Any], Union[Any, Awaitable[Any]]]


def goto(state: Any) -> Outcome:
    """Outcome that moves to `state` whatever the origin is."""
    return lambda _origin: state


class Transition:
    """
    A named, partial, possibly asynchronous function from State to State.

    Example:
        Transition("stop", {
            Start: goto(Stop(result="")),
            Continue: lambda s: Stop(result=s.arg),
        })

    An outcome may also return a `Rejected` value to decline a matched
    state, e.g. after an upstream lookup turned the request down.
    """

    def __init__(self, name: str, cases: Mapping[StatePattern, Outcome]):
        self.name = name
        self.cases = tuple(cases.items())

    async def __call__(self, state: Any) -> TransitionResult:
        for pattern, outcome in self.cases:
            if not matches(pattern, state):
                continue

            result = outcome(state)
            if inspect.isawaitable(result):
                result = await result

            if isinstance(result, Rejected):
                return result
            return Moved(result)

        logger.debug(f"{self!r} is not defined at {type(state).__name__}")
        return Rejected(state)

    def is_defined_at(self, state: Any) -> bool:
        """Whether some case pattern covers `state` (outcomes are not run)."""
        return any(matches(pattern, state) for pattern, _ in self.cases)

    def __repr__(self) -> str:
        return f"Transition({self.name!r})"


class JourneyModel(ABC):
    """
    The state space and the root of one kind of journey.

    Subclasses provide the root state and, for journeys persisted through
    JourneyCodec, `state_type`: the type annotation (usually an Annotated
    union with a `kind` discriminator) used to encode and decode states.
    Journey-specific transitions live next to the model as factory functions
    taking their side inputs as arguments.
    """

    # Required by JourneyCodec
    state_type: Any = None

    @property
    @abstractmethod
    def root(self) -> JourneyState:
        """The distinguished starting state."""
        pass

    @property
    def start(self) -> Transition:
        """The root transition: defined for every state, goes to `root`."""
        return Transition("start", {object: goto(self.root)})
