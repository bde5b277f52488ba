"""
Journey Service - State Ownership Layer

This service owns the persisted (state, breadcrumbs) pair of each journey.
Controllers never touch the pair directly: they ask the service to apply a
transition, to step back through history, or to clean it up.

Every operation receives the request context explicitly. The context is
opaque to the service apart from the key resolver, which maps it to the
journey key used by the repository.
"""

import logging
from typing import Callable, Generic, Optional, TypeVar

from ..config import settings
from ..model.breadcrumbs import Breadcrumbs, RetentionStrategy, StateAndBreadcrumbs, clear, keep_all
from ..model.journey import JourneyModel, Moved, Transition
from ..repositories.journey import JourneyRepository
from .exceptions import TransitionNotAllowed

logger = logging.getLogger(__name__)

RequestContext = TypeVar("RequestContext")


class JourneyService(Generic[RequestContext]):
    def __init__(
        self,
        model: JourneyModel,
        repository: JourneyRepository,
        journey_key: str = settings.JOURNEY_KEY,
        retention: RetentionStrategy = keep_all,
        key_resolver: Optional[Callable[[RequestContext], str]] = None,
    ):
        self.model = model
        self.repository = repository
        self.journey_key = journey_key
        self.retention = retention
        self.key_resolver = key_resolver

    def journey_key_for(self, context: RequestContext) -> str:
        if self.key_resolver is None:
            return self.journey_key
        return self.key_resolver(context)

    async def current_state(self, context: RequestContext) -> Optional[StateAndBreadcrumbs]:
        """Returns the persisted pair, or None if the journey was never started."""
        return await self.repository.load(self.journey_key_for(context))

    async def apply(self, transition: Transition, context: RequestContext) -> StateAndBreadcrumbs:
        """
        Applies the transition to the current state (root if uninitialised).

        On success the previous state is pushed onto the breadcrumbs, unless
        the transition stayed on the same state, and the new pair is saved.
        Raises TransitionNotAllowed without persisting anything otherwise.
        """
        journey_key = self.journey_key_for(context)

        async with self.repository.lock(journey_key):
            current = await self.repository.load(journey_key)
            if current is None:
                logger.info(f"Initialising journey {journey_key} at {type(self.model.root).__name__}")
                current = StateAndBreadcrumbs(state=self.model.root)

            outcome = await transition(current.state)

            if not isinstance(outcome, Moved):
                logger.warning(
                    f"{transition!r} rejected for journey {journey_key} "
                    f"in {type(current.state).__name__}"
                )
                raise TransitionNotAllowed(current.state, current.breadcrumbs, transition)

            if outcome.state == current.state:
                updated = current
            else:
                updated = current.push(outcome.state, self.retention)

            logger.debug(
                f"{transition!r} moved journey {journey_key} from "
                f"{type(current.state).__name__} to {type(updated.state).__name__}"
            )
            return await self.repository.save(journey_key, updated)

    async def step_back(self, context: RequestContext) -> Optional[StateAndBreadcrumbs]:
        """
        Makes the most recent breadcrumb the current state.
        Returns None, leaving the journey untouched, when history is empty.
        """
        journey_key = self.journey_key_for(context)

        async with self.repository.lock(journey_key):
            current = await self.repository.load(journey_key)
            if current is None or not current.breadcrumbs:
                return None

            previous = StateAndBreadcrumbs(
                state=current.breadcrumbs[0],
                breadcrumbs=tuple(current.breadcrumbs[1:]),
            )
            logger.debug(f"Stepping journey {journey_key} back to {type(previous.state).__name__}")
            return await self.repository.save(journey_key, previous)

    async def clean_breadcrumbs(
        self,
        context: RequestContext,
        transform: Callable[[Breadcrumbs], Breadcrumbs] = clear,
    ) -> Breadcrumbs:
        """Replaces the breadcrumbs with transform(breadcrumbs), keeping the current state."""
        journey_key = self.journey_key_for(context)

        async with self.repository.lock(journey_key):
            current = await self.repository.load(journey_key)
            if current is None:
                return ()

            cleaned = tuple(transform(current.breadcrumbs))
            await self.repository.save(
                journey_key, StateAndBreadcrumbs(state=current.state, breadcrumbs=cleaned)
            )
            return cleaned

    async def clear(self, context: RequestContext) -> bool:
        """Forgets the journey; the next access starts again from root."""
        journey_key = self.journey_key_for(context)

        async with self.repository.lock(journey_key):
            logger.info(f"Resetting journey {journey_key}")
            return await self.repository.delete(journey_key)
