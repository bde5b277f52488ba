"""
Dependency Injection Wiring (Composition Root).

This module builds the journey services of an application from the settings:
1. Instantiating the repository chosen by JOURNEY_STORE.
2. Wiring it, with the retention strategy, into a JourneyService per model.
3. Managing the lifecycle of these objects using @lru_cache to ensure
   they are created only once per application process.

Controllers receive the service in their constructor, which keeps them easy
to test with an in-memory repository.
"""

from functools import lru_cache
from typing import Callable, Optional

from .config import settings
from .model.breadcrumbs import RetentionStrategy, keep_all, max_depth
from .model.codec import JourneyCodec
from .model.journey import JourneyModel
from .repositories.journey import JourneyRepository, InMemoryJourneyRepository, SqlJourneyRepository
from .services.journey import JourneyService

from .infrastructure.database.connection import init_db


# Journey Repository (Singleton per journey model)
# Note: In-memory storage must be a singleton so data persists across requests!
@lru_cache()
def get_journey_repository(model: JourneyModel) -> JourneyRepository:
    if settings.JOURNEY_STORE == "sql":
        init_db()
        return SqlJourneyRepository(JourneyCodec(model))
    return InMemoryJourneyRepository()


def get_retention_strategy() -> RetentionStrategy:
    if settings.BREADCRUMBS_MAX_DEPTH is None:
        return keep_all
    return max_depth(settings.BREADCRUMBS_MAX_DEPTH)


# The Journey Service (Singleton Service per journey model)
@lru_cache()
def get_journey_service(
    model: JourneyModel,
    key_resolver: Optional[Callable] = None,
) -> JourneyService:
    """
    Injects the repository and the retention strategy into the JourneyService.
    """
    return JourneyService(
        model=model,
        repository=get_journey_repository(model),
        journey_key=settings.JOURNEY_KEY,
        retention=get_retention_strategy(),
        key_resolver=key_resolver,
    )
