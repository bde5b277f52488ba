import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

# Domain & Infra Imports
from ..model.breadcrumbs import StateAndBreadcrumbs
from ..model.codec import JourneyCodec
from ..infrastructure.database.tables import JourneyDBModel
from ..infrastructure.database.connection import engine as default_engine

logger = logging.getLogger(__name__)


class JourneyRepository(ABC):
    """
    Defines how the JourneyService loads and stores journeys.
    This allows us change where journeys live (Memory -> SQL -> Cache) later
    without changing the JourneyService code.

    Writers of the same journey key must not interleave: the service holds
    `lock(key)` around every read-modify-write. The default lock serializes
    coroutines within one process; backends shared by several processes
    should override it with a lock the store itself provides.
    """

    def __init__(self):
        # Per-key lock and the number of coroutines holding or awaiting it
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    @abstractmethod
    async def load(self, journey_key: str) -> Optional[StateAndBreadcrumbs]:
        """Retrieves a journey, or None when it was never initialised."""
        pass

    @abstractmethod
    async def save(self, journey_key: str, state_and_breadcrumbs: StateAndBreadcrumbs) -> StateAndBreadcrumbs:
        """Persists the pair as a whole and returns it."""
        pass

    @abstractmethod
    async def delete(self, journey_key: str) -> bool:
        """Deletes a journey. Returns True if found and deleted."""
        pass

    @asynccontextmanager
    async def lock(self, journey_key: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(journey_key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[journey_key] = (lock, users + 1)

        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[journey_key]
            if users == 1:
                # Last user gone, so the entry would only accumulate
                del self._locks[journey_key]
            else:
                self._locks[journey_key] = (lock, users - 1)


class InMemoryJourneyRepository(JourneyRepository):
    """
    Uses in-memory dictionary for journey storage for testing/dev purposes.
    Pairs are immutable, so they are stored as-is.
    """

    def __init__(self):
        super().__init__()
        self._store: Dict[str, StateAndBreadcrumbs] = {}

    async def load(self, journey_key: str) -> Optional[StateAndBreadcrumbs]:
        return self._store.get(journey_key)

    async def save(self, journey_key: str, state_and_breadcrumbs: StateAndBreadcrumbs) -> StateAndBreadcrumbs:
        self._store[journey_key] = state_and_breadcrumbs
        return state_and_breadcrumbs

    async def delete(self, journey_key: str) -> bool:
        if journey_key in self._store:
            del self._store[journey_key]
            return True
        return False


class SqlJourneyRepository(JourneyRepository):
    """
    SQL storage for journeys (JSONB on PostgreSQL, JSON elsewhere).
    SQLModel sessions are blocking, so each call runs in a worker thread.
    """

    def __init__(self, codec: JourneyCodec, engine: Optional[Engine] = None):
        super().__init__()
        self.codec = codec
        self.engine = engine or default_engine

    async def load(self, journey_key: str) -> Optional[StateAndBreadcrumbs]:
        return await asyncio.to_thread(self._load, journey_key)

    async def save(self, journey_key: str, state_and_breadcrumbs: StateAndBreadcrumbs) -> StateAndBreadcrumbs:
        await asyncio.to_thread(self._save, journey_key, state_and_breadcrumbs)
        return state_and_breadcrumbs

    async def delete(self, journey_key: str) -> bool:
        return await asyncio.to_thread(self._delete, journey_key)

    def _load(self, journey_key: str) -> Optional[StateAndBreadcrumbs]:
        with Session(self.engine) as db:
            statement = select(JourneyDBModel).where(
                JourneyDBModel.journey_key == journey_key
            )
            result = db.exec(statement).first()

            if not result:
                return None

            # Deserialize JSON back into the journey's state union
            return self.codec.decode(result.state)

    def _save(self, journey_key: str, state_and_breadcrumbs: StateAndBreadcrumbs):
        document = self.codec.encode(state_and_breadcrumbs)

        with Session(self.engine) as db:
            statement = select(JourneyDBModel).where(
                JourneyDBModel.journey_key == journey_key
            )
            result = db.exec(statement).first()

            if result:
                # Update the JSON blob and the timestamp
                result.state = document
                result.updated_at = datetime.now(timezone.utc)
            else:
                logger.debug(f"Creating journey row for key {journey_key}")
                result = JourneyDBModel(journey_key=journey_key, state=document)

            db.add(result)
            db.commit()

    def _delete(self, journey_key: str) -> bool:
        with Session(self.engine) as db:
            statement = select(JourneyDBModel).where(
                JourneyDBModel.journey_key == journey_key
            )
            result = db.exec(statement).first()

            if result:
                db.delete(result)
                db.commit()
                return True
            return False
