"""
Database Table Definitions.

This module defines the SQL schema using SQLModel.
We use the 'DBModel' suffix to distinguish these persistence models
from the journey model (StateAndBreadcrumbs).
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JourneyDBModel(SQLModel, table=True):
    """
    Persistence model for journeys.
    One row per journey key, holding the current state and its breadcrumbs.
    """

    __tablename__ = "journeys"

    journey_key: str = Field(primary_key=True, index=True)

    # The encoded StateAndBreadcrumbs pair, written as a whole (JSONB on Postgres).
    state: Dict[str, Any] = Field(
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    )

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
