"""
Database Connection Manager.

This module handles the low-level details of connecting to the journey store.
It exposes the SQLModel engine which will be used by the SQL repository.
"""

from sqlmodel import create_engine, SQLModel
from ...config import settings

# SQLite connections are handed across threads by the repository
_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# echo=False in production to avoid leaking journey data in logs
engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=_connect_args)


def init_db(bind=None):
    """
    Idempotent initialization.
    Creates tables if they do not exist.
    Useful for local dev or simple deployments.
    """
    SQLModel.metadata.create_all(bind or engine)
