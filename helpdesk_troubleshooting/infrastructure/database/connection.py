"""
Database Connection Manager.

This module handles the low-level details of connecting to the database
(PostgreSQL in production, SQLite for local runs).
It exposes the SQLModel engine which will be used by the Repositories.
"""

from sqlalchemy.engine import Engine
from sqlmodel import create_engine, SQLModel
from ...config import settings

# Importing the tables registers them on SQLModel.metadata
from . import tables  # noqa: F401


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Requests are served from a thread pool
        connect_args["check_same_thread"] = False
    # echo=False in production to avoid leaking sensitive data in logs
    return create_engine(database_url, echo=False, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)


def init_db(bind: Engine = engine):
    """
    Idempotent initialization.
    Creates tables if they do not exist.
    Useful for local dev or simple deployments.
    """
    SQLModel.metadata.create_all(bind)
