"""
Database Table Definitions.

This module defines the SQL schema using SQLModel.
We use the 'DBModel' suffix to distinguish these persistence models
from the Pydantic domain models (TroubleshootingSession, ConversationContext).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONDocument = JSON().with_variant(JSONB, "postgresql")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserDBModel(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True)
    name: str
    phone_number: str = ""
    email: str = ""
    created_at: datetime = Field(default_factory=_utc_now)


class SessionDBModel(SQLModel, table=True):
    """
    Persistence model for Troubleshooting Sessions.
    Maps 1-to-1 with the 'troubleshooting_sessions' table.
    """

    __tablename__ = "troubleshooting_sessions"

    id: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    issue_description: str
    matched_guide_title: str

    resolved: bool = False
    abandoned: bool = False
    misclassified: bool = False
    early_exit: bool = False

    started_at: datetime = Field(default_factory=_utc_now)
    completed_at: Optional[datetime] = None
    current_step_number: Optional[int] = 0


class StepDBModel(SQLModel, table=True):
    __tablename__ = "troubleshooting_steps"

    id: str = Field(primary_key=True)
    session_id: str = Field(foreign_key="troubleshooting_sessions.id", index=True)
    step_number: int
    step_text: str
    attempted: bool
    resolved_issue: bool = False
    responded_at: datetime = Field(default_factory=_utc_now)


class TicketDBModel(SQLModel, table=True):
    __tablename__ = "tickets"

    id: str = Field(primary_key=True)
    # At most one ticket per session.
    session_id: str = Field(foreign_key="troubleshooting_sessions.id", unique=True)
    matched_guide_title: str
    created_at: datetime = Field(default_factory=_utc_now)


class ContextDBModel(SQLModel, table=True):
    """
    Latest ConversationContext per user.
    The whole context is stored as one JSON document, like a session snapshot.
    """

    __tablename__ = "conversation_contexts"

    user_id: str = Field(primary_key=True)
    context: Dict[str, Any] = Field(sa_column=Column(JSONDocument, nullable=False))
    updated_at: datetime = Field(default_factory=_utc_now)


class GuideDocumentDBModel(SQLModel, table=True):
    """
    Indexed guide passages for the vector guide backend.
    The embedding is stored next to the passage it was computed from.
    """

    __tablename__ = "guide_documents"

    title: str = Field(primary_key=True)
    category: Optional[str] = None
    content: str
    embedding: List[float] = Field(sa_column=Column(JSONDocument, nullable=False))
    updated_at: datetime = Field(default_factory=_utc_now)
