"""
Domain Layer - Helpdesk Records

This module defines the records the helpdesk keeps about a troubleshooting
attempt (Users, Sessions, Steps, Tickets) and the transient GuideMatch
candidates produced by guide retrieval.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for models exchanged with the presentation layer (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GuideMatch(CamelModel):
    """
    A troubleshooting guide candidate returned by the guide search.

    Not persisted. The flow manager treats the first candidate as the top
    match and the next two as alternatives to offer the user.

    Attributes:
        title: Guide title taken from the retrieved document metadata.
        steps: Ordered step texts, without any "Step N:" prefix.
        relevance_score: Backend similarity score, if the backend reports one.
        category: Guide category from the document metadata.
    """
    title: str
    steps: List[str] = Field(default_factory=list)
    relevance_score: Optional[float] = None
    category: Optional[str] = None


class User(CamelModel):
    """
    A helpdesk user. Created lazily the first time a session is opened
    for an unknown user id and never modified afterwards.
    """
    id: str
    name: str
    phone_number: str = ""
    email: str = ""
    created_at: datetime = Field(default_factory=utc_now)


class TroubleshootingSession(CamelModel):
    """
    One user's attempt to resolve one issue with one guide.

    Attributes:
        issue_description: The first in-scope message that opened the session.
        matched_guide_title: Title of the guide currently selected.
        resolved: The user reported the issue fixed.
        abandoned: The user stopped (could not try now, or another issue).
        misclassified: The user reported that the guide did not match the issue.
        early_exit: The session was closed before any outcome was recorded.
        completed_at: Set when the session reaches a terminal outcome.
        current_step_number: The step last presented in the sequential flow
            (0 until the guide is confirmed).
    """
    id: str
    user_id: str
    issue_description: str
    matched_guide_title: str
    resolved: bool = False
    abandoned: bool = False
    misclassified: bool = False
    early_exit: bool = False
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    current_step_number: Optional[int] = 0

    @property
    def is_active(self) -> bool:
        # Escalated sessions carry neither flag, completed_at closes them.
        return (
            not self.resolved
            and not self.abandoned
            and not self.early_exit
            and self.completed_at is None
        )


class TroubleshootingStep(CamelModel):
    """A step the user acted on. Append-only, ordered by step_number."""
    id: str
    session_id: str
    step_number: int
    step_text: str
    attempted: bool
    resolved_issue: bool = False
    responded_at: datetime = Field(default_factory=utc_now)


class Ticket(CamelModel):
    """Service desk ticket opened for a session that was not resolved."""
    id: str
    session_id: str
    matched_guide_title: str
    created_at: datetime = Field(default_factory=utc_now)


# --- Write models ---

class SessionCreate(BaseModel):
    user_id: str
    issue_description: str
    matched_guide_title: str


class SessionUpdate(BaseModel):
    """
    Partial update for a session. Only fields explicitly set are merged,
    so transitions that touch disjoint fields never overwrite each other.
    """
    resolved: Optional[bool] = None
    abandoned: Optional[bool] = None
    misclassified: Optional[bool] = None
    early_exit: Optional[bool] = None
    completed_at: Optional[datetime] = None
    current_step_number: Optional[int] = None
    matched_guide_title: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class StepCreate(BaseModel):
    session_id: str
    step_number: int
    step_text: str
    attempted: bool
    resolved_issue: bool = False


class TicketCreate(BaseModel):
    session_id: str
    matched_guide_title: str


class SessionStats(CamelModel):
    total: int = 0
    resolved: int = 0
    escalated: int = 0
    abandoned: int = 0
    misclassified: int = 0
    success_rate: float = 0.0
    average_steps_to_resolution: float = 0.0


class GuideDocument(BaseModel):
    """
    A troubleshooting guide as stored in the document corpus.

    `to_text()` renders the passage the retrieval backend indexes and
    returns: metadata header lines followed by "Step N:" lines.
    """
    title: str
    category: str
    description: str
    steps: List[str] = Field(default_factory=list)

    def to_text(self) -> str:
        lines = [
            f"TITLE: {self.title}",
            f"CATEGORY: {self.category}",
            f"DESCRIPTION: {self.description}",
            "TROUBLESHOOTING_STEPS:",
        ]
        lines += [f"Step {n}: {text}" for n, text in enumerate(self.steps, start=1)]
        return "\n".join(lines)
