"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation. Field names are
snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import List, Literal, Optional

from ..domain.models import (
    CamelModel,
    SessionStats,
    Ticket,
    TroubleshootingSession,
    TroubleshootingStep,
)
from ..state.models import (
    ChecklistOutcome,
    ChecklistOutcomeType,
    ConversationRequest,
    ConversationResult,
)

# The conversation envelopes are already API-shaped
ChatRequest = ConversationRequest
ChatResponse = ConversationResult


class ChecklistOutcomeRequest(CamelModel):
    user_id: str
    outcome: ChecklistOutcome


class ChecklistOutcomeResponse(CamelModel):
    response: str
    response_type: Literal["text"] = "text"
    outcome: ChecklistOutcomeType
    ticket_id: Optional[str] = None


class SessionRead(CamelModel):
    session: TroubleshootingSession
    steps: List[TroubleshootingStep]
    ticket: Optional[Ticket] = None


class UnresolvedSession(CamelModel):
    id: str
    issue_description: str
    matched_guide_title: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    ticket_id: Optional[str] = None


class AnalyticsResponse(CamelModel):
    summary: SessionStats
    unresolved_sessions: List[UnresolvedSession]
