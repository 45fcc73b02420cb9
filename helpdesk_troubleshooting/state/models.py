"""
State Layer - Conversation Runtime Models

This module defines the per-conversation state owned by the
ConversationFlowManager. A ConversationContext is treated as a value:
the manager receives one, and returns a new one with every reply, so a
single manager instance can serve any number of conversations.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from ..domain.models import CamelModel, GuideMatch, TroubleshootingSession


class ConversationState(str, Enum):
    """States of the troubleshooting dialogue."""

    INITIAL = "initial"
    GUIDE_CONFIRMATION = "guide_confirmation"
    # Step loop: a step has been presented and its result is awaited
    AWAITING_RESPONSE = "awaiting_response"

    # Terminal states
    RESOLVED = "resolved"
    ABANDONED = "abandoned"
    ESCALATION = "escalation"


TERMINAL_STATES = frozenset({
    ConversationState.RESOLVED,
    ConversationState.ABANDONED,
    ConversationState.ESCALATION,
})


class UserResponse(str, Enum):
    """Closed set of intents a user reply is mapped to."""

    YES = "yes"
    NO = "no"
    IT_WORKED = "it_worked"
    STILL_NOT_WORKING = "still_not_working"
    CANNOT_TRY_NOW = "cannot_try_now"


ResponseType = Literal["text", "guide_confirmation", "step_response"]


class ConversationContext(CamelModel):
    """
    Everything the flow manager needs to continue a conversation.

    Attributes:
        session_id: The TroubleshootingSession this conversation writes to.
        state: Current dialogue state.
        current_step: 1-based number of the step presented in the step loop.
        total_steps: Number of steps in the selected guide.
        matched_guides: Candidates from the search (top match first).
        selected_guide: The guide being walked through.
        awaiting_response_type: What kind of reply the last prompt asked for.
    """
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    state: ConversationState = ConversationState.INITIAL
    current_step: Optional[int] = None
    total_steps: Optional[int] = None
    matched_guides: List[GuideMatch] = Field(default_factory=list)
    selected_guide: Optional[GuideMatch] = None
    awaiting_response_type: Optional[Literal["guide_confirmation", "step_result"]] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class ConversationRequest(CamelModel):
    message: str
    user_id: str
    session_id: Optional[str] = None


class ConversationResult(CamelModel):
    response: str
    response_type: ResponseType = "text"
    context: ConversationContext
    session: Optional[TroubleshootingSession] = None


# --- Checklist mode ---

ChecklistOutcomeType = Literal["resolved", "not_resolved", "another_issue"]


class ChecklistForm(CamelModel):
    """A guide rendered as a tickable checklist (see services/checklist.py)."""
    title: str
    steps: List[str]


class ChecklistStepRecord(CamelModel):
    step_number: int
    step_text: str
    attempted: bool


class ChecklistOutcome(CamelModel):
    """
    One terminal verdict for a checklist, with the attempted flag of
    every step in the guide (not only the attempted ones).
    """
    session_id: str
    type: ChecklistOutcomeType
    steps: List[ChecklistStepRecord] = Field(default_factory=list)


class ChecklistResult(CamelModel):
    response: str
    outcome: ChecklistOutcomeType
    ticket_id: Optional[str] = None
