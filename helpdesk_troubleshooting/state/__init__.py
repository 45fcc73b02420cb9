"""
State Layer - Conversation Runtime Models

Defines the per-conversation context the flow manager threads through
each call, together with the request and result envelopes.
"""

from helpdesk_troubleshooting.state.models import (
    ChecklistForm,
    ChecklistOutcome,
    ChecklistResult,
    ChecklistStepRecord,
    ConversationContext,
    ConversationRequest,
    ConversationResult,
    ConversationState,
    UserResponse,
)

__all__ = [
    "ChecklistForm",
    "ChecklistOutcome",
    "ChecklistResult",
    "ChecklistStepRecord",
    "ConversationContext",
    "ConversationRequest",
    "ConversationResult",
    "ConversationState",
    "UserResponse",
]
