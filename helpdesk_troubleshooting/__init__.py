"""
Helpdesk Troubleshooting Assistant

A conversational hardware troubleshooting assistant: keyword scope
classification, guide retrieval, and a step-by-step state machine that
records every outcome as sessions, steps and tickets.
"""

from helpdesk_troubleshooting.domain import (
    GuideMatch,
    Ticket,
    TroubleshootingSession,
    TroubleshootingStep,
    User,
)
from helpdesk_troubleshooting.state import (
    ChecklistOutcome,
    ConversationContext,
    ConversationRequest,
    ConversationResult,
    ConversationState,
    UserResponse,
)
from helpdesk_troubleshooting.services.flow import ConversationFlowManager
from helpdesk_troubleshooting.services.checklist import ChecklistService

__all__ = [
    # Domain Layer
    "GuideMatch",
    "Ticket",
    "TroubleshootingSession",
    "TroubleshootingStep",
    "User",
    # State Layer
    "ChecklistOutcome",
    "ConversationContext",
    "ConversationRequest",
    "ConversationResult",
    "ConversationState",
    "UserResponse",
    # Services
    "ChecklistService",
    "ConversationFlowManager",
]
