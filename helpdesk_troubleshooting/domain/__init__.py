"""
Domain Layer - Helpdesk Records

Defines the persisted helpdesk records (User, TroubleshootingSession,
TroubleshootingStep, Ticket) and the transient GuideMatch candidate.
"""

from helpdesk_troubleshooting.domain.models import (
    GuideDocument,
    GuideMatch,
    SessionCreate,
    SessionStats,
    SessionUpdate,
    StepCreate,
    Ticket,
    TicketCreate,
    TroubleshootingSession,
    TroubleshootingStep,
    User,
)
from helpdesk_troubleshooting.domain.rules import KeywordRule, first_match

__all__ = [
    "GuideDocument",
    "GuideMatch",
    "KeywordRule",
    "SessionCreate",
    "SessionStats",
    "SessionUpdate",
    "StepCreate",
    "Ticket",
    "TicketCreate",
    "TroubleshootingSession",
    "TroubleshootingStep",
    "User",
    "first_match",
]
