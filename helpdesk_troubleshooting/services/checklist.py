"""
Checklist Mode.

An alternative to the one-step-at-a-time loop: the user sees every step
of the guide at once, ticks the ones they tried and submits a single
outcome. This module owns both halves of that exchange:

1. The marker protocol embedded in a reply, which the chat UI turns into
   a checklist widget:

       CHECKLIST_FORM_START
       TITLE: <guide title>
       STEP: <step text>
       ...
       CHECKLIST_FORM_END

2. Recording the submitted outcome against the same SessionStore the
   sequential flow writes to.
"""

import logging
from typing import Optional

from ..domain.models import GuideMatch, SessionUpdate, StepCreate, TicketCreate, utc_now
from ..messages import Template, render
from ..messages import text
from ..repositories.session import SessionStore
from ..state.models import ChecklistForm, ChecklistOutcome, ChecklistResult
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

FORM_START = "CHECKLIST_FORM_START"
FORM_END = "CHECKLIST_FORM_END"
TITLE_PREFIX = "TITLE:"
STEP_PREFIX = "STEP:"


def render_checklist_form(guide: GuideMatch, heading: Optional[str] = None) -> str:
    return render(
        Template.CHECKLIST_FORM,
        heading=heading,
        title=guide.title,
        steps=guide.steps,
    )


def parse_checklist_form(reply: str) -> Optional[ChecklistForm]:
    """
    Extracts the checklist embedded in a reply.

    Returns None when the markers are missing or out of order, or when the
    block has no title or no steps.
    """
    if FORM_START not in reply or FORM_END not in reply:
        return None

    start = reply.index(FORM_START) + len(FORM_START)
    end = reply.index(FORM_END)
    if start >= end:
        return None

    title = ""
    steps = []
    for line in reply[start:end].splitlines():
        line = line.strip()
        if line.startswith(TITLE_PREFIX):
            title = line[len(TITLE_PREFIX):].strip()
        elif line.startswith(STEP_PREFIX):
            steps.append(line[len(STEP_PREFIX):].strip())

    if not title or not steps:
        return None
    return ChecklistForm(title=title, steps=steps)


class ChecklistService:
    def __init__(self, store: SessionStore):
        self.store = store

    def submit_outcome(self, outcome: ChecklistOutcome) -> ChecklistResult:
        """
        Records a checklist verdict: one step record per guide step, then
        the session outcome (and a ticket for `not_resolved`).

        Unknown sessions get a generic reply and nothing is written. A
        session that is already closed is left untouched, so resubmitting
        never opens a second ticket.
        """
        session = self.store.get_session(outcome.session_id)
        if not session:
            logger.warning(f"Checklist outcome for unknown session {outcome.session_id}")
            return ChecklistResult(
                response=text.CHECKLIST_FALLBACK_REPLIES[outcome.type],
                outcome=outcome.type,
            )

        if not session.is_active:
            logger.info(
                f"Ignoring '{outcome.type}' outcome for closed session {session.id}"
            )
            ticket = self.store.get_ticket_for_session(session.id)
            response = text.CHECKLIST_ALREADY_CLOSED_REPLY
            if ticket:
                response += " " + text.TICKET_REFERENCE.format(ticket_id=ticket.id)
            return ChecklistResult(
                response=response,
                outcome=outcome.type,
                ticket_id=ticket.id if ticket else None,
            )

        try:
            return self._record(session.id, session.matched_guide_title, outcome)
        except PersistenceError as e:
            logger.error(
                f"Recording '{outcome.type}' checklist outcome for session {session.id} failed: {e}"
            )
            return ChecklistResult(
                response=text.CHECKLIST_FALLBACK_REPLIES[outcome.type],
                outcome=outcome.type,
            )

    def _record(
        self, session_id: str, guide_title: str, outcome: ChecklistOutcome
    ) -> ChecklistResult:
        if outcome.steps:
            self.store.create_steps(
                session_id,
                [
                    StepCreate(
                        session_id=session_id,
                        step_number=step.step_number,
                        step_text=step.step_text,
                        attempted=step.attempted,
                        resolved_issue=outcome.type == "resolved" and step.attempted,
                    )
                    for step in outcome.steps
                ],
            )

        now = utc_now()

        if outcome.type == "resolved":
            self.store.update_session(
                session_id, SessionUpdate(resolved=True, completed_at=now)
            )
            return ChecklistResult(response=text.CHECKLIST_RESOLVED_REPLY, outcome="resolved")

        if outcome.type == "another_issue":
            self.store.update_session(
                session_id,
                SessionUpdate(abandoned=True, misclassified=True, completed_at=now),
            )
            return ChecklistResult(
                response=text.CHECKLIST_ANOTHER_ISSUE_REPLY, outcome="another_issue"
            )

        # not_resolved
        self.store.update_session(
            session_id, SessionUpdate(resolved=False, completed_at=now)
        )
        try:
            ticket = self.store.create_ticket(
                TicketCreate(session_id=session_id, matched_guide_title=guide_title)
            )
        except PersistenceError as e:
            logger.error(f"Ticket creation failed for session {session_id}: {e}")
            return ChecklistResult(
                response=text.CHECKLIST_FALLBACK_REPLIES["not_resolved"],
                outcome="not_resolved",
            )

        logger.info(f"Opened ticket {ticket.id} for session {session_id}")
        return ChecklistResult(
            response=text.CHECKLIST_TICKET_REPLY.format(ticket_id=ticket.id),
            outcome="not_resolved",
            ticket_id=ticket.id,
        )
