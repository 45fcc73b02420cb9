"""
Tests for Checklist Mode (marker protocol and outcome recording)
"""

from unittest.mock import MagicMock

import pytest

from helpdesk_troubleshooting.domain.models import GuideMatch, SessionCreate
from helpdesk_troubleshooting.messages import text
from helpdesk_troubleshooting.services.checklist import (
    parse_checklist_form,
    render_checklist_form,
)
from helpdesk_troubleshooting.services.exceptions import PersistenceError
from helpdesk_troubleshooting.state.models import ChecklistOutcome, ChecklistStepRecord

from tests.factories import MONITOR_NO_POWER_STEPS, TEST_USER_ID


@pytest.fixture
def session(store):
    return store.create_session(
        SessionCreate(
            user_id=TEST_USER_ID,
            issue_description="monitor has no power",
            matched_guide_title="Monitor No Power",
        )
    )


def outcome_for(session_id, outcome_type, attempted=(True, False, True)):
    return ChecklistOutcome(
        session_id=session_id,
        type=outcome_type,
        steps=[
            ChecklistStepRecord(step_number=number, step_text=step, attempted=tried)
            for number, (step, tried) in enumerate(zip(MONITOR_NO_POWER_STEPS, attempted), start=1)
        ],
    )


class TestChecklistForm:
    def test_rendered_form_parses_back(self):
        guide = GuideMatch(title="Monitor No Power", steps=MONITOR_NO_POWER_STEPS)

        form = parse_checklist_form(render_checklist_form(guide, heading="Here you go"))

        assert form.title == "Monitor No Power"
        assert form.steps == MONITOR_NO_POWER_STEPS

    def test_parses_block_embedded_in_reply(self):
        reply = (
            "Some intro text.\n"
            "CHECKLIST_FORM_START\n"
            "  TITLE: Printer Not Printing  \n"
            "\n"
            "STEP: Check the printer is on.\n"
            "STEP: Clear the queue.\n"
            "CHECKLIST_FORM_END\n"
            "Trailing text."
        )

        form = parse_checklist_form(reply)

        assert form.title == "Printer Not Printing"
        assert form.steps == ["Check the printer is on.", "Clear the queue."]

    @pytest.mark.parametrize("reply", [
        "TITLE: x\nSTEP: y",
        "CHECKLIST_FORM_START\nSTEP: Check the cable.\nCHECKLIST_FORM_END",
        "CHECKLIST_FORM_START\nTITLE: Monitor No Power\nCHECKLIST_FORM_END",
        "CHECKLIST_FORM_END\nTITLE: x\nSTEP: y\nCHECKLIST_FORM_START",
    ])
    def test_incomplete_blocks_are_not_checklists(self, reply):
        assert parse_checklist_form(reply) is None


class TestSubmitOutcome:
    def test_resolved(self, checklist_service, store, session):
        result = checklist_service.submit_outcome(outcome_for(session.id, "resolved"))

        assert result.response == text.CHECKLIST_RESOLVED_REPLY
        assert result.ticket_id is None

        updated = store.get_session(session.id)
        assert updated.resolved
        assert updated.completed_at is not None

        steps = store.list_steps(session.id)
        assert [s.attempted for s in steps] == [True, False, True]
        assert [s.resolved_issue for s in steps] == [True, False, True]
        assert store.get_ticket_for_session(session.id) is None

    def test_not_resolved_opens_ticket(self, checklist_service, store, session):
        result = checklist_service.submit_outcome(outcome_for(session.id, "not_resolved"))

        ticket = store.get_ticket_for_session(session.id)
        assert ticket is not None
        assert result.ticket_id == ticket.id
        assert ticket.id in result.response

        updated = store.get_session(session.id)
        assert not updated.resolved
        assert updated.completed_at is not None
        assert not any(s.resolved_issue for s in store.list_steps(session.id))

    def test_another_issue_marks_misclassified(self, checklist_service, store, session):
        result = checklist_service.submit_outcome(outcome_for(session.id, "another_issue"))

        assert result.response == text.CHECKLIST_ANOTHER_ISSUE_REPLY
        updated = store.get_session(session.id)
        assert updated.abandoned
        assert updated.misclassified
        assert not updated.resolved
        assert store.get_ticket_for_session(session.id) is None

    def test_unknown_session_writes_nothing(self, checklist_service, store):
        result = checklist_service.submit_outcome(outcome_for("missing", "not_resolved"))

        assert result.response == text.CHECKLIST_FALLBACK_REPLIES["not_resolved"]
        assert result.ticket_id is None
        assert store.list_steps("missing") == []

    def test_resubmission_is_a_no_op(self, checklist_service, store, session):
        first = checklist_service.submit_outcome(outcome_for(session.id, "not_resolved"))
        second = checklist_service.submit_outcome(outcome_for(session.id, "not_resolved"))

        assert second.ticket_id == first.ticket_id
        assert second.response.startswith(text.CHECKLIST_ALREADY_CLOSED_REPLY)
        assert len(store.list_steps(session.id)) == 3
        assert store._ticketed_session_ids() == {session.id}

    def test_ticket_failure_degrades_reply(self, checklist_service, store, session, monkeypatch):
        monkeypatch.setattr(store, "create_ticket", MagicMock(side_effect=PersistenceError("down")))

        result = checklist_service.submit_outcome(outcome_for(session.id, "not_resolved"))

        assert result.response == text.CHECKLIST_FALLBACK_REPLIES["not_resolved"]
        assert result.ticket_id is None
        assert store.get_session(session.id).completed_at is not None
