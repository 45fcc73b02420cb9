"""
Tests for ChatService (context handling and per-user serialization)
"""

import asyncio

from unittest.mock import MagicMock

from helpdesk_troubleshooting.domain.models import SessionCreate
from helpdesk_troubleshooting.messages import text
from helpdesk_troubleshooting.services.chat import ChatService
from helpdesk_troubleshooting.services.exceptions import PersistenceError
from helpdesk_troubleshooting.services.locks import KeyedLockRegistry
from helpdesk_troubleshooting.state.models import (
    ChecklistOutcome,
    ConversationContext,
    ConversationResult,
    ConversationState,
)

from tests.factories import TEST_USER_ID, message


class RecordingFlow:
    """Flow manager double that tracks how many calls overlap."""

    def __init__(self):
        self.active = 0
        self.max_active = 0
        self.seen_contexts = []

    async def process_message(self, request, context=None):
        self.seen_contexts.append(context)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return ConversationResult(
            response="ok", context=ConversationContext(user_id=request.user_id)
        )


def service_with(flow, store, context_repository):
    return ChatService(
        store=store,
        context_repository=context_repository,
        flow_manager=flow,
        checklist_service=MagicMock(),
    )


class TestConversationContext:
    async def test_context_is_saved_between_messages(self, chat_service, context_repository):
        first = await chat_service.process_message(message("My monitor won't turn on"))

        assert context_repository.get(TEST_USER_ID) == first.context

        second = await chat_service.process_message(message("yes"))

        assert second.context.state == ConversationState.AWAITING_RESPONSE
        assert second.context.session_id == first.context.session_id

    async def test_mismatched_session_id_discards_stored_context(self, store, context_repository):
        flow = RecordingFlow()
        context_repository.save(TEST_USER_ID, ConversationContext(session_id="old", user_id=TEST_USER_ID))
        service = service_with(flow, store, context_repository)

        await service.process_message(message("hello", session_id="new"))
        await service.process_message(message("hello", session_id=None))

        assert flow.seen_contexts[0] is None
        assert flow.seen_contexts[1] is not None

    async def test_context_save_failure_keeps_reply(self, chat_service, context_repository, monkeypatch):
        monkeypatch.setattr(
            context_repository, "save", MagicMock(side_effect=PersistenceError("down"))
        )

        result = await chat_service.process_message(message("My monitor won't turn on"))

        assert result.response_type == "guide_confirmation"

    async def test_context_load_failure_returns_error_reply(self, store, context_repository, monkeypatch):
        flow = RecordingFlow()
        service = service_with(flow, store, context_repository)
        monkeypatch.setattr(
            context_repository, "get", MagicMock(side_effect=PersistenceError("down"))
        )

        result = await service.process_message(message("My monitor won't turn on"))

        assert result.response == text.ERROR_REPLY
        assert result.context.user_id == TEST_USER_ID
        assert flow.seen_contexts == []

    async def test_reset_conversation(self, chat_service, context_repository):
        await chat_service.process_message(message("My monitor won't turn on"))

        assert chat_service.reset_conversation(TEST_USER_ID) is True
        assert context_repository.get(TEST_USER_ID) is None
        assert chat_service.reset_conversation(TEST_USER_ID) is False


class TestSerialization:
    async def test_messages_from_one_user_never_overlap(self, store, context_repository):
        flow = RecordingFlow()
        service = service_with(flow, store, context_repository)

        await asyncio.gather(*(service.process_message(message(f"m{i}")) for i in range(5)))

        assert flow.max_active == 1

    async def test_different_users_run_concurrently(self, store, context_repository):
        flow = RecordingFlow()
        service = service_with(flow, store, context_repository)

        await asyncio.gather(
            service.process_message(message("a", user_id="alice")),
            service.process_message(message("b", user_id="bob")),
        )

        assert flow.max_active == 2

    async def test_checklist_outcome_goes_through_service(self, store, context_repository):
        checklist_service = MagicMock()
        service = ChatService(
            store=store,
            context_repository=context_repository,
            flow_manager=RecordingFlow(),
            checklist_service=checklist_service,
        )
        outcome = ChecklistOutcome(session_id="s-1", type="resolved")

        await service.submit_checklist_outcome(TEST_USER_ID, outcome)

        checklist_service.submit_outcome.assert_called_once_with(outcome)

    async def test_checklist_outcome_waits_for_session_owner(self, store, context_repository):
        session = store.create_session(
            SessionCreate(
                user_id=TEST_USER_ID,
                issue_description="monitor has no power",
                matched_guide_title="Monitor No Power",
            )
        )
        service = service_with(RecordingFlow(), store, context_repository)
        outcome = ChecklistOutcome(session_id=session.id, type="resolved")
        owner_lock = service.locks.lock(TEST_USER_ID)
        await owner_lock.acquire()

        task = asyncio.create_task(service.submit_checklist_outcome("someone-else", outcome))
        await asyncio.sleep(0.01)

        assert not task.done()
        service.checklist_service.submit_outcome.assert_not_called()

        owner_lock.release()
        await task

        service.checklist_service.submit_outcome.assert_called_once_with(outcome)

    async def test_checklist_session_lookup_failure_returns_fallback(
        self, store, context_repository, monkeypatch
    ):
        service = service_with(RecordingFlow(), store, context_repository)
        monkeypatch.setattr(store, "get_session", MagicMock(side_effect=PersistenceError("down")))
        outcome = ChecklistOutcome(session_id="s-1", type="not_resolved")

        result = await service.submit_checklist_outcome(TEST_USER_ID, outcome)

        assert result.response == text.CHECKLIST_FALLBACK_REPLIES["not_resolved"]
        assert result.outcome == "not_resolved"
        service.checklist_service.submit_outcome.assert_not_called()


class TestKeyedLockRegistry:
    def test_same_key_shares_a_lock(self):
        registry = KeyedLockRegistry()
        lock = registry.lock("alice")

        assert registry.lock("alice") is lock
        assert registry.lock("bob") is not lock

    def test_unreferenced_locks_are_released(self):
        registry = KeyedLockRegistry()
        registry.lock("alice")

        assert len(registry) == 0
