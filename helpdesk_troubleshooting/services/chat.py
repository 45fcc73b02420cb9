"""
Chat Service - Application Orchestration Layer

This service is the entry point for all conversation operations. It loads
the user's conversation context, runs the flow manager under the user's
lock, and saves the context it gets back. Reporting reads (session detail,
analytics) go straight to the SessionStore.
"""

import logging
from typing import List, Optional

from ..domain.models import SessionStats, Ticket, TroubleshootingSession, TroubleshootingStep
from ..messages import text
from ..repositories.context import ConversationContextRepository
from ..repositories.session import SessionStore
from ..state.models import (
    ChecklistOutcome,
    ChecklistResult,
    ConversationContext,
    ConversationRequest,
    ConversationResult,
)
from .checklist import ChecklistService
from .exceptions import PersistenceError
from .flow import ConversationFlowManager
from .locks import KeyedLockRegistry

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        store: SessionStore,
        context_repository: ConversationContextRepository,
        flow_manager: ConversationFlowManager,
        checklist_service: ChecklistService,
        locks: Optional[KeyedLockRegistry] = None,
    ):
        self.store = store
        self.context_repo = context_repository
        self.flow_manager = flow_manager
        self.checklist_service = checklist_service
        self.locks = locks or KeyedLockRegistry()

    async def process_message(self, request: ConversationRequest) -> ConversationResult:
        """
        The Core Loop:
        1. Take the user's lock
        2. Load the stored context
        3. Run the flow manager
        4. Save the returned context
        """
        async with self.locks.lock(request.user_id):
            try:
                context = self._load_context(request)
            except PersistenceError as e:
                logger.error(f"Could not load context for user {request.user_id}: {e}")
                return ConversationResult(
                    response=text.ERROR_REPLY,
                    context=ConversationContext(user_id=request.user_id),
                )

            result = await self.flow_manager.process_message(request, context)

            try:
                self.context_repo.save(request.user_id, result.context)
            except PersistenceError as e:
                # The reply stands; the next message falls back to resuming
                # the open session from the store.
                logger.error(f"Could not save context for user {request.user_id}: {e}")

            return result

    async def submit_checklist_outcome(
        self, user_id: str, outcome: ChecklistOutcome
    ) -> ChecklistResult:
        try:
            session = self.store.get_session(outcome.session_id)
        except PersistenceError as e:
            logger.error(f"Could not look up session {outcome.session_id}: {e}")
            return ChecklistResult(
                response=text.CHECKLIST_FALLBACK_REPLIES[outcome.type], outcome=outcome.type
            )

        # Serialized with the owner's chat turns, whoever submits the form
        owner_id = session.user_id if session else user_id
        async with self.locks.lock(owner_id):
            return self.checklist_service.submit_outcome(outcome)

    def reset_conversation(self, user_id: str) -> bool:
        """Forgets the stored context. The session record is untouched."""
        return self.context_repo.delete(user_id)

    def get_session(self, session_id: str) -> Optional[TroubleshootingSession]:
        return self.store.get_session(session_id)

    def get_session_steps(self, session_id: str) -> List[TroubleshootingStep]:
        return self.store.list_steps(session_id)

    def get_session_ticket(self, session_id: str) -> Optional[Ticket]:
        return self.store.get_ticket_for_session(session_id)

    def get_stats(self) -> SessionStats:
        return self.store.get_session_stats()

    def get_unresolved_sessions(self) -> List[TroubleshootingSession]:
        return self.store.list_unresolved_sessions()

    def _load_context(self, request: ConversationRequest) -> Optional[ConversationContext]:
        context = self.context_repo.get(request.user_id)
        if context and request.session_id and context.session_id != request.session_id:
            # The client moved on to another session; the stored context is stale
            logger.info(
                f"Discarding context for session {context.session_id}; "
                f"request refers to {request.session_id}"
            )
            return None
        return context
