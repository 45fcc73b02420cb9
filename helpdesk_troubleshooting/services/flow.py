"""
Conversation Flow Manager - the troubleshooting state machine.

One call to `process_message` handles one user message:

    initial -> guide_confirmation -> awaiting_response -> resolved | abandoned | escalation

The manager holds no per-conversation state. It receives the caller's
ConversationContext and returns the next one inside the result, writing
the durable record (sessions, steps, tickets) through the SessionStore.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..classification import ResponseParser, ScopeClassifier
from ..domain.models import (
    GuideMatch,
    SessionCreate,
    SessionUpdate,
    StepCreate,
    TicketCreate,
    TroubleshootingSession,
    utc_now,
)
from ..messages import Template, render
from ..messages import text
from ..repositories.session import SessionStore
from ..state.models import (
    ConversationContext,
    ConversationRequest,
    ConversationResult,
    ConversationState,
    UserResponse,
)
from .checklist import render_checklist_form
from .exceptions import InvalidSessionStateError, PersistenceError, SessionNotFoundError
from .guide_search import GuideSearchAdapter

logger = logging.getLogger(__name__)

# Alternatives offered next to the top match
MAX_ALTERNATIVES = 2

CHOICE_PATTERN = re.compile(r"^\s*(\d+)\s*[.)]?\s*$")
NONE_PATTERN = re.compile(r"(?<!\w)none(?!\w)", re.IGNORECASE)
CHECKLIST_PATTERN = re.compile(r"(?<!\w)checklist(?!\w)", re.IGNORECASE)


class ConversationFlowManager:
    def __init__(
        self,
        store: SessionStore,
        guide_search: GuideSearchAdapter,
        scope_classifier: Optional[ScopeClassifier] = None,
        response_parser: Optional[ResponseParser] = None,
    ):
        self.store = store
        self.guide_search = guide_search
        self.scope_classifier = scope_classifier or ScopeClassifier()
        self.response_parser = response_parser or ResponseParser()

    async def process_message(
        self,
        request: ConversationRequest,
        context: Optional[ConversationContext] = None,
    ) -> ConversationResult:
        """
        Advances the conversation by one user message.

        An inconsistent context (e.g. a step loop without a selected guide)
        restarts the conversation. A failed write aborts the message and
        leaves the caller's context as it was.
        """
        incoming = context or ConversationContext(user_id=request.user_id)
        try:
            current = self._refresh(incoming, request.user_id)
            if current.state == ConversationState.INITIAL:
                return await self._handle_initial(request, current)
            if current.state == ConversationState.GUIDE_CONFIRMATION:
                return await self._handle_guide_confirmation(request, current)
            if current.state == ConversationState.AWAITING_RESPONSE:
                return self._handle_step_response(request, current)
            raise InvalidSessionStateError(f"Unhandled state '{current.state.value}'")

        except (InvalidSessionStateError, SessionNotFoundError) as e:
            logger.error(
                f"Invalid conversation state (session={incoming.session_id}, "
                f"state={incoming.state.value}, message='{request.message}'): {e}"
            )
            return ConversationResult(
                response=text.START_OVER_REPLY,
                context=ConversationContext(user_id=request.user_id),
            )
        except PersistenceError as e:
            logger.error(
                f"Persistence failure (session={incoming.session_id}, "
                f"state={incoming.state.value}, message='{request.message}'): {e}"
            )
            return ConversationResult(response=text.ERROR_REPLY, context=incoming)

    # --- State handlers ---

    async def _handle_initial(
        self, request: ConversationRequest, context: ConversationContext
    ) -> ConversationResult:
        active = self.store.get_active_session_for_user(request.user_id)
        if active:
            resumed = await self._resume(active, request.user_id)
            if resumed:
                return resumed

        message = request.message
        if not self.scope_classifier.is_in_scope(message):
            logger.info(f"Out-of-scope message from user {request.user_id}: '{message}'")
            return ConversationResult(
                response=text.OUT_OF_SCOPE_REPLY,
                context=ConversationContext(user_id=request.user_id),
            )

        guides = await self.guide_search.search(message)
        if not guides:
            return ConversationResult(
                response=text.NO_GUIDES_REPLY,
                context=ConversationContext(user_id=request.user_id),
            )

        top = guides[0]
        session = self.store.create_session(
            SessionCreate(
                user_id=request.user_id,
                issue_description=message,
                matched_guide_title=top.title,
            )
        )
        logger.info(f"Session {session.id} opened with guide '{top.title}'")

        next_context = ConversationContext(
            session_id=session.id,
            user_id=request.user_id,
            state=ConversationState.GUIDE_CONFIRMATION,
            matched_guides=guides,
            selected_guide=top,
            awaiting_response_type="guide_confirmation",
        )
        return ConversationResult(
            response=self._render_confirmation(top, guides),
            response_type="guide_confirmation",
            context=next_context,
            session=session,
        )

    async def _handle_guide_confirmation(
        self, request: ConversationRequest, context: ConversationContext
    ) -> ConversationResult:
        if not context.session_id or not context.selected_guide:
            raise InvalidSessionStateError("Guide confirmation without a selected guide")

        message = request.message
        reply = self.response_parser.match(message)

        if reply == UserResponse.YES:
            return self._start_steps(context, context.selected_guide)

        if reply == UserResponse.NO:
            alternatives = self._alternatives(context.matched_guides)
            if alternatives:
                return ConversationResult(
                    response=render(Template.GUIDE_ALTERNATIVES, alternatives=alternatives),
                    response_type="guide_confirmation",
                    context=context,
                )
            return self._reject_guide(context, text.NO_ALTERNATIVES_REPLY)

        choice = self._parse_choice(message, context.matched_guides)
        if choice is not None:
            guide = context.matched_guides[choice]
            self.store.update_session(
                context.session_id, SessionUpdate(matched_guide_title=guide.title)
            )
            logger.info(f"Session {context.session_id} switched to guide '{guide.title}'")
            return self._start_steps(context, guide)

        if NONE_PATTERN.search(message):
            return self._reject_guide(context, text.GUIDE_REJECTED_REPLY)

        if CHECKLIST_PATTERN.search(message):
            guide = context.selected_guide
            return ConversationResult(
                response=render_checklist_form(
                    guide, heading=text.CHECKLIST_HEADING.format(title=guide.title)
                ),
                response_type="guide_confirmation",
                context=context,
            )

        return ConversationResult(
            response=text.CONFIRMATION_REPROMPT,
            response_type="guide_confirmation",
            context=context,
        )

    def _handle_step_response(
        self, request: ConversationRequest, context: ConversationContext
    ) -> ConversationResult:
        guide, step_number = self._current_step(context)
        reply = self.response_parser.parse(request.message)

        if reply in (UserResponse.YES, UserResponse.NO):
            return ConversationResult(
                response=text.STEP_REPROMPT,
                response_type="step_response",
                context=context,
            )

        self.store.create_step(
            StepCreate(
                session_id=context.session_id,
                step_number=step_number,
                step_text=guide.steps[step_number - 1],
                attempted=True,
                resolved_issue=reply == UserResponse.IT_WORKED,
            )
        )

        if reply == UserResponse.IT_WORKED:
            session = self.store.update_session(
                context.session_id, SessionUpdate(resolved=True, completed_at=utc_now())
            )
            logger.info(f"Session {session.id} resolved at step {step_number}")
            return ConversationResult(
                response=text.RESOLVED_REPLY,
                context=self._close(context, ConversationState.RESOLVED),
                session=session,
            )

        if reply == UserResponse.CANNOT_TRY_NOW:
            session = self.store.update_session(
                context.session_id, SessionUpdate(abandoned=True)
            )
            logger.info(f"Session {session.id} abandoned at step {step_number}")
            return ConversationResult(
                response=text.ABANDONED_REPLY,
                context=self._close(context, ConversationState.ABANDONED),
                session=session,
            )

        next_number = step_number + 1
        if next_number > len(guide.steps):
            return self._escalate(context, guide)

        self.store.update_session(
            context.session_id, SessionUpdate(current_step_number=next_number)
        )
        return ConversationResult(
            response=self._render_step(guide, next_number),
            response_type="step_response",
            context=context.model_copy(update={"current_step": next_number}),
        )

    # --- Transitions ---

    async def _resume(
        self, session: TroubleshootingSession, user_id: str
    ) -> Optional[ConversationResult]:
        """
        Picks an open session back up where it stopped. If its guide can no
        longer be found, the session is closed and None is returned so the
        message is treated as a new issue.
        """
        guides = await self.guide_search.search(session.issue_description)
        guide = next((g for g in guides if g.title == session.matched_guide_title), None)

        if guide is None:
            logger.warning(
                f"Guide '{session.matched_guide_title}' for session {session.id} "
                f"could not be reloaded; closing the session"
            )
            self.store.update_session(
                session.id, SessionUpdate(early_exit=True, completed_at=utc_now())
            )
            return None

        logger.info(f"Resuming session {session.id} at step {session.current_step_number}")
        candidates = [guide] + [g for g in guides if g is not guide]

        step_number = session.current_step_number or 0
        if step_number < 1:
            resumed_context = ConversationContext(
                session_id=session.id,
                user_id=user_id,
                state=ConversationState.GUIDE_CONFIRMATION,
                matched_guides=candidates,
                selected_guide=guide,
                awaiting_response_type="guide_confirmation",
            )
            response = (
                text.RESUME_HEADING.format(title=guide.title)
                + "\n\n"
                + self._render_confirmation(guide, candidates)
            )
            return ConversationResult(
                response=response,
                response_type="guide_confirmation",
                context=resumed_context,
                session=session,
            )

        step_number = min(step_number, len(guide.steps))
        resumed_context = ConversationContext(
            session_id=session.id,
            user_id=user_id,
            state=ConversationState.AWAITING_RESPONSE,
            current_step=step_number,
            total_steps=len(guide.steps),
            matched_guides=candidates,
            selected_guide=guide,
            awaiting_response_type="step_result",
        )
        return ConversationResult(
            response=self._render_step(
                guide, step_number, heading=text.RESUME_HEADING.format(title=guide.title)
            ),
            response_type="step_response",
            context=resumed_context,
            session=session,
        )

    def _start_steps(self, context: ConversationContext, guide: GuideMatch) -> ConversationResult:
        if not guide.steps:
            raise InvalidSessionStateError(f"Guide '{guide.title}' has no steps")

        self.store.update_session(context.session_id, SessionUpdate(current_step_number=1))
        next_context = context.model_copy(
            update={
                "state": ConversationState.AWAITING_RESPONSE,
                "selected_guide": guide,
                "current_step": 1,
                "total_steps": len(guide.steps),
                "awaiting_response_type": "step_result",
            }
        )
        return ConversationResult(
            response=self._render_step(
                guide, 1, heading=text.GUIDE_INTRO_HEADING.format(title=guide.title)
            ),
            response_type="step_response",
            context=next_context,
        )

    def _escalate(self, context: ConversationContext, guide: GuideMatch) -> ConversationResult:
        """All steps failed: open a ticket and close the session."""
        response = text.ESCALATION_REPLY
        try:
            ticket = self.store.create_ticket(
                TicketCreate(session_id=context.session_id, matched_guide_title=guide.title)
            )
            response += " " + text.TICKET_REFERENCE.format(ticket_id=ticket.id)
            logger.info(f"Opened ticket {ticket.id} for session {context.session_id}")
        except PersistenceError as e:
            logger.error(f"Ticket creation failed for session {context.session_id}: {e}")

        session = self.store.update_session(
            context.session_id, SessionUpdate(completed_at=utc_now())
        )
        return ConversationResult(
            response=response,
            context=self._close(context, ConversationState.ESCALATION),
            session=session,
        )

    def _reject_guide(self, context: ConversationContext, response: str) -> ConversationResult:
        self.store.update_session(
            context.session_id,
            SessionUpdate(early_exit=True, misclassified=True, completed_at=utc_now()),
        )
        logger.info(f"Guide rejected for session {context.session_id}")
        return ConversationResult(
            response=response,
            context=ConversationContext(user_id=context.user_id),
        )

    # --- Helpers ---

    def _refresh(self, context: ConversationContext, user_id: str) -> ConversationContext:
        """
        Drops contexts that can no longer continue: terminal ones, and those
        whose session was closed or removed behind the conversation's back.
        """
        if context.is_terminal:
            return ConversationContext(user_id=user_id)

        if context.state != ConversationState.INITIAL:
            if not context.session_id:
                raise InvalidSessionStateError(
                    f"State '{context.state.value}' without a session"
                )
            session = self.store.get_session(context.session_id)
            if not session or not session.is_active:
                logger.info(f"Session {context.session_id} is closed; starting over")
                return ConversationContext(user_id=user_id)

        if context.user_id != user_id:
            return context.model_copy(update={"user_id": user_id})
        return context

    def _current_step(self, context: ConversationContext) -> Tuple[GuideMatch, int]:
        guide = context.selected_guide
        step_number = context.current_step
        if not guide or not step_number:
            raise InvalidSessionStateError("Step loop without a guide or a current step")
        if not 1 <= step_number <= len(guide.steps):
            raise InvalidSessionStateError(
                f"Step {step_number} is out of range for guide '{guide.title}'"
            )
        return guide, step_number

    @staticmethod
    def _alternatives(guides: List[GuideMatch]) -> List[GuideMatch]:
        return guides[1:1 + MAX_ALTERNATIVES]

    def _parse_choice(self, message: str, guides: List[GuideMatch]) -> Optional[int]:
        """Maps a reply like "2" to an index into `guides` (alternatives start at 1)."""
        match = CHOICE_PATTERN.match(message)
        if not match:
            return None
        number = int(match.group(1))
        if 1 <= number <= len(self._alternatives(guides)):
            return number
        return None

    def _render_confirmation(self, guide: GuideMatch, guides: List[GuideMatch]) -> str:
        return render(
            Template.GUIDE_CONFIRMATION,
            guide=guide,
            alternatives=self._alternatives(guides),
            suffix=text.GUIDE_CONFIRMATION_SUFFIX,
        )

    @staticmethod
    def _render_step(guide: GuideMatch, number: int, heading: Optional[str] = None) -> str:
        return render(
            Template.STEP,
            heading=heading,
            number=number,
            text=guide.steps[number - 1],
            suffix=text.STEP_PROMPT_SUFFIX,
        )

    @staticmethod
    def _close(context: ConversationContext, state: ConversationState) -> ConversationContext:
        return context.model_copy(update={"state": state, "awaiting_response_type": None})
