import logging

from fastapi import FastAPI, HTTPException, Depends, status
from fastapi.responses import Response

from ..config import settings
from .dependencies import get_chat_service
from ..services.chat import ChatService
from .schemas import (
    AnalyticsResponse,
    ChatRequest,
    ChatResponse,
    ChecklistOutcomeRequest,
    ChecklistOutcomeResponse,
    SessionRead,
    UnresolvedSession,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Helpdesk Troubleshooting Assistant")

# --- Endpoints ---

@app.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service)
):
    """Processes one user message and returns the reply with the next context."""
    return await service.process_message(request)


@app.post("/chat/checklist-outcome", response_model=ChecklistOutcomeResponse)
async def submit_checklist_outcome(
    request: ChecklistOutcomeRequest,
    service: ChatService = Depends(get_chat_service)
):
    result = await service.submit_checklist_outcome(request.user_id, request.outcome)
    return ChecklistOutcomeResponse(
        response=result.response,
        outcome=result.outcome,
        ticket_id=result.ticket_id,
    )


@app.get("/sessions/{session_id}", response_model=SessionRead)
def get_session(
    session_id: str,
    service: ChatService = Depends(get_chat_service)
):
    """Retrieves a session together with its step records and ticket."""
    session = service.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionRead(
        session=session,
        steps=service.get_session_steps(session_id),
        ticket=service.get_session_ticket(session_id),
    )


@app.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    service: ChatService = Depends(get_chat_service)
):
    unresolved = []
    for session in service.get_unresolved_sessions():
        ticket = service.get_session_ticket(session.id)
        unresolved.append(
            UnresolvedSession(
                id=session.id,
                issue_description=session.issue_description,
                matched_guide_title=session.matched_guide_title,
                started_at=session.started_at,
                completed_at=session.completed_at,
                ticket_id=ticket.id if ticket else None,
            )
        )
    return AnalyticsResponse(summary=service.get_stats(), unresolved_sessions=unresolved)


@app.delete("/conversations/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def reset_conversation(
    user_id: str,
    service: ChatService = Depends(get_chat_service)
):
    """
    Forgets the user's conversation context. Returns 204 No Content on success.
    """
    if not service.reset_conversation(user_id):
        raise HTTPException(status_code=404, detail="Conversation not found")

    # For 204, we must explicitly return a Response object with no content
    return Response(status_code=status.HTTP_204_NO_CONTENT)
