"""Chat router: one conversational turn per request; the caller keeps the state."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from pagepilot.api.schemas.chat import ChatRequest, ChatResponse, PendingSelectionSchema, TurnSchema
from pagepilot.orchestrator.dispatcher import Dispatcher
from pagepilot.orchestrator.types import ConversationState

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/chat", tags=["chat"])
limiter = Limiter(key_func=get_remote_address)


def _get_dispatcher(request: Request) -> Dispatcher:
    """Access the pre-built dispatcher from app.state."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dispatcher not initialised. Check server startup logs.",
        )
    return dispatcher


@router.post("", response_model=ChatResponse)
@limiter.limit("30/minute")
async def chat(request: Request, body: ChatRequest) -> ChatResponse:
    dispatcher = _get_dispatcher(request)
    state = ConversationState.from_dict({
        "history": [t.model_dump() for t in body.history],
        "pending_selection": body.pending_selection.model_dump() if body.pending_selection else None,
    })

    result = await dispatcher.process(body.text, state, client_id=body.client_id)

    outcome = result.outcome
    pending = result.state.pending_selection
    return ChatResponse(
        reply=result.reply,
        history=[TurnSchema(**t) for t in result.state.history],
        pending_selection=PendingSelectionSchema(**pending.to_dict()) if pending else None,
        route=result.route.value if result.route else None,
        status=outcome.status.value if outcome else "error",
        code=outcome.code if outcome else None,
        rejected_fields=list(outcome.rejected_fields) if outcome else [],
        candidates=list(outcome.candidates) if outcome else [],
        payload=outcome.payload if outcome else {},
        confidence=result.classification.confidence if result.classification else None,
        reasoning=result.classification.reasoning if result.classification else None,
        total_ms=result.metrics.total_ms if result.metrics else None,
    )
