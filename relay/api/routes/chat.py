"""Chat completion pass-through endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from relay.api.dependencies import get_chat_service, get_current_user_id
from relay.api.schemas import ChatRequest, ChatResponse
from relay.services.openai import ChatService, ChatUpstreamError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    if not chat_service.is_configured:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing OPENAI_API_KEY")

    messages = request.messages
    if not isinstance(messages, list) or not messages:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing messages")

    try:
        reply = chat_service.complete(messages, model=request.model)
    except ChatUpstreamError as exc:
        logger.warning("Chat upstream error for user %s: %s %s", user_id, exc.status_code, exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except Exception as exc:
        logger.exception("Chat request failed for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Server error",
        ) from exc

    return ChatResponse(reply=reply)
