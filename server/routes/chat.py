"""
Chat routes for the server application
"""

from fastapi import APIRouter, Depends

from core import ChatRequest, ChatResponse, TokenIdentity
from dependencies import get_chat_service, get_current_user_dep
from services.chat import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    current_user: TokenIdentity = Depends(get_current_user_dep),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Relay a message to the model and record the exchange"""
    reply = await chat_service.reply(current_user.id, request.message, request.session_id)
    return ChatResponse(reply=reply)
