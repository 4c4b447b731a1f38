"""
History routes for the server application
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from core import HistoryDeleteRequest, HistoryEntry, HistoryRepository, SuccessResponse, TokenIdentity
from dependencies import get_current_user_dep, get_history_repository

router = APIRouter(prefix="/history", tags=["history"])


# Stored entries are served verbatim; HistoryEntry only documents their shape.
@router.get("", response_model=None, responses={200: {"model": List[HistoryEntry]}})
async def list_history(
    current_user: TokenIdentity = Depends(get_current_user_dep),
    repository: HistoryRepository = Depends(get_history_repository),
) -> List[Dict[str, Any]]:
    """Return the caller's stored exchanges, oldest first"""
    return await repository.list(current_user.id)


@router.delete("", response_model=SuccessResponse)
async def delete_session(
    request: HistoryDeleteRequest,
    current_user: TokenIdentity = Depends(get_current_user_dep),
    repository: HistoryRepository = Depends(get_history_repository),
) -> SuccessResponse:
    """Drop every entry belonging to one chat session"""
    await repository.delete_session(current_user.id, request.session_id)
    return SuccessResponse()
