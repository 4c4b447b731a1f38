"""Shared backend primitives."""

from .auth import (
    UserRepository,
    create_access_token,
    get_current_user,
    hash_password,
    sign_token,
    verify_password,
    verify_token,
)
from .config import Settings
from .history import HistoryRepository
from .message_utils import extract_text, history_entry, now_millis
from .schemas import (
    ChatRequest,
    ChatResponse,
    HistoryDeleteRequest,
    HistoryEntry,
    SuccessResponse,
    Token,
    TokenIdentity,
    User,
    UserCreate,
    UserInDB,
    UserLogin,
)

__all__ = [
    "Token",
    "TokenIdentity",
    "User",
    "UserCreate",
    "UserInDB",
    "UserLogin",
    "UserRepository",
    "create_access_token",
    "get_current_user",
    "hash_password",
    "sign_token",
    "verify_password",
    "verify_token",
    "Settings",
    "HistoryRepository",
    "extract_text",
    "history_entry",
    "now_millis",
    "ChatRequest",
    "ChatResponse",
    "HistoryDeleteRequest",
    "HistoryEntry",
    "SuccessResponse",
]
