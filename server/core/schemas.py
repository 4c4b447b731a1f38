from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    session_id: Optional[str] = Field(None, alias="sessionId")


class ChatResponse(BaseModel):
    reply: str


class HistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: Literal["user", "bot"]
    text: str
    session_id: Optional[str] = Field(None, alias="sessionId")
    timestamp: int


class HistoryDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(None, alias="sessionId")


class SuccessResponse(BaseModel):
    success: bool = True


# User schemas
class User(BaseModel):
    id: str
    username: str
    email: str
    created_at: Optional[datetime] = None


class UserCreate(BaseModel):
    email: str
    password: str
    username: str


class UserLogin(BaseModel):
    email: str
    password: str


class UserInDB(User):
    password_hash: str
    salt: str


class Token(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    user_id: str = Field(..., alias="userId")


class TokenIdentity(BaseModel):
    id: str
    email: str
