"""
Authentication routes for the server application
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from core import (
    Settings,
    SuccessResponse,
    Token,
    UserCreate,
    UserLogin,
    UserRepository,
    create_access_token,
)
from core.auth import verify_password
from dependencies import get_settings, get_user_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/signup", response_model=SuccessResponse)
async def signup(
    user_data: UserCreate,
    user_repo: UserRepository = Depends(get_user_repository),
):
    """Register a new user"""
    user = await user_repo.create_user(user_data)
    if user is None:
        logger.info("Signup rejected for an existing email")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Email exists or Error"},
        )
    logger.info("Registered user %s", user.id)
    return SuccessResponse()


@router.post("/login", response_model=Token)
async def login(
    user_credentials: UserLogin,
    user_repo: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
):
    """Authenticate user and return a session token"""
    user = await user_repo.get_user_by_email(user_credentials.email)
    if user is None:
        return PlainTextResponse("User not found", status_code=status.HTTP_401_UNAUTHORIZED)

    if not await run_in_threadpool(
        verify_password, user_credentials.password, user.password_hash, user.salt
    ):
        logger.info("Rejected login for user %s", user.id)
        return PlainTextResponse("Invalid pass", status_code=status.HTTP_401_UNAUTHORIZED)

    expires_delta = None
    if settings.token_expire_days:
        expires_delta = timedelta(days=settings.token_expire_days)
    token = create_access_token(
        {"id": user.id, "email": user.email}, settings.jwt_secret, expires_delta=expires_delta
    )
    return Token(token=token, user_id=user.id)
