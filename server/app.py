"""
Chat relay server application
"""


from __future__ import annotations


import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional


import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis


from core import (
    HistoryRepository,
    Settings,
    UserRepository,
)
from dependencies import get_dependency_provider
from routes import auth, chat, history
from services.chat import ChatService
from services.llm import build_chat_model


logger = logging.getLogger(__name__)




@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager with proper dependency injection"""
    settings = Settings.load()
    logging.basicConfig(level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s")
    pool: Optional[asyncpg.Pool] = None
    redis_client: Optional[Redis] = None
    provider = get_dependency_provider()


    try:
        # Initialize database connection pool
        pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )
        logger.info("Database pool ready")

        # Initialize repositories
        users = UserRepository(pool)
        await users.initialise()

        redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
        history_repository = HistoryRepository(redis_client, limit=settings.history_limit)

        # Initialize services
        chat_service = ChatService(build_chat_model(settings), history_repository)
        logger.info("Chat model configured: %s", settings.gemini_model)


        # Set up dependency injection
        provider.set_settings(settings)
        provider.set_user_repository(users)
        provider.set_history_repository(history_repository)
        provider.set_chat_service(chat_service)


        application.state.db_pool = pool
        application.state.redis = redis_client


        yield
    finally:
        # Clean up dependencies
        provider.set_chat_service(None)
        provider.set_history_repository(None)
        provider.set_user_repository(None)
        provider.set_settings(None)

        # Clean up application state
        if hasattr(application.state, 'db_pool'):
            application.state.db_pool = None
        if hasattr(application.state, 'redis'):
            application.state.redis = None


        if redis_client is not None:
            await redis_client.aclose()

        if pool is not None:
            await pool.close()
        logger.info("Storage connections closed")




def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Chat Relay API",
        description="Authenticated chat relay to Gemini with per-user history",
        version="1.0.0",
        lifespan=lifespan
    )


    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


    # Include route modules
    app.include_router(auth.router)
    app.include_router(chat.router)
    app.include_router(history.router)


    return app




# Create the application instance
app = create_app()
