"""
Dependency injection for the server application
"""

from typing import Optional

from fastapi import Depends

from core import HistoryRepository, Settings, TokenIdentity, UserRepository, get_current_user
from core.auth import security
from services.chat import ChatService


class DependencyProvider:
    """Container for application dependencies"""

    def __init__(self):
        self.settings: Settings | None = None
        self.user_repository: UserRepository | None = None
        self.history_repository: HistoryRepository | None = None
        self.chat_service: ChatService | None = None

    def set_settings(self, settings: Settings | None) -> None:
        self.settings = settings

    def set_user_repository(self, repository: UserRepository | None) -> None:
        self.user_repository = repository

    def set_history_repository(self, repository: HistoryRepository | None) -> None:
        self.history_repository = repository

    def set_chat_service(self, service: ChatService | None) -> None:
        self.chat_service = service


# Global dependency provider instance
_provider = DependencyProvider()


def get_dependency_provider() -> DependencyProvider:
    """Get the global dependency provider"""
    return _provider


def get_settings() -> Settings:
    """Get application settings"""
    settings = _provider.settings
    if settings is None:
        raise RuntimeError("Application settings are not initialized.")
    return settings


def get_user_repository() -> UserRepository:
    """Get user repository"""
    repository = _provider.user_repository
    if repository is None:
        raise RuntimeError("User repository is not initialized.")
    return repository


def get_history_repository() -> HistoryRepository:
    """Get history repository"""
    repository = _provider.history_repository
    if repository is None:
        raise RuntimeError("History repository is not initialized.")
    return repository


def get_chat_service() -> ChatService:
    """Get chat service"""
    service = _provider.chat_service
    if service is None:
        raise RuntimeError("Chat service is not initialized.")
    return service


def get_current_user_dep(
    authorization: Optional[str] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> TokenIdentity:
    """Get the identity carried by the bearer token"""
    return get_current_user(authorization, settings.jwt_secret)
