from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

HISTORY_KEY_TEMPLATE = "user:{user_id}:history"


def key_for(user_id: str) -> str:
    return HISTORY_KEY_TEMPLATE.format(user_id=user_id)


class HistoryRepository:
    """Per-user chat history stored as one JSON list per Redis key.

    Updates are plain read-modify-write; concurrent writers for the same user
    overwrite each other (last writer wins).
    """

    def __init__(self, client: Redis, limit: int = 100) -> None:
        self._client = client
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    async def list(self, user_id: str) -> List[Dict[str, Any]]:
        raw = await self._client.get(key_for(user_id))
        if raw is None:
            return []
        try:
            history = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable history for user %s", user_id)
            return []
        return history if isinstance(history, list) else []

    async def _save(self, user_id: str, history: List[Dict[str, Any]]) -> None:
        await self._client.set(key_for(user_id), json.dumps(history))

    async def append(self, user_id: str, entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        history = await self.list(user_id)
        history.extend(entries)
        if len(history) > self._limit:
            history = history[-self._limit:] if self._limit > 0 else []
        await self._save(user_id, history)
        return history

    async def delete_session(self, user_id: str, session_id: Optional[str]) -> List[Dict[str, Any]]:
        history = await self.list(user_id)
        remaining = [entry for entry in history if entry.get("sessionId") != session_id]
        await self._save(user_id, remaining)
        return remaining

    async def clear(self, user_id: str) -> None:
        await self._client.delete(key_for(user_id))
