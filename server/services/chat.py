from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage

from core import HistoryRepository, extract_text, history_entry, now_millis

logger = logging.getLogger(__name__)

AI_ERROR_REPLY = "Error from AI"


class ChatService:
    def __init__(self, llm: Any, history: HistoryRepository) -> None:
        if llm is None:
            raise RuntimeError("Chat model must be initialised before use.")
        self._llm = llm
        self._history = history

    async def generate(self, message: str) -> str:
        """Forward a single prompt to the model; failures become a fixed reply."""
        try:
            response = await self._llm.ainvoke([HumanMessage(content=message)])
        except Exception:
            logger.exception("Chat model request failed")
            return AI_ERROR_REPLY
        text = extract_text(response)
        return text if text else AI_ERROR_REPLY

    async def reply(self, user_id: str, message: str, session_id: Optional[str] = None) -> str:
        bot_reply = await self.generate(message)

        timestamp = now_millis()
        await self._history.append(
            user_id,
            [
                history_entry("user", message, session_id, timestamp),
                history_entry("bot", bot_reply, session_id, timestamp),
            ],
        )
        return bot_reply
