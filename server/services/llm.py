from __future__ import annotations

from langchain_google_genai import ChatGoogleGenerativeAI

from core import Settings


def build_chat_model(settings: Settings) -> ChatGoogleGenerativeAI:
    if not settings.gemini_api_key:
        raise RuntimeError("GEMINI_API_KEY not set. Please configure it in environment or .env")

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.gemini_api_key,
    )
