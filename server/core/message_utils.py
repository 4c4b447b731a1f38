from __future__ import annotations

import time
from typing import Any, Dict, List, Optional


def extract_text(payload: Any) -> str:
    """Best-effort conversion of model payloads to plain text."""
    if payload is None:
        return ""
    content = getattr(payload, "content", payload)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        fragments: List[str] = []
        for part in content:
            if isinstance(part, str):
                fragments.append(part)
            elif isinstance(part, dict):
                if part.get("type") == "text" and part.get("text"):
                    fragments.append(str(part["text"]))
            else:
                text_part = getattr(part, "text", None)
                if text_part:
                    fragments.append(str(text_part))
        return "".join(fragments)
    if isinstance(content, dict):
        text_value = content.get("text")
        if isinstance(text_value, str):
            return text_value
    return str(content)


def now_millis() -> int:
    return int(time.time() * 1000)


def history_entry(role: str, text: str, session_id: Optional[str], timestamp: int) -> Dict[str, Any]:
    return {"role": role, "text": text, "sessionId": session_id, "timestamp": timestamp}
