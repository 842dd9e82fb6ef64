"""
Route dependencies
"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from fastapi import Header

from newschat.core.chat_service import ChatService, chat_service


def get_session_id(x_session_id: Optional[str] = Header(None)) -> str:
    """Session id from the x-session-id header, or a new UUID on first contact."""
    return x_session_id or str(uuid.uuid4())


def get_chat_service() -> ChatService:
    return chat_service


def iso_now() -> str:
    """UTC timestamp for response bodies."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
