"""
Session Models
Pydantic schemas for session management
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field

from newschat.models.chat import ChatMessage


class SessionHistoryResponse(BaseModel):
    """Chat history for a session."""
    session_id: str = Field(..., alias="sessionId")
    history: List[ChatMessage]
    timestamp: str

    model_config = ConfigDict(populate_by_name=True)


class SessionResetResponse(BaseModel):
    """Response model for resetting a session."""
    session_id: str = Field(..., alias="sessionId")
    message: str
    timestamp: str

    model_config = ConfigDict(populate_by_name=True)
