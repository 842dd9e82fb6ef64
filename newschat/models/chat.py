"""
Chat Models
Pydantic schemas for chat messages and the chat endpoint
"""

import time
from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class MessageRole(str, Enum):
    """Role of a message sender."""
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A message in a session's chat history."""
    role: MessageRole
    content: str
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.ASSISTANT, content=content)


class ChatRequest(BaseModel):
    """Request body for sending a chat message."""
    query: Optional[str] = Field(None, description="User's question")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"query": "What are today's top stories?"}
        }
    )


class ChatResponse(BaseModel):
    """Response model for chat messages."""
    session_id: str = Field(..., alias="sessionId")
    response: str = Field(..., description="Generated answer")
    timestamp: str

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "sessionId": "550e8400-e29b-41d4-a716-446655440000",
                "response": "The top story today is...",
                "timestamp": "2024-01-15T10:35:00Z"
            }
        }
    )


class ErrorResponse(BaseModel):
    """Stable error shape returned by every endpoint."""
    error: str
