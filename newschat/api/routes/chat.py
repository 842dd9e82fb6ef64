"""
Chat Routes
Handles conversation with the RAG system
"""

from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from newschat.api.deps import get_chat_service, get_session_id, iso_now
from newschat.core.chat_service import ChatService
from newschat.models.chat import ChatRequest, ChatResponse, ErrorResponse
from newschat.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def handle_chat(
    request: Optional[ChatRequest] = None,
    session_id: str = Depends(get_session_id),
    service: ChatService = Depends(get_chat_service)
):
    """
    Send a query to the chatbot and receive a response.

    The system will:
    1. Retrieve the news articles most relevant to the query
    2. Generate an answer grounded on them within the session's conversation
    3. Append the exchange to the session history

    Omitting the x-session-id header starts a new session; its id is
    returned in the response.
    """
    if request is None or not request.query:
        return JSONResponse(status_code=400, content={"error": "Query is required"})

    try:
        response = await service.process_turn(session_id, request.query)
    except Exception as e:
        logger.error("Error processing chat request: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat request"}
        )

    return ChatResponse(
        session_id=session_id,
        response=response,
        timestamp=iso_now()
    )
