"""
Session Management Routes
Handles chat history retrieval and session reset
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from newschat.api.deps import get_chat_service, get_session_id, iso_now
from newschat.core.chat_service import ChatService
from newschat.models.chat import ErrorResponse
from newschat.models.session import SessionHistoryResponse, SessionResetResponse
from newschat.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/history",
    response_model=SessionHistoryResponse,
    responses={500: {"model": ErrorResponse}}
)
async def get_session_history(
    session_id: str = Depends(get_session_id),
    service: ChatService = Depends(get_chat_service)
):
    """
    Retrieve the chat history for a session.

    Expired or unknown sessions return an empty history.
    """
    try:
        history = await service.get_history(session_id)
    except Exception as e:
        logger.error("Error retrieving session history: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve session history"}
        )

    return SessionHistoryResponse(
        session_id=session_id,
        history=history,
        timestamp=iso_now()
    )


@router.post(
    "/reset",
    response_model=SessionResetResponse,
    responses={500: {"model": ErrorResponse}}
)
async def reset_session(
    session_id: str = Depends(get_session_id),
    service: ChatService = Depends(get_chat_service)
):
    """
    Reset a session.

    This will:
    - Delete the stored chat history
    - Restart the model conversation from the greeting
    """
    try:
        await service.reset_session(session_id)
    except Exception as e:
        logger.error("Error resetting session: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to reset session"}
        )

    return SessionResetResponse(
        session_id=session_id,
        message="Session reset successfully",
        timestamp=iso_now()
    )
