"""
Embedding Management Routes
Handles repopulation and inspection of the news collection
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from newschat.api.deps import get_chat_service, iso_now
from newschat.core.chat_service import ChatService
from newschat.models.chat import ErrorResponse
from newschat.models.document import (
    CollectionStatus,
    DocumentMetadata,
    FeedDocument,
    RefreshEmbeddingsResponse,
)
from newschat.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/refresh-embeddings",
    response_model=RefreshEmbeddingsResponse,
    responses={500: {"model": ErrorResponse}}
)
async def refresh_embeddings(service: ChatService = Depends(get_chat_service)):
    """
    Re-ingest the RSS feed.

    Drops the collection and refills it from the current feed.
    """
    try:
        await service.refresh_embeddings()
    except Exception as e:
        logger.error("Error refreshing embeddings: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to refresh embeddings"}
        )

    return RefreshEmbeddingsResponse(
        message="Embeddings refreshed successfully",
        timestamp=iso_now()
    )


@router.get(
    "/embeddings/status",
    response_model=CollectionStatus,
    responses={500: {"model": ErrorResponse}}
)
async def embeddings_status(service: ChatService = Depends(get_chat_service)):
    """
    List the documents currently held in the collection.
    """
    try:
        documents = await service.list_documents()
    except Exception as e:
        logger.error("Error reading collection: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to read collection"}
        )

    return CollectionStatus(
        collection=service.vector_store.collection_name,
        count=len(documents),
        documents=[
            FeedDocument(id=doc.id, metadata=DocumentMetadata(**doc.metadata))
            for doc in documents
        ],
        timestamp=iso_now()
    )
