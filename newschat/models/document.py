"""
Document Models
Pydantic schemas for feed documents and embedding management
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class DocumentMetadata(BaseModel):
    """Metadata stored with each feed document."""
    url: str = ""
    title: str = ""
    pub_date: str = Field("", alias="pubDate")

    model_config = ConfigDict(populate_by_name=True)


class FeedDocument(BaseModel):
    """A document held in the news collection."""
    id: str = Field(..., description="1-based position in the feed at ingestion")
    metadata: DocumentMetadata


class RefreshEmbeddingsResponse(BaseModel):
    """Response after repopulating the collection."""
    message: str
    timestamp: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Embeddings refreshed successfully",
                "timestamp": "2024-01-15T10:35:00Z"
            }
        }
    )


class CollectionStatus(BaseModel):
    """Contents of the news collection."""
    collection: str
    count: int
    documents: List[FeedDocument]
    timestamp: str
