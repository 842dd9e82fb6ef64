"""
Qdrant Client
Low-level access to the vector database holding feed embeddings
"""

from typing import List, Dict, Any, Optional
from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models
from qdrant_client.http.models import Distance, VectorParams, PointStruct

from newschat.config import settings
from newschat.core.exceptions import StoreConnectionError
from newschat.utils.logger import get_logger


logger = get_logger(__name__)


class QdrantManager:
    """Manager for Qdrant vector database operations."""

    def __init__(self, url: str = None, host: str = None, port: int = None):
        self.url = url if url is not None else settings.QDRANT_URL
        self.host = host or settings.QDRANT_HOST
        self.port = port or settings.QDRANT_PORT
        self.client: Optional[AsyncQdrantClient] = None

    @property
    def address(self) -> str:
        return self.url or f"{self.host}:{self.port}"

    def _build_client(self) -> AsyncQdrantClient:
        if self.url == ":memory:":
            return AsyncQdrantClient(location=":memory:")
        if self.url:
            return AsyncQdrantClient(url=self.url)
        return AsyncQdrantClient(host=self.host, port=self.port)

    async def connect(self):
        """
        Establish connection to Qdrant.

        Raises:
            StoreConnectionError: if the server does not answer
        """
        if self.client is None:
            self.client = self._build_client()

        try:
            await self.client.get_collections()
        except Exception as e:
            logger.error("Failed to connect to Qdrant at %s: %s", self.address, e)
            raise StoreConnectionError(f"Failed to connect to Qdrant at {self.address}: {e}") from e

        logger.info("Connected to Qdrant at %s", self.address)

    async def disconnect(self):
        """Close Qdrant connection."""
        if self.client:
            await self.client.close()
            self.client = None
            logger.info("Disconnected from Qdrant")

    async def ping(self) -> bool:
        """Check if Qdrant is reachable."""
        try:
            if self.client:
                await self.client.get_collections()
                return True
            return False
        except Exception:
            return False

    async def _get_client(self) -> AsyncQdrantClient:
        """Connect on first use."""
        if self.client is None:
            await self.connect()
        return self.client

    # ======================
    # Collection Management
    # ======================

    async def collection_exists(self, collection_name: str) -> bool:
        """Check if a collection exists."""
        client = await self._get_client()
        collections = await client.get_collections()
        return collection_name in [c.name for c in collections.collections]

    async def create_collection(self, collection_name: str, vector_size: int) -> bool:
        """
        Create a collection unless it already exists.

        Returns:
            True if the collection was created by this call
        """
        if await self.collection_exists(collection_name):
            return False

        client = await self._get_client()
        await client.create_collection(
            collection_name=collection_name,
            vectors_config=VectorParams(
                size=vector_size,
                distance=Distance.COSINE
            ),
            hnsw_config=models.HnswConfigDiff(
                m=16,
                ef_construct=100
            )
        )
        logger.info("Created collection: %s", collection_name)
        return True

    async def delete_collection(self, collection_name: str) -> bool:
        """
        Delete a collection if present.

        Returns:
            True if a collection was deleted
        """
        if not await self.collection_exists(collection_name):
            return False

        client = await self._get_client()
        await client.delete_collection(collection_name)
        logger.info("Deleted collection: %s", collection_name)
        return True

    async def count(self, collection_name: str) -> int:
        """Exact number of points in a collection."""
        client = await self._get_client()
        result = await client.count(collection_name=collection_name, exact=True)
        return result.count

    # ======================
    # Vector Operations
    # ======================

    async def upsert_vectors(
        self,
        collection_name: str,
        points: List[Dict[str, Any]]
    ):
        """
        Insert or update vectors in a collection in one batch.

        points format:
        [
            {
                "id": "uuid",
                "vector": [0.1, 0.2, ...],
                "payload": {"document": "...", "doc_id": "1", ...}
            }
        ]
        """
        point_structs = [
            PointStruct(
                id=p["id"],
                vector=p["vector"],
                payload=p.get("payload", {})
            )
            for p in points
        ]

        client = await self._get_client()
        await client.upsert(
            collection_name=collection_name,
            points=point_structs,
            wait=True
        )

    async def search_vectors(
        self,
        collection_name: str,
        query_vector: List[float],
        top_k: int = 5
    ) -> List[Dict[str, Any]]:
        """
        Search for similar vectors.

        Returns list of results with id, score, and payload.
        """
        client = await self._get_client()
        results = await client.query_points(
            collection_name=collection_name,
            query=query_vector,
            limit=top_k,
            with_payload=True
        )

        return [
            {
                "id": str(r.id),
                "score": r.score,
                "payload": r.payload or {}
            }
            for r in results.points
        ]

    async def scroll_payloads(
        self,
        collection_name: str,
        batch_size: int = 256
    ) -> List[Dict[str, Any]]:
        """Read back every payload in a collection."""
        client = await self._get_client()
        payloads = []
        offset = None

        while True:
            records, offset = await client.scroll(
                collection_name=collection_name,
                limit=batch_size,
                offset=offset,
                with_payload=True,
                with_vectors=False
            )
            payloads.extend(record.payload or {} for record in records)
            if offset is None:
                break

        return payloads


# Global instance
qdrant_manager = QdrantManager()
