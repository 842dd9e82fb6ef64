"""
Vector Store Gateway
Owns the news collection: creation, population from the feed, queries and clearing
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from newschat.config import settings
from newschat.core.embeddings import Embedder, get_embedder
from newschat.core.exceptions import (
    CollectionNotInitializedError,
    NewsChatError,
    VectorStoreError,
)
from newschat.core.feed import ProcessedFeed, fetch_feed
from newschat.db.qdrant_client import QdrantManager, qdrant_manager
from newschat.utils.logger import get_logger


logger = get_logger(__name__)

FeedLoader = Callable[[], Awaitable[ProcessedFeed]]


@dataclass
class StoredDocument:
    """A document as read back from the collection."""
    id: str
    text: str
    metadata: Dict[str, str]


def point_ids(docs: List[str]) -> List[str]:
    """
    Content-derived point ids.

    Identical texts within one batch get an occurrence suffix so every
    document keeps its own point.
    """
    seen: Dict[str, int] = {}
    ids = []
    for text in docs:
        occurrence = seen.get(text, 0)
        seen[text] = occurrence + 1
        key = text if occurrence == 0 else f"{text}#{occurrence}"
        ids.append(str(uuid.uuid5(uuid.NAMESPACE_URL, key)))
    return ids


class NewsVectorStore:
    """
    Gateway over a single named Qdrant collection.

    The collection moves from absent to created (empty) to populated.
    Population is a full replace: the collection is dropped, recreated
    and filled from the current feed in one batch.
    """

    def __init__(
        self,
        qdrant: QdrantManager = None,
        embedder: Embedder = None,
        collection_name: str = None,
        feed_loader: FeedLoader = None
    ):
        self.qdrant = qdrant or qdrant_manager
        self.collection_name = collection_name or settings.COLLECTION_NAME
        self.feed_loader = feed_loader or fetch_feed
        self._embedder = embedder
        self._collection: Optional[str] = None
        self._lock = asyncio.Lock()
        self.is_initialized = False

    @property
    def embedder(self) -> Embedder:
        """Lazy load the configured embedder."""
        if self._embedder is None:
            self._embedder = get_embedder()
        return self._embedder

    async def initialize(self, force_refresh: bool = False):
        """
        Get or create the collection and populate it when empty or forced.

        Args:
            force_refresh: Repopulate even if the collection has documents
        """
        async with self._lock:
            await self._initialize(force_refresh)

    async def _initialize(self, force_refresh: bool):
        try:
            await self._open_collection()
            count = await self.qdrant.count(self.collection_name)

            if force_refresh or count == 0:
                logger.info(
                    "Collection %s is empty or refresh requested. Populating...",
                    self.collection_name
                )
                await self._populate()
            else:
                logger.info(
                    "Collection %s already exists with %d documents.",
                    self.collection_name, count
                )

            self.is_initialized = True
        except NewsChatError:
            raise
        except Exception as e:
            logger.error("Error initializing vector store: %s", e)
            raise VectorStoreError(f"Failed to initialize vector store: {e}") from e

    async def _open_collection(self):
        await self.qdrant.create_collection(
            self.collection_name,
            vector_size=self.embedder.dimension
        )
        self._collection = self.collection_name

    async def _drop_and_recreate(self):
        self._collection = None
        await self.qdrant.delete_collection(self.collection_name)
        await self._open_collection()

    async def populate(self):
        """Replace the collection content with the current feed."""
        async with self._lock:
            await self._populate()

    async def _populate(self):
        try:
            await self._drop_and_recreate()

            feed = await self.feed_loader()
            if feed.docs:
                vectors = await self.embedder.embed(feed.docs)
                points = [
                    {
                        "id": pid,
                        "vector": vector,
                        "payload": {"document": text, "doc_id": doc_id, **metadata}
                    }
                    for pid, vector, text, doc_id, metadata in zip(
                        point_ids(feed.docs), vectors, feed.docs, feed.ids, feed.metadatas
                    )
                ]
                await self.qdrant.upsert_vectors(self.collection_name, points)

            logger.info("Successfully populated collection with %d documents.", len(feed))
        except NewsChatError:
            raise
        except Exception as e:
            logger.error("Error populating collection: %s", e)
            raise VectorStoreError(f"Failed to populate collection: {e}") from e

    async def query(self, text: str, top_k: int = None) -> str:
        """
        Retrieve the documents nearest to a query.

        Returns:
            Matching document texts joined by newlines, "" if none
        """
        if top_k is None:
            top_k = settings.RETRIEVAL_TOP_K

        if not self.is_initialized:
            async with self._lock:
                if not self.is_initialized:
                    await self._initialize(force_refresh=False)

        if self._collection is None:
            raise CollectionNotInitializedError(
                f"Collection {self.collection_name} not initialized"
            )

        if top_k < 1:
            return ""

        try:
            vector = await self.embedder.embed_query(text)
            results = await self.qdrant.search_vectors(
                self._collection,
                query_vector=vector,
                top_k=top_k
            )
        except NewsChatError:
            raise
        except Exception as e:
            logger.error("Error querying collection: %s", e)
            raise VectorStoreError(f"Failed to query collection: {e}") from e

        return "\n".join(r["payload"].get("document", "") for r in results)

    async def clear(self):
        """Delete all documents, leaving an empty collection."""
        async with self._lock:
            try:
                await self._drop_and_recreate()
            except NewsChatError:
                raise
            except Exception as e:
                logger.error("Error clearing collection: %s", e)
                raise VectorStoreError(f"Failed to clear collection: {e}") from e
        logger.info("Collection %s cleared successfully.", self.collection_name)

    async def count(self) -> int:
        """Number of documents currently stored."""
        if not await self.qdrant.collection_exists(self.collection_name):
            return 0
        return await self.qdrant.count(self.collection_name)

    async def documents(self) -> List[StoredDocument]:
        """Every stored document, in feed order."""
        if not await self.qdrant.collection_exists(self.collection_name):
            return []

        payloads = await self.qdrant.scroll_payloads(self.collection_name)
        docs = [
            StoredDocument(
                id=payload.get("doc_id", ""),
                text=payload.get("document", ""),
                metadata={
                    "url": payload.get("url", ""),
                    "title": payload.get("title", ""),
                    "pubDate": payload.get("pubDate", ""),
                }
            )
            for payload in payloads
        ]
        docs.sort(key=lambda d: int(d.id) if d.id.isdigit() else 0)
        return docs


# Global instance
vector_store = NewsVectorStore()
