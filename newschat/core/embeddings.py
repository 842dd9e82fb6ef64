"""
Embeddings Service
Embedding capability used by the vector store at insertion and query time
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx
from openai import AsyncOpenAI

from newschat.config import settings
from newschat.core.exceptions import EmbeddingError
from newschat.utils.logger import get_logger


logger = get_logger(__name__)


class Embedder(ABC):
    """Turns texts into vectors of a fixed dimension."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Size of the vectors returned by embed()."""

    @abstractmethod
    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts, preserving order."""

    async def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        vectors = await self.embed([text])
        return vectors[0]


class JinaEmbedder(Embedder):
    """
    Jina AI embeddings over its HTTP API.
    """

    def __init__(
        self,
        api_key: str = None,
        model_name: str = None,
        dimension: int = None,
        api_url: str = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key if api_key is not None else settings.JINA_EMBEDDING_API_KEY
        self.model_name = model_name or settings.JINA_EMBEDDING_MODEL
        self.api_url = api_url or settings.JINA_API_URL
        self._dimension = dimension or settings.EMBEDDING_DIMENSION
        self._client = client

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy load the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            response = await self.client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"model": self.model_name, "input": texts}
            )
            response.raise_for_status()
            data = response.json()["data"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Jina embedding request failed: %s", e)
            raise EmbeddingError(f"Failed to embed {len(texts)} texts with Jina: {e}") from e

        # The API may return items out of order
        data = sorted(data, key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in data]

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class OpenAIEmbedder(Embedder):
    """
    OpenAI embeddings, truncated to the configured dimension.
    """

    def __init__(
        self,
        api_key: str = None,
        model_name: str = None,
        dimension: int = None
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model_name = model_name or settings.OPENAI_EMBEDDING_MODEL
        self._dimension = dimension or settings.EMBEDDING_DIMENSION
        self._client = None

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy load the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            response = await self.client.embeddings.create(
                model=self.model_name,
                input=texts,
                dimensions=self._dimension
            )
        except Exception as e:
            logger.error("OpenAI embedding request failed: %s", e)
            raise EmbeddingError(f"Failed to embed {len(texts)} texts with OpenAI: {e}") from e

        return [item.embedding for item in response.data]


class SentenceTransformerEmbedder(Embedder):
    """
    Local sentence-transformers model.
    Encoding is CPU-bound, so it runs in a worker thread.
    """

    def __init__(self, model_name: str = None, batch_size: int = 32):
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self.batch_size = batch_size
        self._model = None

    @property
    def model(self):
        """Lazy load the embedding model."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model: %s", self.model_name)
            self._model = SentenceTransformer(self.model_name)
            logger.info("Embedding model loaded")
        return self._model

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def _encode(self, texts: List[str]) -> List[List[float]]:
        embeddings = self.model.encode(
            texts,
            batch_size=self.batch_size,
            show_progress_bar=len(texts) > 100,
            normalize_embeddings=True
        )
        return embeddings.tolist()

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)


def get_embedder(provider: str = None) -> Embedder:
    """
    Build the embedder selected by settings.EMBEDDING_PROVIDER.

    Raises:
        ValueError: for an unknown provider name
    """
    provider = (provider or settings.EMBEDDING_PROVIDER).lower()

    if provider == "jina":
        return JinaEmbedder()
    if provider == "openai":
        return OpenAIEmbedder()
    if provider == "local":
        return SentenceTransformerEmbedder()

    raise ValueError(f"Unknown embedding provider: {provider}")
