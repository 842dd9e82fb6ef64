"""
Redis Client
Per-session chat history with expiry
"""

import json
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError
from redis import asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from newschat.config import settings
from newschat.core.exceptions import StoreConnectionError
from newschat.models.chat import ChatMessage
from newschat.utils.logger import get_logger


logger = get_logger(__name__)

CHAT_KEY_PREFIX = "chat:"

_history_adapter = TypeAdapter(List[ChatMessage])


def chat_key(session_id: str) -> str:
    return f"{CHAT_KEY_PREFIX}{session_id}"


def encode_history(messages: List[ChatMessage]) -> str:
    return json.dumps([m.model_dump(mode="json") for m in messages])


class RedisSessionStore:
    """
    Chat history persistence.

    Each session's history is one JSON array stored at ``chat:<session_id>``.
    Every write sets the full TTL again; reads never extend it.
    Values are read as raw bytes, so the client must not decode responses.
    """

    def __init__(self, redis_url: str = None, client: Optional[aioredis.Redis] = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self.client: Optional[aioredis.Redis] = client
        self.default_ttl = settings.CHAT_HISTORY_TTL_SECONDS

    async def connect(self):
        """
        Establish connection to Redis.

        Raises:
            StoreConnectionError: if the server does not answer
        """
        if self.client is None:
            self.client = aioredis.from_url(self.redis_url)

        try:
            await self.client.ping()
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            logger.error("Failed to connect to Redis at %s: %s", self.redis_url, e)
            raise StoreConnectionError(f"Failed to connect to Redis: {e}") from e

        logger.info("Connected to Redis at %s", self.redis_url)

    async def disconnect(self):
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Disconnected from Redis")

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            if self.client:
                await self.client.ping()
                return True
            return False
        except Exception:
            return False

    async def _get_client(self) -> aioredis.Redis:
        """Connect on first use."""
        if self.client is None:
            await self.connect()
        return self.client

    # ======================
    # Chat History
    # ======================

    async def save(
        self,
        session_id: str,
        messages: List[ChatMessage],
        ttl: int = None
    ):
        """Replace the whole history of a session and reset its expiry."""
        ttl = ttl or self.default_ttl
        client = await self._get_client()

        try:
            await client.set(chat_key(session_id), encode_history(messages), ex=ttl)
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Error saving chat history for %s: %s", session_id, e)
            raise StoreConnectionError(
                f"Failed to save chat history for session {session_id}: {e}"
            ) from e

    def _decode(self, session_id: str, raw: Optional[bytes]) -> List[ChatMessage]:
        """Stored history, or [] when absent or unreadable."""
        if not raw:
            return []

        try:
            return _history_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Error parsing chat history for session %s: %s", session_id, e)
            return []

    async def load(self, session_id: str) -> List[ChatMessage]:
        """Ordered chat history of a session."""
        client = await self._get_client()

        try:
            raw = await client.get(chat_key(session_id))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Error loading chat history for %s: %s", session_id, e)
            raise StoreConnectionError(
                f"Failed to load chat history for session {session_id}: {e}"
            ) from e

        return self._decode(session_id, raw)

    async def append(
        self,
        session_id: str,
        messages: List[ChatMessage],
        ttl: int = None
    ) -> List[ChatMessage]:
        """
        Append messages to a session's history.

        Uses an optimistic WATCH/MULTI transaction so a concurrent writer
        causes a retry instead of a lost update.

        Returns:
            The history as written
        """
        ttl = ttl or self.default_ttl
        key = chat_key(session_id)
        client = await self._get_client()

        try:
            async with client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(key)
                        history = self._decode(session_id, await pipe.get(key))
                        history.extend(messages)
                        pipe.multi()
                        pipe.set(key, encode_history(history), ex=ttl)
                        await pipe.execute()
                        return history
                    except WatchError:
                        logger.debug("Concurrent write on %s, retrying append", key)
                        continue
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Error appending chat history for %s: %s", session_id, e)
            raise StoreConnectionError(
                f"Failed to append chat history for session {session_id}: {e}"
            ) from e

    async def clear(self, session_id: str):
        """Delete a session's history."""
        client = await self._get_client()

        try:
            await client.delete(chat_key(session_id))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Error clearing chat history for %s: %s", session_id, e)
            raise StoreConnectionError(
                f"Failed to clear chat history for session {session_id}: {e}"
            ) from e

    async def exists(self, session_id: str) -> bool:
        """A session exists iff its history key is present."""
        client = await self._get_client()

        try:
            return bool(await client.exists(chat_key(session_id)))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Error checking session %s: %s", session_id, e)
            raise StoreConnectionError(f"Failed to check session {session_id}: {e}") from e

    async def ttl(self, session_id: str) -> int:
        """Remaining lifetime of a session's history in seconds."""
        client = await self._get_client()

        try:
            return await client.ttl(chat_key(session_id))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Error reading TTL for session %s: %s", session_id, e)
            raise StoreConnectionError(f"Failed to read TTL for session {session_id}: {e}") from e


# Global instance
session_store = RedisSessionStore()
