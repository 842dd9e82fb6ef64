"""
Chat Service
Runs a chat turn through retrieval, generation and history persistence
"""

from typing import List

from newschat.core.exceptions import (
    ChatServiceError,
    NewsChatError,
    SessionResetError,
)
from newschat.core.locks import KeyedLock
from newschat.core.vector_store import NewsVectorStore, StoredDocument
from newschat.core.vector_store import vector_store as news_vector_store
from newschat.db.redis_client import RedisSessionStore, session_store
from newschat.llm.anthropic_client import AnthropicChatGateway, anthropic_gateway
from newschat.models.chat import ChatMessage
from newschat.utils.logger import get_logger


logger = get_logger(__name__)


class ChatService:
    """
    Coordinates the vector store, the generation gateway and the session store.

    Turns and resets of the same session are serialized; different
    sessions run concurrently.
    """

    def __init__(
        self,
        vector_store: NewsVectorStore = None,
        generator: AnthropicChatGateway = None,
        store: RedisSessionStore = None,
        locks: KeyedLock = None
    ):
        self.vector_store = vector_store or news_vector_store
        self.generator = generator or anthropic_gateway
        self.store = store or session_store
        self.locks = locks if locks is not None else KeyedLock()

    async def process_turn(self, session_id: str, query: str) -> str:
        """
        Answer a query and record the exchange.

        1. Retrieve the passage relevant to the query
        2. Generate the answer within the session's conversation
        3. Append both messages to the session history

        Raises:
            VectorStoreError, EmbeddingError, FetchError: retrieval failed
            GenerationError: the model call failed
            ChatServiceError: the answer was generated but not persisted
        """
        async with self.locks.acquire(session_id):
            passage = await self.vector_store.query(query)
            answer = await self.generator.answer(session_id, query, passage)

            try:
                await self.store.append(
                    session_id,
                    [ChatMessage.user(query), ChatMessage.assistant(answer)]
                )
            except NewsChatError as e:
                logger.error("Error saving chat interaction for %s: %s", session_id, e)
                raise ChatServiceError(f"Failed to save chat interaction: {e}") from e

        return answer

    async def get_history(self, session_id: str) -> List[ChatMessage]:
        """Stored chat history of a session."""
        try:
            return await self.store.load(session_id)
        except NewsChatError as e:
            logger.error("Error getting chat history for %s: %s", session_id, e)
            raise ChatServiceError(f"Failed to get chat history: {e}") from e

    async def reset_session(self, session_id: str):
        """
        Clear the stored history and restart the generation context.

        Raises:
            SessionResetError: only one of the two steps succeeded
            ChatServiceError: neither step succeeded
        """
        history_cleared = False
        context_reset = False
        first_error = None

        async with self.locks.acquire(session_id):
            try:
                await self.store.clear(session_id)
                history_cleared = True
            except NewsChatError as e:
                logger.error("Error clearing chat history for %s: %s", session_id, e)
                first_error = e

            try:
                self.generator.reset(session_id)
                context_reset = True
            except Exception as e:
                logger.error("Error resetting chat context for %s: %s", session_id, e)
                first_error = first_error or e

        if history_cleared and context_reset:
            logger.info("Session %s reset", session_id)
            return

        if history_cleared or context_reset:
            raise SessionResetError(session_id, history_cleared, context_reset) from first_error

        raise ChatServiceError(f"Failed to reset session {session_id}: {first_error}") from first_error

    async def refresh_embeddings(self):
        """Repopulate the news collection from the feed."""
        logger.info("Refreshing embeddings...")
        await self.vector_store.initialize(force_refresh=True)
        logger.info("Embeddings refreshed successfully")

    async def list_documents(self) -> List[StoredDocument]:
        return await self.vector_store.documents()


# Global instance
chat_service = ChatService()
