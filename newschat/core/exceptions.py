"""
Exceptions
Error taxonomy shared by the ingestion, retrieval, generation and session layers
"""


class NewsChatError(Exception):
    """Base class for every error raised by NewsChat components."""


class FetchError(NewsChatError):
    """The RSS feed could not be fetched or parsed."""


class StoreConnectionError(NewsChatError, ConnectionError):
    """Redis or Qdrant could not be reached."""


class EmbeddingError(NewsChatError):
    """The embedding provider failed to embed a batch of texts."""


class VectorStoreError(NewsChatError):
    """A collection operation failed."""


class CollectionNotInitializedError(VectorStoreError):
    """The gateway reports itself initialized but holds no collection."""


class GenerationError(NewsChatError):
    """The text generation call failed."""


class ChatServiceError(NewsChatError):
    """A chat turn or session operation failed in the orchestrator."""


class SessionResetError(ChatServiceError):
    """Only one half of a session reset completed."""

    def __init__(self, session_id: str, history_cleared: bool, context_reset: bool):
        self.session_id = session_id
        self.history_cleared = history_cleared
        self.context_reset = context_reset
        failed = "generation context" if history_cleared else "chat history"
        super().__init__(
            f"Session {session_id} partially reset: failed to reset {failed}"
        )
