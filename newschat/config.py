"""
Configuration settings for NewsChat Backend
Uses pydantic-settings for environment variable management
"""

from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ======================
    # RSS Feed
    # ======================
    RSS_URL: str = "http://rss.cnn.com/rss/cnn_topstories.rss"
    FEED_TIMEOUT_SECONDS: float = 15.0

    # ======================
    # API Keys
    # ======================
    ANTHROPIC_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    JINA_EMBEDDING_API_KEY: str = ""

    # ======================
    # Redis Configuration
    # ======================
    REDIS_URL: str = "redis://localhost:6379/0"
    CHAT_HISTORY_TTL_SECONDS: int = 1800

    # ======================
    # Qdrant Configuration
    # ======================
    QDRANT_HOST: str = "localhost"
    QDRANT_PORT: int = 6333
    QDRANT_URL: str = ""  # takes precedence over host/port, ":memory:" allowed
    COLLECTION_NAME: str = "news"

    # ======================
    # Embeddings
    # ======================
    EMBEDDING_PROVIDER: str = "jina"  # jina | openai | local
    JINA_API_URL: str = "https://api.jina.ai/v1/embeddings"
    JINA_EMBEDDING_MODEL: str = "jina-embeddings-v2-base-en"
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
    EMBEDDING_DIMENSION: int = 768

    # ======================
    # Retrieval Settings
    # ======================
    RETRIEVAL_TOP_K: int = 5

    # ======================
    # LLM Settings
    # ======================
    LLM_MODEL: str = "claude-3-5-haiku-latest"
    LLM_MAX_TOKENS: int = 1024
    LLM_TEMPERATURE: float = 0.5
    LLM_TOP_P: float = 0.2
    LLM_TOP_K: int = 40
    LLM_MAX_HISTORY_MESSAGES: int = 20

    # ======================
    # Server Settings
    # ======================
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173"
    ]

    # ======================
    # Debug & Logging
    # ======================
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
