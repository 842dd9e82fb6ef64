"""
Anthropic Client
Per-session conversations with Claude, grounded on retrieved passages
"""

import copy
import time
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Set

from anthropic import AsyncAnthropic

from newschat.config import settings
from newschat.core.exceptions import GenerationError
from newschat.llm.prompts import (
    FALLBACK_ANSWER,
    GREETING_TURNS,
    SYSTEM_INSTRUCTION,
    build_passage_prompt,
)
from newschat.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters fixed for the lifetime of a conversation."""
    temperature: float = 0.5
    top_p: float = 0.2
    top_k: int = 40
    system_instruction: str = SYSTEM_INSTRUCTION

    @classmethod
    def from_settings(cls) -> "GenerationConfig":
        return cls(
            temperature=settings.LLM_TEMPERATURE,
            top_p=settings.LLM_TOP_P,
            top_k=settings.LLM_TOP_K,
        )

    def merged(self, overrides: Optional[Mapping[str, Any]] = None) -> "GenerationConfig":
        """
        Copy with overrides applied.

        Raises:
            ValueError: for keys that are not generation parameters
        """
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown generation parameters: {sorted(unknown)}")
        return replace(self, **overrides)


@dataclass
class ChatContext:
    """Conversation state of one session."""
    config: GenerationConfig
    messages: List[Dict[str, str]] = field(
        default_factory=lambda: copy.deepcopy(GREETING_TURNS)
    )
    last_used: float = 0.0


class AnthropicChatGateway:
    """
    Answers questions against a passage, keeping one conversation per session.

    Conversations are created lazily on first use and keep the parameters
    they were created with until reset(). A conversation unused for longer
    than idle_ttl seconds is gone, like the session history it belongs to.
    """

    def __init__(
        self,
        client: AsyncAnthropic = None,
        contexts: MutableMapping[str, ChatContext] = None,
        default_config: GenerationConfig = None,
        model: str = None,
        max_tokens: int = None,
        idle_ttl: float = None,
        max_history_messages: int = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self._client = client
        self.contexts: MutableMapping[str, ChatContext] = contexts if contexts is not None else {}
        self.default_config = default_config or GenerationConfig.from_settings()
        self.model = model or settings.LLM_MODEL
        self.max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self.idle_ttl = idle_ttl if idle_ttl is not None else settings.CHAT_HISTORY_TTL_SECONDS
        if max_history_messages is None:
            max_history_messages = settings.LLM_MAX_HISTORY_MESSAGES
        # whole user/assistant exchanges only
        self.max_history_messages = max_history_messages - max_history_messages % 2
        self._clock = clock

    @property
    def client(self) -> AsyncAnthropic:
        """Lazy load the Anthropic client."""
        if self._client is None:
            self._client = AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
        return self._client

    def _create_context(
        self,
        session_id: str,
        overrides: Optional[Mapping[str, Any]] = None
    ) -> ChatContext:
        config = self.default_config.merged(overrides)
        self.evict_idle()
        context = ChatContext(config=config, last_used=self._clock())
        self.contexts[session_id] = context
        logger.debug("Created chat context for session %s", session_id)
        return context

    def _is_expired(self, context: ChatContext, now: float) -> bool:
        return now - context.last_used > self.idle_ttl

    def _live_context(self, session_id: str) -> Optional[ChatContext]:
        context = self.contexts.get(session_id)
        if context is None or self._is_expired(context, self._clock()):
            return None
        return context

    def _get_or_create_context(
        self,
        session_id: str,
        overrides: Optional[Mapping[str, Any]] = None
    ) -> ChatContext:
        context = self._live_context(session_id)
        if context is not None:
            return context
        return self._create_context(session_id, overrides)

    def _trim(self, context: ChatContext):
        greeting = len(GREETING_TURNS)
        excess = len(context.messages) - greeting - self.max_history_messages
        if excess > 0:
            del context.messages[greeting:greeting + excess]

    def evict_idle(self) -> int:
        """Drop conversations idle for longer than idle_ttl. Returns how many."""
        now = self._clock()
        expired = [sid for sid, ctx in self.contexts.items() if self._is_expired(ctx, now)]
        for session_id in expired:
            del self.contexts[session_id]
        if expired:
            logger.debug("Evicted %d idle chat contexts", len(expired))
        return len(expired)

    async def answer(
        self,
        session_id: str,
        query: str,
        passage: str,
        overrides: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Answer a query using a retrieved passage.

        Args:
            session_id: Conversation to continue
            query: User's question
            passage: Retrieved context
            overrides: Generation parameters, only used when the
                conversation does not exist yet

        Returns:
            Model text, or the fallback answer if the model returned none

        Raises:
            GenerationError: if the API call fails
        """
        context = self._get_or_create_context(session_id, overrides)
        config = context.config

        user_turn = {"role": "user", "content": build_passage_prompt(query, passage)}

        try:
            response = await self.client.messages.create(
                model=self.model,
                system=config.system_instruction,
                messages=context.messages + [user_turn],
                max_tokens=self.max_tokens,
                temperature=config.temperature,
                top_p=config.top_p,
                top_k=config.top_k
            )
        except Exception as e:
            logger.error("Generation failed for session %s: %s", session_id, e)
            raise GenerationError(f"Failed to generate response: {e}") from e

        text = "".join(
            block.text
            for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        ).strip()

        context.last_used = self._clock()

        if not text:
            return FALLBACK_ANSWER

        context.messages.append(user_turn)
        context.messages.append({"role": "assistant", "content": text})
        self._trim(context)
        return text

    def reset(
        self,
        session_id: str,
        overrides: Optional[Mapping[str, Any]] = None
    ) -> ChatContext:
        """Discard a session's conversation and start a fresh one."""
        self.contexts.pop(session_id, None)
        return self._create_context(session_id, overrides)

    def list_active_sessions(self) -> Set[str]:
        now = self._clock()
        return {sid for sid, ctx in self.contexts.items() if not self._is_expired(ctx, now)}

    def has_session(self, session_id: str) -> bool:
        return self._live_context(session_id) is not None

    def get_history(self, session_id: str) -> Optional[List[Dict[str, str]]]:
        """Messages of a session's conversation, None if it has none."""
        context = self._live_context(session_id)
        return list(context.messages) if context else None


# Global instance
anthropic_gateway = AnthropicChatGateway()
