"""Conversation orchestrator: one turn from user message to reply."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..config import ChatConfig, PersonaConfig
from ..errors import (
    CompletionCategory,
    CompletionFailure,
    StorageUnavailable,
    ValidationError,
)
from ..logging import JSONLLogger, get_logger
from ..memory import ContextSnapshot, MemoryManager, Message, ProfileStats, UserProfile
from .llm_client import CompletionClient
from .prompt import build_prompt
from .tone import Tone, detect_tone

logger = logging.getLogger(__name__)

APOLOGIES = {
    CompletionCategory.AUTH: (
        "Oops! There's an issue with my configuration. Let me know and I'll get it fixed!"
    ),
    CompletionCategory.RATE_LIMIT: (
        "Whoa, I've been chatting a lot today! Give me a moment to catch my breath. 😅"
    ),
    CompletionCategory.NETWORK: (
        "Hmm, seems like I'm having trouble connecting. Can you try again in a sec?"
    ),
    CompletionCategory.GENERIC: "Sorry, I got a bit confused there. Mind rephrasing that?",
}


def apology_for(category: CompletionCategory) -> str:
    """User-safe reply for a failed generation."""
    return APOLOGIES.get(category, APOLOGIES[CompletionCategory.GENERIC])


class TurnStage(Enum):
    """Stages of a turn, in order."""

    LOAD_CONTEXT = "load_context"
    DETECT_TONE = "detect_tone"
    BUILD_PROMPT = "build_prompt"
    GENERATE = "generate"
    PERSIST = "persist"
    EXTRACT_FACTS = "extract_facts"
    RETURN = "return"


@dataclass
class TurnResult:
    """Result of one turn.

    Attributes:
        reply: Text to show the user, a generated reply or an apology.
        tone: Tone detected in the user message.
        snapshot: Context the prompt was built from.
        degraded: True if generation failed or memory could not be saved.
        failed_stage: Stage where the first failure happened, if any.
        learned: Profile fields updated by extraction.
        persisted: Messages written for this turn.
    """

    reply: str
    tone: Tone
    snapshot: ContextSnapshot
    degraded: bool = False
    failed_stage: TurnStage | None = None
    learned: list[str] = field(default_factory=list)
    persisted: list[Message] = field(default_factory=list)


class Orchestrator:
    """Runs turns: load context → detect tone → build prompt → generate → persist → extract."""

    def __init__(
        self,
        memory: MemoryManager,
        llm: CompletionClient,
        persona: PersonaConfig | None = None,
        config: ChatConfig | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        self.memory = memory
        self.llm = llm
        self.persona = persona or PersonaConfig()
        self.config = config or ChatConfig()
        self.events = event_logger or get_logger()

    def validate(self, user_id: str, message: str) -> str:
        """Check turn input and return the trimmed message.

        Raises:
            ValidationError: If the user id or message is unusable.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("user_id is required")
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Message must be a non-empty string")
        if len(message) > self.config.max_message_length:
            raise ValidationError(
                f"Message must be {self.config.max_message_length} characters or less"
            )
        return message.strip()

    async def handle_turn(self, user_id: str, message: str) -> str:
        """Process one user message and return the reply.

        Raises:
            ValidationError: Before anything is read or written, for bad input.
        """
        result = await self.run_turn(user_id, message)
        return result.reply

    async def run_turn(self, user_id: str, message: str) -> TurnResult:
        """Process one user message.

        Args:
            user_id: The user identifier.
            message: The user's message.

        Returns:
            TurnResult with the reply and what happened along the way.

        Raises:
            ValidationError: For empty or oversized input.
        """
        try:
            message = self.validate(user_id, message)
        except ValidationError as e:
            self.events.log("validation_error", user_id=user_id or None, error=str(e))
            raise

        start_time = time.time()

        # Load context
        try:
            snapshot = self.memory.load_context(user_id, self.config.context_window)
            load_failed = False
        except StorageUnavailable as e:
            logger.warning(f"Could not load context for {user_id}: {e}")
            self.events.log_storage_error(user_id, TurnStage.LOAD_CONTEXT.value, str(e))
            snapshot = ContextSnapshot(user_id=user_id)
            load_failed = True

        # Detect tone, build prompt
        tone = detect_tone(message)
        payload = build_prompt(
            self.persona, snapshot, tone, assistant_role=self.llm.assistant_role
        )

        result = TurnResult(reply="", tone=tone, snapshot=snapshot)
        if load_failed:
            result.degraded = True
            result.failed_stage = TurnStage.LOAD_CONTEXT

        # Generate
        try:
            reply = await asyncio.wait_for(
                self.llm.complete(payload.system, payload.history, message),
                timeout=self.config.completion_timeout,
            )
        except Exception as e:
            category = self._categorize(e)
            logger.warning(f"Completion failed for {user_id} ({category.value}): {e!r}")
            self.events.log_completion_error(user_id, category.value, repr(e))
            result.reply = apology_for(category)
            result.degraded = True
            result.failed_stage = result.failed_stage or TurnStage.GENERATE
            return result

        result.reply = reply

        # Persist
        try:
            result.persisted = self.memory.save_exchange(user_id, message, reply)
        except StorageUnavailable as e:
            logger.warning(f"Could not save messages for {user_id}: {e}")
            self.events.log_storage_error(user_id, TurnStage.PERSIST.value, str(e))
            result.degraded = True
            result.failed_stage = result.failed_stage or TurnStage.PERSIST

        # Extract facts
        try:
            delta = self.memory.learn(user_id, message)
            result.learned = delta.fields()
            if result.learned:
                self.events.log_facts_learned(user_id, result.learned)
        except Exception as e:
            logger.warning(f"Fact extraction failed for {user_id}: {e!r}")
            self.events.log(
                "extraction_error",
                user_id=user_id,
                stage=TurnStage.EXTRACT_FACTS.value,
                error=repr(e),
            )
            result.degraded = True
            result.failed_stage = result.failed_stage or TurnStage.EXTRACT_FACTS

        self.events.log_turn(
            user_id,
            tone=tone.value,
            duration_ms=(time.time() - start_time) * 1000,
            history_size=len(snapshot.recent_messages),
            degraded=result.degraded,
        )
        return result

    def _categorize(self, error: BaseException) -> CompletionCategory:
        if isinstance(error, CompletionFailure):
            if error.category is CompletionCategory.MALFORMED:
                return CompletionCategory.GENERIC
            return error.category
        if isinstance(error, asyncio.TimeoutError):
            return CompletionCategory.NETWORK
        return CompletionCategory.GENERIC

    def get_profile_and_stats(self, user_id: str) -> tuple[UserProfile, ProfileStats]:
        """Profile and statistics for the inspection surfaces."""
        return self.memory.profile_and_stats(user_id)

    def get_history(self, user_id: str, limit: int = 50) -> list[Message]:
        """Most recent messages for a user, oldest first."""
        return self.memory.recent_messages(user_id, limit)

    def update_profile(self, user_id: str, **fields: Any) -> UserProfile:
        """Explicitly set profile fields, overwriting identity scalars.

        Raises:
            ValueError: If a field is not updatable.
        """
        self.memory.profiles.apply_updates(user_id, fields)
        return self.memory.profiles.get_or_create(user_id)

    async def health(self) -> dict[str, Any]:
        """Check the store and the completion provider."""
        status: dict[str, Any] = {"store": False, "llm": False}

        try:
            status["store"] = self.memory.profiles.db.ping()
        except StorageUnavailable as e:
            status["store_error"] = str(e)

        try:
            await asyncio.wait_for(
                self.llm.complete("", [], "Hello"),
                timeout=self.config.completion_timeout,
            )
            status["llm"] = True
        except (CompletionFailure, asyncio.TimeoutError) as e:
            status["llm_error"] = repr(e)

        status["status"] = "healthy" if status["store"] and status["llm"] else "unhealthy"
        return status
