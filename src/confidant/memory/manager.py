"""Memory manager coordinating the stores and the fact extractor."""

from __future__ import annotations

import logging

from .extractor import FactExtractor, ProfileDelta
from .history import HistoryStore
from .models import ContextSnapshot, Message, ProfileStats, UserProfile
from .profiles import ProfileStore

logger = logging.getLogger(__name__)


class MemoryManager:
    """Main interface of the memory system.

    Reads context snapshots for the orchestrator and routes every write
    through the stores' update and append operations.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        history: HistoryStore,
        extractor: FactExtractor | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            profiles: Store for user profiles.
            history: Store for conversation messages.
            extractor: Fact extractor, the default rule table if omitted.
        """
        self.profiles = profiles
        self.history = history
        self.extractor = extractor or FactExtractor()

    def load_context(self, user_id: str, window: int = 5) -> ContextSnapshot:
        """Build the context snapshot for a turn.

        Args:
            user_id: The user identifier.
            window: Number of recent messages to include.

        Returns:
            Profile fields plus the last `window` messages, oldest first.
        """
        profile = self.profiles.get_or_create(user_id)
        recent = self.history.recent(user_id, window)
        return ContextSnapshot.from_profile(profile, recent)

    def save_exchange(self, user_id: str, message: str, reply: str) -> list[Message]:
        """Persist a user message followed by the assistant's reply, atomically."""
        return self.history.append_exchange(user_id, message, reply)

    def learn(self, user_id: str, message: str) -> ProfileDelta:
        """Extract facts from a user message and store what is new.

        Args:
            user_id: The user identifier.
            message: The user's message (never the reply).

        Returns:
            The applied delta, empty if nothing new was learned.
        """
        profile = self.profiles.get_or_create(user_id)
        delta = self.extractor.propose(profile, message)
        if delta.is_empty():
            return delta

        updates = delta.to_updates()
        if updates:
            self.profiles.apply_updates(user_id, updates)
        for fact in delta.facts:
            self.profiles.append_fact(user_id, fact)

        logger.info(f"Learned {delta.fields()} for {user_id}")
        return delta

    def profile_and_stats(self, user_id: str) -> tuple[UserProfile, ProfileStats]:
        """Profile plus summary counters, for inspection."""
        profile = self.profiles.get_or_create(user_id)
        return profile, self.profiles.stats(user_id)

    def recent_messages(self, user_id: str, limit: int = 10) -> list[Message]:
        return self.history.recent(user_id, limit)
