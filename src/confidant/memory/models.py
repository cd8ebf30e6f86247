"""Data models for the memory system."""

from dataclasses import dataclass, field
from typing import Any

USER = "user"
ASSISTANT = "assistant"
ROLES = (USER, ASSISTANT)


@dataclass
class UserProfile:
    """Everything remembered about one user.

    Attributes:
        user_id: Opaque, immutable user identifier.
        created_at: ISO timestamp when the profile was created.
        last_active_at: ISO timestamp of the last read or write.
        name: First name, if learned.
        age: Age in years, if learned.
        location: Where the user lives or comes from, if learned.
        interests: Things the user likes, in the order they were learned.
        preferences: Free-form key/value preferences (e.g. favoriteColor).
        facts: Free-text facts remembered verbatim, in insertion order.
        total_messages: Messages stored for this user, both roles.
    """

    user_id: str
    created_at: str
    last_active_at: str
    name: str | None = None
    age: int | None = None
    location: str | None = None
    interests: list[str] = field(default_factory=list)
    preferences: dict[str, str] = field(default_factory=dict)
    facts: list[str] = field(default_factory=list)
    total_messages: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serializable view, used by the inspection surfaces."""
        return {
            "user_id": self.user_id,
            "created_at": self.created_at,
            "last_active_at": self.last_active_at,
            "name": self.name,
            "age": self.age,
            "location": self.location,
            "interests": list(self.interests),
            "preferences": dict(self.preferences),
            "facts": list(self.facts),
            "total_messages": self.total_messages,
        }


@dataclass(frozen=True)
class Message:
    """A single stored message. Immutable once written."""

    message_id: str
    user_id: str
    role: str
    content: str
    timestamp: str


@dataclass(frozen=True)
class ProfileStats:
    """Summary counters for a user."""

    user_id: str
    name: str | None
    member_since: str
    last_active: str
    total_messages: int
    facts_stored: int
    interests_stored: int


@dataclass(frozen=True)
class ContextSnapshot:
    """Read-only bundle of profile and recent history assembled for one turn."""

    user_id: str
    name: str | None = None
    age: int | None = None
    location: str | None = None
    interests: tuple[str, ...] = ()
    preferences: tuple[tuple[str, str], ...] = ()
    facts: tuple[str, ...] = ()
    recent_messages: tuple[Message, ...] = ()
    total_messages: int = 0

    @classmethod
    def from_profile(
        cls, profile: UserProfile, recent_messages: list[Message]
    ) -> "ContextSnapshot":
        """Flatten a profile and a chronological message window."""
        return cls(
            user_id=profile.user_id,
            name=profile.name,
            age=profile.age,
            location=profile.location,
            interests=tuple(profile.interests),
            preferences=tuple(profile.preferences.items()),
            facts=tuple(profile.facts),
            recent_messages=tuple(recent_messages),
            total_messages=profile.total_messages,
        )
