"""Memory module: user profiles, message history and fact extraction."""

from .database import Database
from .extractor import (
    DEFAULT_RULES,
    Candidate,
    ExtractionRule,
    FactExtractor,
    MergePolicy,
    ProfileDelta,
)
from .history import HistoryStore
from .manager import MemoryManager
from .models import ContextSnapshot, Message, ProfileStats, UserProfile
from .profiles import ProfileStore

__all__ = [
    "Candidate",
    "ContextSnapshot",
    "DEFAULT_RULES",
    "Database",
    "ExtractionRule",
    "FactExtractor",
    "HistoryStore",
    "MemoryManager",
    "MergePolicy",
    "Message",
    "ProfileDelta",
    "ProfileStats",
    "ProfileStore",
    "UserProfile",
]
