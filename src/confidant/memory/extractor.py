"""Rule-based fact extraction from user messages.

Each rule pairs a regular expression with the profile field it feeds and
the merge policy used when the field already holds a value. Extraction
itself is pure: `extract` proposes candidates, `resolve` decides which of
them change a given profile. Writing the result is the MemoryManager's job.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import UserProfile


class MergePolicy(Enum):
    """How a candidate value merges into an existing profile field."""

    FIRST_WRITE = "first_write"
    OVERWRITE = "overwrite"
    APPEND_UNIQUE = "append_unique"


@dataclass(frozen=True)
class ExtractionRule:
    """One pattern and the field it populates.

    Attributes:
        name: Rule identifier, used in logs.
        pattern: Compiled pattern; group 1 holds the raw value.
        field: Profile field (name, age, location, preferences, interests, facts).
        policy: Merge policy for the field.
        transform: Normalizes the raw match; returning None rejects it.
        key: Preference key, only for the preferences field.
    """

    name: str
    pattern: re.Pattern[str]
    field: str
    policy: MergePolicy
    transform: Callable[[str], Any]
    key: str | None = None


@dataclass(frozen=True)
class Candidate:
    """A proposed profile update produced by a rule."""

    rule: str
    field: str
    value: Any
    policy: MergePolicy
    key: str | None = None


@dataclass
class ProfileDelta:
    """The subset of candidates that actually changes a profile."""

    scalars: dict[str, Any] = field(default_factory=dict)
    preferences: dict[str, str] = field(default_factory=dict)
    interests: list[str] = field(default_factory=list)
    facts: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.scalars or self.preferences or self.interests or self.facts)

    def fields(self) -> list[str]:
        """Names of the fields this delta touches."""
        names = list(self.scalars)
        names += [f"preferences.{k}" for k in self.preferences]
        if self.interests:
            names.append("interests")
        if self.facts:
            names.append("facts")
        return names

    def to_updates(self) -> dict[str, Any]:
        """Shape accepted by ProfileStore.apply_updates (facts excluded)."""
        updates: dict[str, Any] = dict(self.scalars)
        if self.preferences:
            updates["preferences"] = dict(self.preferences)
        if self.interests:
            updates["interests"] = list(self.interests)
        return updates


# Words that follow "i'm" / "i am" without being a name.
NOT_A_NAME = frozenset({
    "a", "an", "the", "so", "not", "very", "really", "just", "also", "still",
    "from", "in", "at", "on", "here", "back", "fine", "good", "great", "okay",
    "ok", "sure", "sorry", "glad", "happy", "sad", "tired", "excited", "angry",
    "bored", "busy", "feeling", "going", "doing", "trying", "looking", "working",
    "living", "done", "gonna", "kinda", "well", "new", "too", "always", "never",
})

_CLAUSE_BREAK = re.compile(r"\s+(?:and|but)\b.*$", re.IGNORECASE | re.DOTALL)


def _name(raw: str) -> str | None:
    if raw.lower() in NOT_A_NAME:
        return None
    return raw[0].upper() + raw[1:]


def _age(raw: str) -> int | None:
    age = int(raw)
    return age if 0 < age < 150 else None


def _location(raw: str) -> str | None:
    return _CLAUSE_BREAK.sub("", raw).strip() or None


def _phrase(raw: str) -> str | None:
    return raw.strip() or None


def _fact(raw: str) -> str | None:
    return raw.strip().rstrip(".!?").strip() or None


DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule(
        name="name",
        pattern=re.compile(r"\b(?:my name is|i['’]m|i am|call me)\s+([a-z]+)\b", re.IGNORECASE),
        field="name",
        policy=MergePolicy.FIRST_WRITE,
        transform=_name,
    ),
    ExtractionRule(
        name="age",
        pattern=re.compile(r"\b(?:i am|i['’]m)\s+(\d+)\s*(?:years old|yrs old)?", re.IGNORECASE),
        field="age",
        policy=MergePolicy.FIRST_WRITE,
        transform=_age,
    ),
    ExtractionRule(
        name="location",
        pattern=re.compile(r"\b(?:i live in|i['’]m from|from)\s+([a-z\s]+)", re.IGNORECASE),
        field="location",
        policy=MergePolicy.FIRST_WRITE,
        transform=_location,
    ),
    ExtractionRule(
        name="favorite_color",
        pattern=re.compile(r"\b(?:favorite|favourite)\s+colou?r\s+is\s+(\w+)", re.IGNORECASE),
        field="preferences",
        policy=MergePolicy.OVERWRITE,
        transform=_phrase,
        key="favoriteColor",
    ),
    ExtractionRule(
        name="interest",
        pattern=re.compile(r"\bi\s+(?:love|like|enjoy)\s+([a-z\s]+)", re.IGNORECASE),
        field="interests",
        policy=MergePolicy.APPEND_UNIQUE,
        transform=_phrase,
    ),
    ExtractionRule(
        name="remember",
        pattern=re.compile(r"\bremember\s+that\s+(.+)", re.IGNORECASE | re.DOTALL),
        field="facts",
        policy=MergePolicy.APPEND_UNIQUE,
        transform=_fact,
    ),
)


class FactExtractor:
    """Extracts profile updates from a message using a rule table."""

    def __init__(self, rules: tuple[ExtractionRule, ...] | None = None) -> None:
        """Initialize the extractor.

        Args:
            rules: Rules to apply, DEFAULT_RULES if omitted.
        """
        self.rules = DEFAULT_RULES if rules is None else rules

    def extract(self, text: str) -> list[Candidate]:
        """Run every rule over the text.

        Each rule contributes at most one candidate: its first match whose
        value survives the rule's transform.

        Args:
            text: The user's message.

        Returns:
            Candidates in rule order, empty if nothing matched.
        """
        candidates = []
        for rule in self.rules:
            for match in rule.pattern.finditer(text):
                value = rule.transform(match.group(1))
                if value is None:
                    continue
                candidates.append(
                    Candidate(
                        rule=rule.name,
                        field=rule.field,
                        value=value,
                        policy=rule.policy,
                        key=rule.key,
                    )
                )
                break
        return candidates

    def resolve(self, profile: UserProfile, candidates: list[Candidate]) -> ProfileDelta:
        """Keep only the candidates that change the profile.

        First-write fields are skipped once set, append-unique values are
        skipped when already present, overwrite values always apply.

        Args:
            profile: Current profile snapshot.
            candidates: Output of `extract`.

        Returns:
            The resulting delta, possibly empty.
        """
        delta = ProfileDelta()
        for candidate in candidates:
            if candidate.policy is MergePolicy.FIRST_WRITE:
                if getattr(profile, candidate.field) is None and candidate.field not in delta.scalars:
                    delta.scalars[candidate.field] = candidate.value

            elif candidate.policy is MergePolicy.OVERWRITE:
                if candidate.field == "preferences":
                    delta.preferences[candidate.key or candidate.rule] = candidate.value
                else:
                    delta.scalars[candidate.field] = candidate.value

            elif candidate.policy is MergePolicy.APPEND_UNIQUE:
                existing = getattr(profile, candidate.field)
                pending = getattr(delta, candidate.field)
                if candidate.value not in existing and candidate.value not in pending:
                    pending.append(candidate.value)

        return delta

    def propose(self, profile: UserProfile, text: str) -> ProfileDelta:
        """Extract from text and resolve against the profile in one step."""
        return self.resolve(profile, self.extract(text))
