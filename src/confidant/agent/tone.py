"""Coarse emotional tone detection."""

import re
from enum import Enum


class Tone(Enum):
    """Emotional category of a single message."""

    SAD = "sad"
    EXCITED = "excited"
    ANGRY = "angry"
    NEUTRAL = "neutral"


_SAD = re.compile(
    r"\b(?:sad(?:ly|ness)?|depress\w*|down|upset|cr(?:y|ies|ying|ied)"
    r"|terribl[ey]|awful(?:ly)?|hat(?:e|ed|es|ing)|worst)\b",
    re.IGNORECASE,
)
_EXCITED = re.compile(
    r"\b(?:yay|awesome|amazing|excit\w*|great\w*|lov(?:e|ed|es|ing|ely)|best"
    r"|wo+hoo+|celebrat\w*)\b",
    re.IGNORECASE,
)
_ANGRY = re.compile(
    r"\b(?:angry|angrily|mad(?:der|dening)?|furious|annoy\w*|frustrat\w*|irritat\w*)\b",
    re.IGNORECASE,
)
_EXCLAMATIONS = re.compile(r"!{2,}")

# Checked in order; the first match wins.
_CHECKS: tuple[tuple[Tone, tuple[re.Pattern[str], ...]], ...] = (
    (Tone.SAD, (_SAD,)),
    (Tone.EXCITED, (_EXCITED, _EXCLAMATIONS)),
    (Tone.ANGRY, (_ANGRY,)),
)


def detect_tone(message: str) -> Tone:
    """Classify a message as sad, excited, angry or neutral."""
    for tone, patterns in _CHECKS:
        if any(p.search(message) for p in patterns):
            return tone
    return Tone.NEUTRAL
