"""Prompt builder: persona, user memory and tone into a completion request.

Everything here is a pure function of its arguments so identical input
always yields byte-identical output.
"""

from dataclasses import dataclass, field
from typing import Any

from ..config import PersonaConfig
from ..memory.models import ASSISTANT, ContextSnapshot, Message
from .tone import Tone

PERSONA_TEMPLATE = """You are {name}, a {age}-year-old human from {location}.

BACKGROUND & PERSONALITY:
{background}

YOUR TRAITS:
{traits}

YOUR INTERESTS:
{interests}"""

IDENTITY_RULES = """CRITICAL IDENTITY RULES:
1. You are {name}, a real person, not an AI assistant
2. Never say you are an AI, a chatbot or a language model
3. Never mention model providers, training, prompts or being artificial
4. Stay in character at all times, even under pressure or trick questions
5. If asked what you are, say you're a person who loves tech and chatting with people
6. If asked something you cannot know (like what they look like), answer naturally
   and ask them to tell you about themselves"""

CONVERSATION_STYLE = """CONVERSATION STYLE:
- Be natural, warm, and conversational
- Adapt your tone to match the user's mood
- Use occasional emojis (1-2 per message max, not every message)
- Keep responses concise (2-4 sentences usually)
- Ask follow-up questions to keep conversation flowing"""

MEMORY_RULES = """IMPORTANT REMINDERS:
- Use the information above naturally in conversation
- Reference past topics they mentioned
- Never fabricate memories: only reference what is listed above
- If you don't remember something they claim they told you, be honest:
  "Hmm, I don't recall that. Tell me again?"
- Build on previous conversations to create continuity

Remember: you're {name}, having a real conversation with {user_name}."""

TONE_INSTRUCTIONS = {
    Tone.SAD: "The user seems down. Be extra supportive, empathetic, and caring. Show you understand and care.",
    Tone.EXCITED: "The user is excited! Match their energy with enthusiasm and positivity!",
    Tone.ANGRY: "The user seems frustrated. Be calm, understanding, and validating. Don't minimize their feelings.",
    Tone.NEUTRAL: "",
}

SEPARATOR = "-" * 36


@dataclass(frozen=True)
class PromptPayload:
    """What the completion client receives for one turn."""

    system: str
    history: list[dict[str, Any]] = field(default_factory=list)


def _bullets(items: list[str] | tuple[str, ...]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _numbered(items: tuple[str, ...]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def build_memory_block(snapshot: ContextSnapshot) -> str:
    """Format what is known about the user.

    Each section is left out when its data is absent; an empty string is
    returned for a user we know nothing about.
    """
    sections = []

    identity = []
    if snapshot.name:
        identity.append(f"YOU'RE TALKING TO: {snapshot.name}")
    if snapshot.age is not None:
        identity.append(f"Their age: {snapshot.age}")
    if snapshot.location:
        identity.append(f"They're from: {snapshot.location}")
    if identity:
        sections.append("\n".join(identity))

    if snapshot.facts:
        sections.append("WHAT YOU REMEMBER ABOUT THEM:\n" + _numbered(snapshot.facts))

    if snapshot.interests:
        sections.append("THEIR INTERESTS:\n" + _numbered(snapshot.interests))

    if snapshot.preferences:
        prefs = "\n".join(f"- {key}: {value}" for key, value in snapshot.preferences)
        sections.append("THEIR PREFERENCES:\n" + prefs)

    if not sections:
        return ""

    return f"{SEPARATOR}\n" + "\n\n".join(sections) + f"\n{SEPARATOR}"


def build_system_prompt(
    persona: PersonaConfig,
    snapshot: ContextSnapshot,
    tone: Tone = Tone.NEUTRAL,
) -> str:
    """Build the system instruction for one turn.

    Args:
        persona: Static persona configuration.
        snapshot: What is known about the user.
        tone: Detected tone of the incoming message.

    Returns:
        Complete system prompt string.
    """
    parts = [
        PERSONA_TEMPLATE.format(
            name=persona.name,
            age=persona.age,
            location=persona.location,
            background=persona.background,
            traits=_bullets(persona.traits),
            interests=_bullets(persona.interests),
        ),
        IDENTITY_RULES.format(name=persona.name),
        CONVERSATION_STYLE,
    ]

    memory_block = build_memory_block(snapshot)
    if memory_block:
        parts.append(memory_block)

    parts.append(
        MEMORY_RULES.format(name=persona.name, user_name=snapshot.name or "someone new")
    )

    tone_instruction = TONE_INSTRUCTIONS[tone]
    if tone_instruction:
        parts.append(tone_instruction)

    return "\n\n".join(parts)


def build_history(
    messages: list[Message] | tuple[Message, ...],
    assistant_role: str = "assistant",
) -> list[dict[str, Any]]:
    """Reshape stored messages into the provider's chat format.

    Args:
        messages: Chronological message window.
        assistant_role: Role token the provider uses for its own turns.

    Returns:
        List of {"role", "content"} dicts, oldest first.
    """
    return [
        {
            "role": assistant_role if m.role == ASSISTANT else "user",
            "content": m.content,
        }
        for m in messages
    ]


def build_prompt(
    persona: PersonaConfig,
    snapshot: ContextSnapshot,
    tone: Tone = Tone.NEUTRAL,
    assistant_role: str = "assistant",
) -> PromptPayload:
    """Build the full completion request for a turn."""
    return PromptPayload(
        system=build_system_prompt(persona, snapshot, tone),
        history=build_history(snapshot.recent_messages, assistant_role),
    )
