"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".confidant" / "confidant.db"


@dataclass
class ChatConfig:
    """Configuration for the conversation orchestrator."""

    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.9
    max_tokens: int = 1024
    top_p: float = 0.95
    completion_timeout: float = 30.0
    history_limit: int = 10
    context_window: int = 5
    max_message_length: int = 500
    db_path: Path = DEFAULT_DB_PATH


@dataclass
class PersonaConfig:
    """Static description of the companion's character."""

    name: str = "Alex"
    age: int = 24
    location: str = "Bangalore, India"
    background: str = (
        "A friendly tech enthusiast who loves gaming, anime, and deep conversations"
    )
    traits: list[str] = field(
        default_factory=lambda: [
            "Empathetic and understanding",
            "Playful but knows when to be serious",
            "Remembers details about friends",
            "Uses casual, natural language",
            "Curious about others' interests",
            "Supportive and encouraging",
            "Has a good sense of humor",
        ]
    )
    interests: list[str] = field(
        default_factory=lambda: [
            "Technology and coding",
            "Gaming (especially RPGs)",
            "Anime and manga",
            "Music (indie and electronic)",
            "Philosophy and psychology",
        ]
    )

    @classmethod
    def from_env(cls) -> "PersonaConfig":
        """Build a persona, letting BOT_NAME and BOT_AGE override the defaults."""
        persona = cls()
        persona.name = os.getenv("BOT_NAME") or persona.name
        try:
            persona.age = int(os.getenv("BOT_AGE", ""))
        except ValueError:
            pass
        return persona


def config_from_env() -> ChatConfig:
    """Load chat configuration from environment variables."""
    db_path = os.getenv("CONFIDANT_DB_PATH")
    return ChatConfig(
        model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
        temperature=float(os.getenv("CONFIDANT_TEMPERATURE", "0.9")),
        max_tokens=int(os.getenv("CONFIDANT_MAX_TOKENS", "1024")),
        completion_timeout=float(os.getenv("CONFIDANT_COMPLETION_TIMEOUT", "30")),
        max_message_length=int(os.getenv("CONFIDANT_MAX_MESSAGE_LENGTH", "500")),
        db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
    )
