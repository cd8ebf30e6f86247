"""Wiring: build an orchestrator with its store and LLM client."""

import os

from groq import AsyncGroq

from .agent import GroqCompletionClient, Orchestrator
from .config import ChatConfig, PersonaConfig, config_from_env
from .logging import JSONLLogger
from .memory import Database, HistoryStore, MemoryManager, ProfileStore


def build_orchestrator(
    config: ChatConfig | None = None,
    persona: PersonaConfig | None = None,
    groq_client: AsyncGroq | None = None,
    event_logger: JSONLLogger | None = None,
) -> Orchestrator:
    """Create the database, stores, LLM client and orchestrator.

    The database is initialized here; close it with
    `orchestrator.memory.profiles.db.close()` (see `shutdown`).
    """
    config = config or config_from_env()
    persona = persona or PersonaConfig.from_env()

    db = Database(config.db_path)
    db.init_db()
    memory = MemoryManager(ProfileStore(db), HistoryStore(db))

    client = groq_client or AsyncGroq(api_key=os.getenv("GROQ_API_KEY"))
    llm = GroqCompletionClient(
        client,
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        top_p=config.top_p,
    )

    return Orchestrator(memory, llm, persona=persona, config=config, event_logger=event_logger)


def shutdown(orchestrator: Orchestrator) -> None:
    """Close the orchestrator's database connection."""
    orchestrator.memory.profiles.db.close()
