"""Conversation agent: tone detection, prompt building and turn orchestration."""

from .llm_client import CompletionClient, GroqCompletionClient
from .orchestrator import Orchestrator, TurnResult, TurnStage, apology_for
from .prompt import PromptPayload, build_history, build_prompt, build_system_prompt
from .tone import Tone, detect_tone

__all__ = [
    "CompletionClient",
    "GroqCompletionClient",
    "Orchestrator",
    "PromptPayload",
    "Tone",
    "TurnResult",
    "TurnStage",
    "apology_for",
    "build_history",
    "build_prompt",
    "build_system_prompt",
    "detect_tone",
]
