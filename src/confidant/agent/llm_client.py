"""Completion client: the one interface the orchestrator uses to reach the LLM.

`CompletionClient` is a Protocol with a single coroutine; `GroqCompletionClient`
is the concrete binding on top of AsyncGroq and translates provider errors
into the CompletionFailure hierarchy.
"""

import logging
from typing import Any, Protocol

import groq
from groq import AsyncGroq

from ..errors import (
    CompletionFailure,
    MalformedCompletion,
    ProviderAuthError,
    ProviderConnectionError,
    RateLimited,
)

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Protocol for text completion.

    Implementations receive the system instruction, prior turns and the
    new user message, and return plain text or raise CompletionFailure.
    """

    assistant_role: str

    async def complete(
        self,
        instruction: str,
        history: list[dict[str, Any]],
        message: str,
    ) -> str:
        """Return the model's reply to `message`."""
        ...


class GroqCompletionClient:
    """CompletionClient implementation that wraps AsyncGroq.

    Example:
        from groq import AsyncGroq
        from confidant.agent.llm_client import GroqCompletionClient

        llm = GroqCompletionClient(AsyncGroq(api_key="..."))
        reply = await llm.complete("You are Alex.", [], "Hi!")
    """

    assistant_role = "assistant"

    def __init__(
        self,
        client: AsyncGroq,
        model: str = "llama-3.3-70b-versatile",
        temperature: float = 0.9,
        max_tokens: int = 1024,
        top_p: float = 0.95,
    ) -> None:
        """Initialize the Groq client wrapper.

        Args:
            client: The AsyncGroq client instance to wrap.
            model: The model to use for completions.
            temperature: Sampling temperature.
            max_tokens: Maximum reply length in tokens.
            top_p: Nucleus sampling parameter.
        """
        self._client = client
        self._model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.top_p = top_p

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    async def complete(
        self,
        instruction: str,
        history: list[dict[str, Any]],
        message: str,
    ) -> str:
        """Send one chat completion request.

        Args:
            instruction: System prompt; omitted when empty.
            history: Prior turns as {"role", "content"} dicts, oldest first.
            message: The new user message.

        Returns:
            The reply text.

        Raises:
            CompletionFailure: Or one of its subclasses, on any provider error.
        """
        messages: list[dict[str, Any]] = []
        if instruction:
            messages.append({"role": "system", "content": instruction})
        messages.extend(history)
        messages.append({"role": "user", "content": message})

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                top_p=self.top_p,
            )
        except groq.RateLimitError as e:
            raise RateLimited(str(e)) from e
        except (groq.AuthenticationError, groq.PermissionDeniedError) as e:
            raise ProviderAuthError(str(e)) from e
        except groq.APIConnectionError as e:
            raise ProviderConnectionError(str(e)) from e
        except groq.APIError as e:
            raise CompletionFailure(str(e)) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise MalformedCompletion(f"Unexpected response shape: {e}") from e

        if not content or not content.strip():
            raise MalformedCompletion("Empty completion")

        return content
