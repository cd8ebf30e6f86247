"""Tests for GroqCompletionClient."""

from unittest.mock import AsyncMock, MagicMock

import groq
import httpx
import pytest

from confidant.agent import GroqCompletionClient
from confidant.errors import (
    CompletionCategory,
    CompletionFailure,
    MalformedCompletion,
    ProviderAuthError,
    ProviderConnectionError,
    RateLimited,
)

REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def make_mock_response(content: str | None):
    """Create a mock Groq response."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


def make_groq(response=None, error: Exception | None = None) -> MagicMock:
    mock_groq = MagicMock()
    mock_groq.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    return mock_groq


def status_error(cls, status: int) -> Exception:
    return cls("boom", response=httpx.Response(status, request=REQUEST), body=None)


class TestGroqCompletionClient:
    """Tests for GroqCompletionClient wrapper."""

    def test_defaults(self) -> None:
        client = GroqCompletionClient(MagicMock())
        assert client.model == "llama-3.3-70b-versatile"
        assert client.assistant_role == "assistant"

    @pytest.mark.asyncio
    async def test_message_layout(self) -> None:
        """System first, then history, then the new user message."""
        mock_groq = make_groq(make_mock_response("hey there"))
        client = GroqCompletionClient(mock_groq, model="test-model", temperature=0.5)

        history = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]
        result = await client.complete("You are Alex.", history, "how are you?")

        assert result == "hey there"
        mock_groq.chat.completions.create.assert_called_once_with(
            model="test-model",
            messages=[
                {"role": "system", "content": "You are Alex."},
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
                {"role": "user", "content": "how are you?"},
            ],
            temperature=0.5,
            max_tokens=1024,
            top_p=0.95,
        )

    @pytest.mark.asyncio
    async def test_empty_instruction_omitted(self) -> None:
        mock_groq = make_groq(make_mock_response("pong"))
        client = GroqCompletionClient(mock_groq)

        await client.complete("", [], "ping")

        messages = mock_groq.chat.completions.create.call_args.kwargs["messages"]
        assert messages == [{"role": "user", "content": "ping"}]

    @pytest.mark.asyncio
    async def test_does_not_mutate_history(self) -> None:
        mock_groq = make_groq(make_mock_response("ok"))
        history = [{"role": "user", "content": "hi"}]
        await GroqCompletionClient(mock_groq).complete("sys", history, "again")
        assert history == [{"role": "user", "content": "hi"}]


class TestErrorMapping:
    """Provider errors become CompletionFailure subclasses."""

    @pytest.mark.asyncio
    async def test_rate_limit(self) -> None:
        client = GroqCompletionClient(make_groq(error=status_error(groq.RateLimitError, 429)))
        with pytest.raises(RateLimited) as exc_info:
            await client.complete("sys", [], "hi")
        assert exc_info.value.category is CompletionCategory.RATE_LIMIT

    @pytest.mark.asyncio
    async def test_auth(self) -> None:
        client = GroqCompletionClient(
            make_groq(error=status_error(groq.AuthenticationError, 401))
        )
        with pytest.raises(ProviderAuthError):
            await client.complete("sys", [], "hi")

    @pytest.mark.asyncio
    async def test_permission_denied_is_auth(self) -> None:
        client = GroqCompletionClient(
            make_groq(error=status_error(groq.PermissionDeniedError, 403))
        )
        with pytest.raises(ProviderAuthError):
            await client.complete("sys", [], "hi")

    @pytest.mark.asyncio
    async def test_connection(self) -> None:
        client = GroqCompletionClient(make_groq(error=groq.APIConnectionError(request=REQUEST)))
        with pytest.raises(ProviderConnectionError) as exc_info:
            await client.complete("sys", [], "hi")
        assert exc_info.value.category is CompletionCategory.NETWORK

    @pytest.mark.asyncio
    async def test_other_api_error_is_generic(self) -> None:
        client = GroqCompletionClient(
            make_groq(error=status_error(groq.InternalServerError, 500))
        )
        with pytest.raises(CompletionFailure) as exc_info:
            await client.complete("sys", [], "hi")
        assert exc_info.value.category is CompletionCategory.GENERIC

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   \n"])
    async def test_empty_content_is_malformed(self, content) -> None:
        client = GroqCompletionClient(make_groq(make_mock_response(content)))
        with pytest.raises(MalformedCompletion):
            await client.complete("sys", [], "hi")

    @pytest.mark.asyncio
    async def test_no_choices_is_malformed(self) -> None:
        response = MagicMock()
        response.choices = []
        client = GroqCompletionClient(make_groq(response))
        with pytest.raises(MalformedCompletion):
            await client.complete("sys", [], "hi")
