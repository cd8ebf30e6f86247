"""Tests for CLI."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from confidant.app import build_orchestrator
from confidant.cli import CLI, format_history, format_profile
from confidant.config import ChatConfig
from confidant.errors import StorageUnavailable
from confidant.logging import JSONLLogger


def make_groq(content: str = "Hey, nice to meet you!") -> MagicMock:
    """Create a mock AsyncGroq client."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    mock_groq = MagicMock()
    mock_groq.chat.completions.create = AsyncMock(return_value=response)
    return mock_groq


@pytest.fixture
def cli(tmp_path: Path, monkeypatch) -> CLI:
    events = JSONLLogger(log_dir=tmp_path / "logs")
    monkeypatch.setattr("confidant.logging._logger", events)
    orchestrator = build_orchestrator(
        config=ChatConfig(db_path=tmp_path / "confidant.db"),
        groq_client=make_groq(),
        event_logger=events,
    )
    cli = CLI(orchestrator=orchestrator, user_id="tester")
    yield cli
    orchestrator.memory.profiles.db.close()


def test_default_user_id(cli: CLI, monkeypatch) -> None:
    monkeypatch.delenv("CONFIDANT_USER_ID", raising=False)
    assert CLI(orchestrator=cli.orchestrator).user_id == "cli-user"


def test_user_id_from_env(cli: CLI, monkeypatch) -> None:
    monkeypatch.setenv("CONFIDANT_USER_ID", "sam")
    assert CLI(orchestrator=cli.orchestrator).user_id == "sam"


@pytest.mark.asyncio
async def test_handle_command_exit(cli: CLI) -> None:
    """Test exit commands return False."""
    assert await cli._handle_command("/exit") is False
    assert await cli._handle_command("quit") is False


@pytest.mark.asyncio
async def test_handle_command_help(cli: CLI, capsys) -> None:
    assert await cli._handle_command("/help") is True
    assert "/profile" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_unknown_command_continues(cli: CLI) -> None:
    assert await cli._handle_command("/dance") is True


@pytest.mark.asyncio
async def test_process_message(cli: CLI, capsys) -> None:
    """A message goes through the orchestrator and the reply is printed."""
    await cli._process_message("I'm Sam and I love chess")

    assert "Hey, nice to meet you!" in capsys.readouterr().out
    profile = cli.orchestrator.memory.profiles.get_or_create("tester")
    assert profile.name == "Sam"
    assert profile.interests == ["chess"]


@pytest.mark.asyncio
async def test_process_message_validation_error(cli: CLI, capsys) -> None:
    await cli._process_message("x" * 600)
    assert "500 characters or less" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_profile_command(cli: CLI, capsys) -> None:
    await cli._process_message("I live in Pune")
    capsys.readouterr()

    assert await cli._handle_command("/profile") is True
    output = capsys.readouterr().out
    assert "User: tester" in output
    assert "location:  Pune" in output
    assert "2 messages" in output


@pytest.mark.asyncio
async def test_history_command(cli: CLI, capsys) -> None:
    await cli._process_message("first")
    await cli._process_message("second")
    capsys.readouterr()

    await cli._handle_command("/history 1")
    output = capsys.readouterr().out
    assert "assistant> Hey, nice to meet you!" in output
    assert "first" not in output


@pytest.mark.asyncio
async def test_set_command(cli: CLI, capsys) -> None:
    await cli._handle_command("/set name Samantha")
    await cli._handle_command("/set age 31")
    await cli._handle_command("/set location New Delhi")

    profile = cli.orchestrator.memory.profiles.get_or_create("tester")
    assert (profile.name, profile.age, profile.location) == ("Samantha", 31, "New Delhi")


@pytest.mark.asyncio
async def test_set_command_rejects_bad_input(cli: CLI, capsys) -> None:
    await cli._handle_command("/set age thirty")
    assert "Age must be a number" in capsys.readouterr().out

    await cli._handle_command("/set facts something")
    assert "Usage: /set" in capsys.readouterr().out

    assert cli.orchestrator.memory.profiles.get_or_create("tester").age is None


@pytest.mark.asyncio
async def test_health_command(cli: CLI, capsys) -> None:
    await cli._handle_command("/health")
    assert "Status: healthy" in capsys.readouterr().out


def test_format_response(cli: CLI) -> None:
    output = cli._format_response("Hello!")
    assert "Hello!" in output
    assert "─" * 40 in output


def test_format_history_empty() -> None:
    assert format_history([]) == "(no messages yet)"


def test_format_profile_new_user(cli: CLI) -> None:
    profile, stats = cli.orchestrator.get_profile_and_stats("newbie")
    output = format_profile(profile, stats)
    assert "name:      -" in output
    assert "0 messages" in output


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["/profile", "/history", "/set name Sam"])
async def test_storage_outage_keeps_session(
    cli: CLI, capsys, monkeypatch, command: str
) -> None:
    """A store failure inside a command is reported and the REPL continues."""
    failing = MagicMock(side_effect=StorageUnavailable("database is locked"))
    monkeypatch.setattr(cli.orchestrator, "get_profile_and_stats", failing)
    monkeypatch.setattr(cli.orchestrator, "get_history", failing)
    monkeypatch.setattr(cli.orchestrator, "update_profile", failing)

    assert await cli._handle_command(command) is True
    assert "Memory is unavailable right now" in capsys.readouterr().out
