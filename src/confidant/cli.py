"""CLI interface for Confidant."""

import os
from typing import Any

from .agent import Orchestrator
from .app import build_orchestrator, shutdown
from .config import config_from_env
from .errors import StorageUnavailable, ValidationError
from .logging import configure_logger, get_logger
from .memory import Message, ProfileStats, UserProfile

BANNER = """
╔══════════════════════════════════════════╗
║           💬 Confidant v0.1.0            ║
║     A companion that remembers you       ║
╚══════════════════════════════════════════╝

Commands:
  /profile             - Show what I remember about you
  /history [n]         - Show the last n messages (default 10)
  /set <field> <value> - Correct your name, age or location
  /health              - Check the store and the model
  /help                - Show this help
  /exit, /quit         - Exit the CLI

Type your message and press Enter.
"""

SETTABLE_FIELDS = ("name", "age", "location")


def format_profile(profile: UserProfile, stats: ProfileStats) -> str:
    """Render a profile for the terminal."""
    lines = [f"User: {profile.user_id}"]
    lines.append(f"  name:      {profile.name or '-'}")
    lines.append(f"  age:       {profile.age if profile.age is not None else '-'}")
    lines.append(f"  location:  {profile.location or '-'}")
    if profile.interests:
        lines.append(f"  interests: {', '.join(profile.interests)}")
    for key, value in profile.preferences.items():
        lines.append(f"  {key}: {value}")
    for i, fact in enumerate(profile.facts, start=1):
        lines.append(f"  fact {i}:    {fact}")
    lines.append(
        f"  since {stats.member_since}, {stats.total_messages} messages, "
        f"{stats.facts_stored} facts, {stats.interests_stored} interests"
    )
    return "\n".join(lines)


def format_history(messages: list[Message]) -> str:
    """Render messages, oldest first."""
    if not messages:
        return "(no messages yet)"
    return "\n".join(f"[{m.timestamp[:19]}] {m.role}> {m.content}" for m in messages)


class CLI:
    """Interactive command-line interface for one local user."""

    def __init__(
        self,
        orchestrator: Orchestrator | None = None,
        user_id: str | None = None,
    ) -> None:
        self.orchestrator = orchestrator or build_orchestrator(config_from_env())
        self.user_id = user_id or os.getenv("CONFIDANT_USER_ID", "cli-user")
        self.logger = get_logger()

    def _format_response(self, response: str) -> str:
        """Format the companion's reply for display."""
        return "\n".join(["\n" + "─" * 40, response, "─" * 40])

    async def _process_message(self, message: str) -> None:
        """Send one message through the orchestrator and print the reply."""
        try:
            reply = await self.orchestrator.handle_turn(self.user_id, message)
        except ValidationError as e:
            print(f"\n⚠ {e}")
            return
        print(self._format_response(reply))

    async def _handle_command(self, command: str) -> bool:
        """Handle a special command. Returns True if should continue, False to exit."""
        try:
            return await self._run_command(command)
        except StorageUnavailable as e:
            print(f"\n⚠ Memory is unavailable right now: {e}")
            self.logger.log_storage_error(self.user_id, "command", str(e))
            return True

    async def _run_command(self, command: str) -> bool:
        parts = command.strip().split(maxsplit=2)
        cmd = parts[0].lower()
        args = parts[1:]

        if cmd in ("/exit", "/quit", "exit", "quit"):
            print("\n👋 Goodbye!")
            self.logger.log("session_end", user_id=self.user_id)
            return False

        if cmd == "/profile":
            profile, stats = self.orchestrator.get_profile_and_stats(self.user_id)
            print(format_profile(profile, stats))
            return True

        if cmd == "/history":
            limit = int(args[0]) if args and args[0].isdigit() else 10
            print(format_history(self.orchestrator.get_history(self.user_id, limit)))
            return True

        if cmd == "/set":
            if len(args) < 2 or args[0] not in SETTABLE_FIELDS:
                print(f"Usage: /set <{'|'.join(SETTABLE_FIELDS)}> <value>")
                return True
            field_name, raw = args
            value: Any = raw
            if field_name == "age":
                if not raw.isdigit():
                    print("Age must be a number")
                    return True
                value = int(raw)
            self.orchestrator.update_profile(self.user_id, **{field_name: value})
            print(f"✓ {field_name} set to {value}")
            return True

        if cmd == "/health":
            status = await self.orchestrator.health()
            print(f"Status: {status['status']} (store: {status['store']}, llm: {status['llm']})")
            return True

        if cmd == "/help":
            print(BANNER)
            return True

        return True  # Unknown command, continue

    async def run(self) -> None:
        """Run the interactive CLI."""
        print(BANNER)
        print(f"User: {self.user_id}\n")
        self.logger.log("session_start", user_id=self.user_id)

        try:
            while True:
                try:
                    user_input = input("you> ").strip()

                    if not user_input:
                        continue

                    if user_input.startswith("/") or user_input.lower() in ("exit", "quit"):
                        if not await self._handle_command(user_input):
                            break
                        continue

                    await self._process_message(user_input)

                except KeyboardInterrupt:
                    print("\n\n👋 Goodbye!")
                    self.logger.log("session_interrupt", user_id=self.user_id)
                    break

                except EOFError:
                    print("\n👋 Goodbye!")
                    break
        finally:
            shutdown(self.orchestrator)


async def run_cli() -> None:
    """Run the CLI with configuration from the environment."""
    configure_logger()

    if not os.getenv("GROQ_API_KEY"):
        print("❌ Error: GROQ_API_KEY environment variable not set")
        print("Please set it in your .env file or environment")
        return

    cli = CLI()
    await cli.run()
