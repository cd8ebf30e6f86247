"""Telegram bot integration for Confidant."""

import logging
import os

from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from ..agent import Orchestrator
from ..app import build_orchestrator, shutdown
from ..cli import format_history, format_profile
from ..errors import StorageUnavailable, ValidationError
from ..logging import get_logger

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = """
💬 Confidant

Hey! I'm here to chat, and I remember what you tell me.

Commands:
/start - Show this message
/profile - What I remember about you
/history - Our last few messages
"""

MAX_MESSAGE_LENGTH = 4096

STORAGE_ERROR_MESSAGE = "⚠️ I can't reach my memory right now. Try again in a bit."


def truncate_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Truncate message to fit Telegram limits."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 20] + "\n... [truncated]"


def user_id_for(update: Update) -> str:
    """Map a Telegram user to a Confidant user id."""
    assert update.effective_user is not None
    return f"tg-{update.effective_user.id}"


class TelegramBot:
    """Telegram bot that relays text messages to the orchestrator."""

    def __init__(
        self,
        token: str | None = None,
        orchestrator: Orchestrator | None = None,
    ) -> None:
        self.token = token or os.getenv("TELEGRAM_TOKEN")
        if not self.token:
            raise ValueError("TELEGRAM_TOKEN not set")

        self.orchestrator = orchestrator or build_orchestrator()
        self.json_logger = get_logger()
        self._app: Application | None = None

    async def _handle_start(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /start command."""
        assert update.message is not None
        self.json_logger.log("telegram_start", user_id=user_id_for(update))
        await update.message.reply_text(WELCOME_MESSAGE)

    async def _handle_profile(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /profile command."""
        assert update.message is not None
        try:
            profile, stats = self.orchestrator.get_profile_and_stats(user_id_for(update))
        except StorageUnavailable as e:
            logger.warning(f"Profile lookup failed: {e}")
            await update.message.reply_text(STORAGE_ERROR_MESSAGE)
            return
        await update.message.reply_text(truncate_message(format_profile(profile, stats)))

    async def _handle_history(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /history command."""
        assert update.message is not None
        try:
            messages = self.orchestrator.get_history(
                user_id_for(update), self.orchestrator.config.history_limit
            )
        except StorageUnavailable as e:
            logger.warning(f"History lookup failed: {e}")
            await update.message.reply_text(STORAGE_ERROR_MESSAGE)
            return
        await update.message.reply_text(truncate_message(format_history(messages)))

    async def _handle_message(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle incoming text messages."""
        assert update.message is not None
        assert update.message.text is not None

        user_id = user_id_for(update)
        self.json_logger.log(
            "telegram_message",
            user_id=user_id,
            message_length=len(update.message.text),
        )

        await update.message.chat.send_action("typing")

        try:
            reply = await self.orchestrator.handle_turn(user_id, update.message.text)
        except ValidationError as e:
            await update.message.reply_text(f"⚠️ {e}")
            return

        await update.message.reply_text(truncate_message(reply))

    async def _post_shutdown(self, application: Application) -> None:
        """Called after Application.shutdown()."""
        shutdown(self.orchestrator)

    def build_app(self) -> Application:
        """Build the Telegram application."""
        self._app = (
            Application.builder()
            .token(self.token)
            .post_shutdown(self._post_shutdown)
            .build()
        )

        self._app.add_handler(CommandHandler("start", self._handle_start))
        self._app.add_handler(CommandHandler("profile", self._handle_profile))
        self._app.add_handler(CommandHandler("history", self._handle_history))
        self._app.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, self._handle_message)
        )

        return self._app

    def run(self) -> None:
        """Run the bot (blocking)."""
        app = self.build_app()
        logger.info("Starting Telegram bot...")
        app.run_polling()
