"""Append-only message log."""

import logging
import sqlite3
import uuid

from .database import Database, utcnow
from .models import ASSISTANT, ROLES, USER, Message

logger = logging.getLogger(__name__)


class HistoryStore:
    """Per-user conversation history backed by SQLite.

    Messages are never updated or deleted. Storing a message also bumps
    the owning profile's total_messages counter in the same transaction.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def append(self, user_id: str, role: str, content: str) -> Message:
        """Store one message.

        Args:
            user_id: The user identifier.
            role: 'user' or 'assistant'.
            content: The message text.

        Returns:
            The stored message with its generated id and timestamp.

        Raises:
            ValueError: If role is not a known role.
        """
        message = self._new_message(user_id, role, content)
        with self.db.transaction() as conn:
            self._insert(conn, message)

        logger.debug(f"Saved {role} message for {user_id}")
        return message

    def append_exchange(self, user_id: str, message: str, reply: str) -> list[Message]:
        """Store a user message and the assistant's reply together.

        Both rows are written in one transaction, so a failure leaves
        neither of them behind.

        Returns:
            The stored user message and reply, in that order.
        """
        messages = [
            self._new_message(user_id, USER, message),
            self._new_message(user_id, ASSISTANT, reply),
        ]
        with self.db.transaction() as conn:
            for stored in messages:
                self._insert(conn, stored)

        logger.debug(f"Saved exchange for {user_id}")
        return messages

    def recent(self, user_id: str, limit: int = 10) -> list[Message]:
        """Get the most recent messages, oldest first.

        Args:
            user_id: The user identifier.
            limit: Maximum number of messages to return.

        Returns:
            Up to `limit` messages in chronological order.
        """
        if limit <= 0:
            return []

        with self.db.transaction() as conn:
            rows = conn.execute(
                """
                SELECT message_id, user_id, role, content, timestamp
                FROM messages
                WHERE user_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()

        return [self._row_to_message(row) for row in reversed(rows)]

    def count(self, user_id: str) -> int:
        """Number of messages stored for a user."""
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM messages WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row["n"]

    def _row_to_message(self, row: sqlite3.Row) -> Message:
        """Convert a database row to a Message."""
        return Message(
            message_id=row["message_id"],
            user_id=row["user_id"],
            role=row["role"],
            content=row["content"],
            timestamp=row["timestamp"],
        )

    def _new_message(self, user_id: str, role: str, content: str) -> Message:
        if role not in ROLES:
            raise ValueError(f"Invalid role '{role}'. Must be one of: {', '.join(ROLES)}")
        return Message(
            message_id=uuid.uuid4().hex,
            user_id=user_id,
            role=role,
            content=content,
            timestamp=utcnow(),
        )

    def _insert(self, conn: sqlite3.Connection, message: Message) -> None:
        """Insert a message and bump the owner's message counter."""
        conn.execute(
            """
            INSERT INTO messages (message_id, user_id, role, content, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.message_id,
                message.user_id,
                message.role,
                message.content,
                message.timestamp,
            ),
        )
        conn.execute(
            """
            INSERT INTO users (user_id, created_at, last_active_at, total_messages)
            VALUES (?, ?, ?, 1)
            ON CONFLICT(user_id) DO UPDATE SET
                total_messages = total_messages + 1,
                last_active_at = excluded.last_active_at
            """,
            (message.user_id, message.timestamp, message.timestamp),
        )
