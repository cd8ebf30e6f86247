"""SQLite storage for user profiles."""

import logging
import sqlite3
from typing import Any

from .database import Database, utcnow
from .models import ProfileStats, UserProfile

logger = logging.getLogger(__name__)

SCALAR_FIELDS = ("name", "age", "location")
UPDATABLE_FIELDS = SCALAR_FIELDS + ("preferences", "interests")


class ProfileStore:
    """Persistent storage for one profile per user.

    Profiles are created lazily and never deleted. Facts and interests
    are append-only, deduplicated by UNIQUE constraints.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the store.

        Args:
            db: The shared Database.
        """
        self.db = db

    def get_or_create(self, user_id: str) -> UserProfile:
        """Return the user's profile, creating a default one if needed.

        Concurrent first accesses are safe: a losing insert is ignored by
        the UNIQUE constraint and the row is read back instead.

        Args:
            user_id: The user identifier.

        Returns:
            The stored profile, with last_active_at refreshed.
        """
        now = utcnow()
        with self.db.transaction() as conn:
            if self._ensure_user(conn, user_id, now):
                logger.info(f"Created profile for {user_id}")
            else:
                conn.execute(
                    "UPDATE users SET last_active_at = ? WHERE user_id = ?",
                    (now, user_id),
                )
            return self._load(conn, user_id)

    def get(self, user_id: str) -> UserProfile | None:
        """Return the user's profile without creating it.

        Args:
            user_id: The user identifier.

        Returns:
            The profile, or None if the user is unknown.
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT user_id FROM users WHERE user_id = ?", (user_id,)
            ).fetchone()
            if row is None:
                return None
            conn.execute(
                "UPDATE users SET last_active_at = ? WHERE user_id = ?",
                (utcnow(), user_id),
            )
            return self._load(conn, user_id)

    def apply_updates(self, user_id: str, updates: dict[str, Any]) -> None:
        """Merge the supplied fields into the profile.

        Scalars are set unconditionally; first-write-wins is the caller's
        business. Preferences are merged key by key, interests appended
        when absent.

        Args:
            user_id: The user identifier.
            updates: Any of name, age, location, preferences, interests.

        Raises:
            ValueError: If a field is unknown or its value has the wrong type.
        """
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(
                f"Unknown profile fields: {', '.join(sorted(unknown))}. "
                f"Must be among: {', '.join(UPDATABLE_FIELDS)}"
            )
        if not isinstance(updates.get("interests", []), (list, tuple)):
            raise ValueError("interests must be a list of strings")
        if not isinstance(updates.get("preferences", {}), dict):
            raise ValueError("preferences must be a mapping")

        now = utcnow()
        with self.db.transaction() as conn:
            self._ensure_user(conn, user_id, now)

            scalars = {k: updates[k] for k in SCALAR_FIELDS if k in updates}
            assignments = ", ".join(f"{k} = ?" for k in scalars)
            conn.execute(
                f"UPDATE users SET {assignments + ', ' if assignments else ''}"
                "last_active_at = ? WHERE user_id = ?",
                (*scalars.values(), now, user_id),
            )

            for key, value in (updates.get("preferences") or {}).items():
                conn.execute(
                    """
                    INSERT INTO user_preferences (user_id, key, value, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id, key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, key, str(value), now),
                )

            for interest in updates.get("interests") or []:
                self._insert_unique(conn, "user_interests", "interest", user_id, interest, now)

        logger.info(f"Updated profile for {user_id}: {sorted(updates)}")

    def append_fact(self, user_id: str, fact: str) -> bool:
        """Append a fact unless an identical one is already stored.

        Args:
            user_id: The user identifier.
            fact: The fact, stored verbatim.

        Returns:
            True if the fact was added, False if it was already present.
        """
        now = utcnow()
        with self.db.transaction() as conn:
            self._ensure_user(conn, user_id, now)
            added = self._insert_unique(conn, "user_facts", "fact", user_id, fact, now)
        if added:
            logger.info(f"Remembered fact for {user_id}: {fact!r}")
        return added

    def add_interest(self, user_id: str, interest: str) -> bool:
        """Append an interest unless it is already stored (case-sensitive).

        Returns:
            True if the interest was added.
        """
        now = utcnow()
        with self.db.transaction() as conn:
            self._ensure_user(conn, user_id, now)
            return self._insert_unique(
                conn, "user_interests", "interest", user_id, interest, now
            )

    def stats(self, user_id: str) -> ProfileStats:
        """Summarize a user's profile.

        Args:
            user_id: The user identifier.

        Returns:
            ProfileStats for the (possibly newly created) profile.
        """
        profile = self.get_or_create(user_id)
        return ProfileStats(
            user_id=profile.user_id,
            name=profile.name,
            member_since=profile.created_at,
            last_active=profile.last_active_at,
            total_messages=profile.total_messages,
            facts_stored=len(profile.facts),
            interests_stored=len(profile.interests),
        )

    def _ensure_user(self, conn: sqlite3.Connection, user_id: str, now: str) -> bool:
        """Insert a default row unless one exists. Returns True if created."""
        cursor = conn.execute(
            """
            INSERT INTO users (user_id, created_at, last_active_at)
            VALUES (?, ?, ?)
            ON CONFLICT(user_id) DO NOTHING
            """,
            (user_id, now, now),
        )
        return cursor.rowcount > 0

    def _insert_unique(
        self,
        conn: sqlite3.Connection,
        table: str,
        column: str,
        user_id: str,
        value: str,
        now: str,
    ) -> bool:
        cursor = conn.execute(
            f"""
            INSERT INTO {table} (user_id, {column}, created_at)
            VALUES (?, ?, ?)
            ON CONFLICT(user_id, {column}) DO NOTHING
            """,
            (user_id, value, now),
        )
        return cursor.rowcount > 0

    def _load(self, conn: sqlite3.Connection, user_id: str) -> UserProfile:
        """Read a profile and its child rows."""
        row = conn.execute(
            """
            SELECT user_id, created_at, last_active_at, name, age, location,
                   total_messages
            FROM users WHERE user_id = ?
            """,
            (user_id,),
        ).fetchone()

        interests = [
            r["interest"]
            for r in conn.execute(
                "SELECT interest FROM user_interests WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
        ]
        facts = [
            r["fact"]
            for r in conn.execute(
                "SELECT fact FROM user_facts WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
        ]
        preferences = {
            r["key"]: r["value"]
            for r in conn.execute(
                "SELECT key, value FROM user_preferences WHERE user_id = ? ORDER BY key",
                (user_id,),
            )
        }

        return UserProfile(
            user_id=row["user_id"],
            created_at=row["created_at"],
            last_active_at=row["last_active_at"],
            name=row["name"],
            age=row["age"],
            location=row["location"],
            interests=interests,
            preferences=preferences,
            facts=facts,
            total_messages=row["total_messages"],
        )
