"""SQLite connection and schema shared by the profile and history stores."""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from ..errors import StorageUnavailable

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT NOT NULL UNIQUE,
    created_at      TEXT NOT NULL,
    last_active_at  TEXT NOT NULL,
    name            TEXT,
    age             INTEGER,
    location        TEXT,
    total_messages  INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS user_facts (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT NOT NULL,
    fact        TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    UNIQUE(user_id, fact)
);

CREATE TABLE IF NOT EXISTS user_interests (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT NOT NULL,
    interest    TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    UNIQUE(user_id, interest)
);

CREATE TABLE IF NOT EXISTS user_preferences (
    user_id     TEXT NOT NULL,
    key         TEXT NOT NULL,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (user_id, key)
);

CREATE TABLE IF NOT EXISTS messages (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    message_id  TEXT NOT NULL UNIQUE,
    user_id     TEXT NOT NULL,
    role        TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
    content     TEXT NOT NULL,
    timestamp   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_user_ts ON messages(user_id, timestamp);
CREATE INDEX IF NOT EXISTS idx_facts_user ON user_facts(user_id);
CREATE INDEX IF NOT EXISTS idx_interests_user ON user_interests(user_id);
"""


def utcnow() -> str:
    """Current UTC time as an ISO string (microsecond precision)."""
    return datetime.now(timezone.utc).isoformat()


class Database:
    """Long-lived SQLite connection with explicit init and shutdown.

    The connection is opened lazily on first use and reused by every
    store that shares this instance.
    """

    def __init__(self, db_path: Path | str, timeout: float = 5.0) -> None:
        """Initialize with a database path.

        Args:
            db_path: Path to the SQLite file, or ":memory:".
            timeout: Seconds to wait on a locked database before failing.
        """
        self.db_path = db_path
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            try:
                if str(self.db_path) != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            except (OSError, sqlite3.Error) as e:
                raise StorageUnavailable(f"Cannot open database: {e}") from e
            self._conn.row_factory = sqlite3.Row
            logger.debug(f"Opened database at {self.db_path}")
        return self._conn

    def init_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        with self.transaction() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements in one transaction.

        Commits on success, rolls back on error. SQLite errors are
        re-raised as StorageUnavailable.
        """
        conn = self._get_connection()
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StorageUnavailable(str(e)) from e

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        with self.transaction() as conn:
            conn.execute("SELECT 1").fetchone()
        return True

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
