"""JSONL event logging for turn observability."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    user_id: str | None = None
    tone: str | None = None
    stage: str | None = None
    duration_ms: float | None = None
    degraded: bool = False
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {
            k: v
            for k, v in data.items()
            if v is not None and v != {} and v != [] and v is not False
        }


class JSONLLogger:
    """Logger that writes structured logs in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "events.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".confidant" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file."""
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")

    def log(
        self,
        event: str,
        *,
        user_id: str | None = None,
        tone: str | None = None,
        stage: str | None = None,
        duration_ms: float | None = None,
        degraded: bool = False,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            user_id=user_id,
            tone=tone,
            stage=stage,
            duration_ms=duration_ms,
            degraded=degraded,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_turn(
        self,
        user_id: str,
        *,
        tone: str,
        duration_ms: float,
        history_size: int,
        degraded: bool = False,
    ) -> None:
        """Log a finished turn."""
        self.log(
            "turn_complete",
            user_id=user_id,
            tone=tone,
            duration_ms=duration_ms,
            degraded=degraded,
            history_size=history_size,
        )

    def log_completion_error(self, user_id: str, category: str, error: str) -> None:
        """Log a failed generation."""
        self.log(
            "completion_error",
            user_id=user_id,
            stage="generate",
            error=error,
            category=category,
        )

    def log_storage_error(self, user_id: str, stage: str, error: str) -> None:
        """Log a swallowed storage failure."""
        self.log("storage_error", user_id=user_id, stage=stage, error=error)

    def log_facts_learned(self, user_id: str, fields: list[str]) -> None:
        """Log which profile fields a turn updated."""
        self.log("facts_learned", user_id=user_id, fields=fields)


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
