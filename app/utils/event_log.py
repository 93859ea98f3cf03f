"""Persistent event log: the single sink for user-interaction and audit events.

Entries are appended as JSON lines to ``events.jsonl`` and mirrored to loguru.
Admins read them back through chat commands (recent entries, summaries).
"""

from __future__ import annotations

import traceback
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from app.models import LogEntry
from app.utils.logging import get_logger

logger = get_logger(__name__)

EVENTS_FILE_NAME = "events.jsonl"
TELEGRAM_MESSAGE_LIMIT = 4096
_TRUNCATE_AT = 3900
DEFAULT_RETENTION_DAYS = 7

_LOGURU_LEVELS = {"DEBUG": "DEBUG", "INFO": "INFO", "WARN": "WARNING", "ERROR": "ERROR"}

_EVENT_ICONS = {
    "USER_MESSAGE": "👤",
    "BOT_RESPONSE": "🤖",
    "SESSION_STATE": "🔄",
    "AI_ANALYSIS": "🧠",
    "WEBHOOK_RECEIVED": "📥",
    "NEW_SESSION": "🆕",
}


def _log_icon(level: str, event_type: str) -> str:
    if level == "ERROR":
        return "❌"
    if level == "WARN":
        return "⚠️"
    if event_type in _EVENT_ICONS:
        return _EVENT_ICONS[event_type]
    if level == "DEBUG":
        return "🔍"
    return "🕐"


def _describe_span(newest: datetime, oldest: datetime) -> str:
    minutes = int((newest - oldest).total_seconds() // 60)
    hours, days = minutes // 60, minutes // (60 * 24)
    if days > 0:
        return f"Last {days} day{'s' if days > 1 else ''}"
    if hours > 0:
        return f"Last {hours} hour{'s' if hours > 1 else ''}"
    if minutes > 0:
        return f"Last {minutes} minute{'s' if minutes > 1 else ''}"
    return "Last minute"


def truncate_for_chat(text: str) -> str:
    if len(text) <= TELEGRAM_MESSAGE_LIMIT - 96:
        return text
    return text[:_TRUNCATE_AT] + "\n\n...📝 Message truncated due to length limit"


class EventLog:
    """Append-only JSON-lines event store with admin-facing read helpers.

    Entries older than ``retention_days`` are dropped: reads skip them and
    rewrite the file without them, and :meth:`prune` does the same on demand
    (the app calls it at startup).
    """

    def __init__(
        self,
        log_dir: Path | str,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        self._path = Path(log_dir) / EVENTS_FILE_NAME
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self.retention_days = retention_days

    @property
    def path(self) -> Path:
        return self._path

    def append(
        self,
        level: str,
        event_type: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
        user_id: Optional[int] = None,
        chat_id: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        """Record one event. Write failures are logged, never raised."""
        entry = LogEntry(
            timestamp=self._clock(),
            level=level,
            event_type=event_type,
            message=message,
            data=data,
            user_id=user_id,
            chat_id=chat_id,
            error_details=(
                "".join(traceback.format_exception(type(error), error, error.__traceback__))
                if error is not None
                else None
            ),
        )
        logger.bind(event_type=event_type, user_id=user_id, chat_id=chat_id).log(
            _LOGURU_LEVELS[level], "{}: {}", event_type, message
        )
        try:
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error("Failed to write event log entry: {}", e)

    def _load(self) -> tuple[list[LogEntry], int]:
        """Read entries within retention; also return how many lines were dropped."""
        if not self._path.exists():
            return [], 0
        cutoff = self._clock() - timedelta(days=self.retention_days)
        entries: list[LogEntry] = []
        dropped = 0
        with open(self._path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = LogEntry.model_validate_json(line)
                except ValidationError:
                    logger.warning("Skipping unreadable event log line")
                    dropped += 1
                    continue
                if entry.timestamp < cutoff:
                    dropped += 1
                else:
                    entries.append(entry)
        return entries, dropped

    def _rewrite(self, entries: list[LogEntry]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                for entry in entries:
                    f.write(entry.model_dump_json() + "\n")
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error("Failed to prune event log: {}", e)

    def prune(self) -> int:
        """Drop entries older than the retention period. Returns how many were removed."""
        entries, dropped = self._load()
        if dropped:
            self._rewrite(entries)
            logger.info("Pruned {} event log entries older than {} days", dropped, self.retention_days)
        return dropped

    def _read_all(self) -> list[LogEntry]:
        entries, dropped = self._load()
        if dropped:
            self._rewrite(entries)
        return entries

    def query_recent(self, limit: int = 50) -> list[LogEntry]:
        """Return up to ``limit`` entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._read_all()[-limit:]))

    def summarize(self, hours: int = 24) -> dict[str, Any]:
        """Count entries by level and event type over the last ``hours`` hours."""
        cutoff = self._clock() - timedelta(hours=hours)
        recent = [e for e in self._read_all() if e.timestamp > cutoff]
        by_level = Counter(e.level for e in recent)
        by_event = Counter((e.level, e.event_type) for e in recent)
        return {
            "hours": hours,
            "total": len(recent),
            "by_level": dict(by_level),
            "top_events": [
                {"level": level, "event_type": event_type, "count": count}
                for (level, event_type), count in by_event.most_common(5)
            ],
        }

    def format_recent(self, limit: int, environment: str) -> str:
        """Render recent entries as a single chat message."""
        entries = self.query_recent(limit)
        if not entries:
            return f"📊 No log entries found.\n\n🌍 Environment: {environment}"

        lines = [f"📊 Last {len(entries)} Log Messages", ""]
        for entry in entries:
            lines.append(
                f"{_log_icon(entry.level, entry.event_type)} "
                f"{entry.timestamp.strftime('%m/%d %H:%M:%S')} | {entry.level} | {entry.event_type}"
            )
            if entry.user_id or entry.chat_id:
                who = f"User {entry.user_id}" if entry.user_id else ""
                if entry.chat_id:
                    who = f"{who} in chat {entry.chat_id}" if who else f"Chat {entry.chat_id}"
                lines.append(f"🔗 {who}")
            lines.append(f"📝 {entry.message}")
            if entry.error_details:
                first = entry.error_details.strip().splitlines()[-1][:100]
                lines.append(f"❌ {first}")
            lines.append("")

        span = _describe_span(entries[0].timestamp, entries[-1].timestamp)
        lines.append(f"---\n📈 Total entries: {len(entries)} | 🕐 {span} | 🌍 {environment}")
        return truncate_for_chat("\n".join(lines))

    def format_summary(self, hours: int = 24) -> str:
        """Render the level/event summary as a single chat message."""
        stats = self.summarize(hours)
        if stats["total"] == 0:
            return f"📊 No activity in the last {hours} hours"

        by_level = stats["by_level"]
        lines = [
            f"📊 Log Summary (Last {hours}h)",
            "",
            f"📈 Total: {stats['total']} entries",
            f"❌ Errors: {by_level.get('ERROR', 0)}",
            f"⚠️ Warnings: {by_level.get('WARN', 0)}",
            f"ℹ️ Info: {by_level.get('INFO', 0)}",
            "",
            "🔝 Top Events:",
        ]
        for event in stats["top_events"]:
            lines.append(
                f"{_log_icon(event['level'], event['event_type'])} {event['event_type']}: {event['count']}"
            )
        return truncate_for_chat("\n".join(lines))
