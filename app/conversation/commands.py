"""Command token parsing and the fixed command / keyword vocabulary."""

from dataclasses import dataclass, field
from typing import Optional

START = "start"
MATCH = "resume_and_job_post_match"
HELP = "help"
CANCEL = "cancel"
RECENT_10 = "get_last_10_messages"
RECENT_100 = "get_last_100_messages"
RECENT_300 = "get_last_300_messages"
LOGS = "logs"
LOG_SUMMARY = "log_summary"

# Admin command -> number of entries it returns
RECENT_LIMITS = {
    RECENT_10: 10,
    RECENT_100: 100,
    RECENT_300: 300,
    LOGS: 10,
}

ADMIN_COMMANDS = frozenset(RECENT_LIMITS) | {LOG_SUMMARY}

# Commands still answered while an analysis is running
ALLOWED_WHILE_PROCESSING = frozenset({CANCEL, HELP})

START_KEYWORDS = (
    "start matching",
    "help match",
    "match resume",
    "compare resume",
    "analyze resume",
    "job match",
    "resume job",
    "check resume",
)


@dataclass
class Command:
    name: str
    args: list[str] = field(default_factory=list)

    @property
    def first_arg(self) -> Optional[str]:
        return self.args[0] if self.args else None


def parse_command(text: Optional[str]) -> Optional[Command]:
    """Parse ``/name[@bot] [args...]``. Returns None when text is not a command."""
    if not text:
        return None
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    token, *args = stripped.split()
    name = token[1:].split("@", 1)[0].lower()
    if not name:
        return None
    return Command(name=name, args=args)


def matches_start_keyword(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in START_KEYWORDS)
