"""Password-gated read access to the event log through chat commands."""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from app.conversation.commands import LOG_SUMMARY, RECENT_LIMITS, Command
from app.utils.event_log import EventLog

logger = logging.getLogger(__name__)

SUMMARY_LOOKBACK_HOURS = 24
OPEN_ENVIRONMENT = "staging"


@dataclass(frozen=True)
class AdminDecision:
    """Outcome of an authorization attempt."""

    granted: bool
    reason: str


class AdminLogGateway:
    """Authorizes admin commands and renders log data for the chat.

    In the open (staging) environment every supplied argument is accepted.
    Elsewhere the argument must equal the configured secret; with no secret
    configured, access is always denied.
    """

    def __init__(self, event_log: EventLog, environment: str, admin_password: Optional[str]) -> None:
        self.event_log = event_log
        self.environment = environment
        self._admin_password = admin_password

    def authorize(self, password: Optional[str]) -> AdminDecision:
        if self.environment == OPEN_ENVIRONMENT:
            return AdminDecision(granted=True, reason="open environment")
        if not self._admin_password:
            return AdminDecision(granted=False, reason="admin password not configured")
        if password and secrets.compare_digest(password.encode("utf-8"), self._admin_password.encode("utf-8")):
            return AdminDecision(granted=True, reason="password accepted")
        return AdminDecision(granted=False, reason="invalid password")

    def help_text(self, command_name: str) -> str:
        return (
            "🔑 Admin Command Help\n\n"
            f"Usage: /{command_name} <password>\n"
            f"🌍 Environment: {self.environment}\n\n"
            "📋 Available Commands:\n"
            "• /get_last_10_messages <password>\n"
            "• /get_last_100_messages <password>\n"
            "• /get_last_300_messages <password>\n"
            "• /log_summary <password>"
        )

    def denial_text(self) -> str:
        if self.environment == "production":
            return (
                "❌ Invalid password for production environment.\n\n"
                "🔒 Contact the developer for the admin password."
            )
        return f"❌ Invalid password for {self.environment} environment."

    def handle(self, command: Command, user_id: int, chat_id: int) -> list[str]:
        """Run an admin command and return the replies to send, in order."""
        limit = RECENT_LIMITS.get(command.name)
        password = command.first_arg
        if password is None:
            return [self.help_text(command.name)]

        audit_data = {"command": command.name, "limit": limit}
        decision = self.authorize(password)
        if not decision.granted:
            self.event_log.append(
                "WARN",
                "ADMIN_ACCESS_DENIED",
                f"Admin access denied for /{command.name}: {decision.reason}",
                data=audit_data,
                user_id=user_id,
                chat_id=chat_id,
            )
            return [self.denial_text()]

        self.event_log.append(
            "INFO",
            "ADMIN_ACCESS_GRANTED",
            f"Admin access granted for /{command.name}",
            data=audit_data,
            user_id=user_id,
            chat_id=chat_id,
        )
        if command.name == LOG_SUMMARY:
            return ["📊 Generating log summary...", self.event_log.format_summary(SUMMARY_LOOKBACK_HOURS)]
        return [
            f"📊 Fetching last {limit} log messages...",
            self.event_log.format_recent(limit, self.environment),
        ]
