"""Per-user conversation flow: commands, states, and the event handler."""

from app.conversation.commands import Command, parse_command
from app.conversation.handler import ConversationHandler
from app.conversation.states import TRANSITIONS, IllegalTransitionError, ensure_transition

__all__ = [
    "Command",
    "ConversationHandler",
    "IllegalTransitionError",
    "TRANSITIONS",
    "ensure_transition",
    "parse_command",
]
