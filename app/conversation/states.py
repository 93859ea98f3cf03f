"""Legal conversation state transitions."""

from app.models import ConversationState

IDLE = ConversationState.IDLE
WAITING_RESUME = ConversationState.WAITING_RESUME
WAITING_JOB_POST = ConversationState.WAITING_JOB_POST
PROCESSING = ConversationState.PROCESSING

# Self-loops cover restart and repeated submissions; every state may return to idle
TRANSITIONS: dict[ConversationState, frozenset[ConversationState]] = {
    IDLE: frozenset({IDLE, WAITING_RESUME}),
    WAITING_RESUME: frozenset({IDLE, WAITING_RESUME, WAITING_JOB_POST}),
    WAITING_JOB_POST: frozenset({IDLE, WAITING_RESUME, PROCESSING}),
    PROCESSING: frozenset({IDLE}),
}


class IllegalTransitionError(RuntimeError):
    """Raised when a handler tries to move a session along an edge not in TRANSITIONS."""

    def __init__(self, current: ConversationState, target: ConversationState) -> None:
        super().__init__(f"Illegal transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


def can_transition(current: ConversationState, target: ConversationState) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: ConversationState, target: ConversationState) -> None:
    """Raise IllegalTransitionError unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise IllegalTransitionError(current, target)
