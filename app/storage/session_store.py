"""Per-user conversation sessions on top of the key-value store."""

import logging
from typing import Optional

from pydantic import ValidationError

from app.models import ConversationState, Document, Session, utc_now

from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class UnknownSessionError(LookupError):
    """Raised when a mutation targets a user with no live session."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"No session for user {user_id}")
        self.user_id = user_id


class SessionStore:
    """Loads, creates and mutates sessions keyed by user id.

    Sessions expire after ``ttl_seconds`` of inactivity: every save pushes the
    expiry forward. Mutations are last-write-wins; no locking is done.
    """

    def __init__(self, store: KeyValueStore, ttl_seconds: int = 86400) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(user_id: int) -> str:
        return f"{SESSION_KEY_PREFIX}{user_id}"

    def get(self, user_id: int) -> Optional[Session]:
        """Return the live session for a user, or None."""
        raw = self.store.get(self._key(user_id))
        if raw is None:
            return None
        try:
            return Session.model_validate(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable session for user %s: %s", user_id, e)
            return None

    def create(self, user_id: int, chat_id: int, language_code: Optional[str] = None) -> Session:
        """Build a new idle session. Not persisted until save() is called."""
        return Session(user_id=user_id, chat_id=chat_id, language_code=language_code)

    def save(self, session: Session) -> Session:
        """Upsert a session and refresh its expiry."""
        session.updated_at = utc_now()
        self.store.put(
            self._key(session.user_id),
            session.model_dump(mode="json"),
            ttl_seconds=self.ttl_seconds,
        )
        return session

    def _require(self, user_id: int) -> Session:
        session = self.get(user_id)
        if session is None:
            raise UnknownSessionError(user_id)
        return session

    def set_state(self, user_id: int, new_state: ConversationState) -> Session:
        """Overwrite the state. Transition legality is the caller's concern."""
        session = self._require(user_id)
        session.state = new_state
        return self.save(session)

    def attach_resume(self, user_id: int, document: Document) -> Session:
        """Store the resume, replacing any earlier one."""
        session = self._require(user_id)
        session.resume_document = document
        return self.save(session)

    def attach_job_post(self, user_id: int, document: Document) -> Session:
        """Store the job post, replacing any earlier one. Requires a resume."""
        session = self._require(user_id)
        if session.resume_document is None:
            raise ValueError(f"User {user_id} has no resume; cannot attach a job post")
        session.job_post_document = document
        return self.save(session)

    def complete(self, user_id: int) -> Optional[Session]:
        """Reset to idle and clear both documents. No-op if there is no session."""
        session = self.get(user_id)
        if session is None:
            return None
        session.state = ConversationState.IDLE
        session.resume_document = None
        session.job_post_document = None
        return self.save(session)

    def delete(self, user_id: int) -> bool:
        return self.store.delete(self._key(user_id))
