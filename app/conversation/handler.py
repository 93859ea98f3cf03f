"""Conversation state machine: route one inbound event against the user's session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from app.analysis.report import render_report
from app.ingestion.normalizer import DocumentValidationError
from app.messaging.telegram import MessagingError
from app.models import ConversationState, Document, InboundEvent, Session

from . import messages
from .commands import (
    ADMIN_COMMANDS,
    ALLOWED_WHILE_PROCESSING,
    CANCEL,
    HELP,
    MATCH,
    START,
    Command,
    matches_start_keyword,
    parse_command,
)
from .states import ensure_transition

if TYPE_CHECKING:
    from app.context import ServiceContext

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 100


def _preview(text: Optional[str]) -> str:
    if not text:
        return ""
    return text if len(text) <= _PREVIEW_CHARS else text[:_PREVIEW_CHARS] + "..."


class ConversationHandler:
    """Interprets inbound events against session state and drives transitions.

    Commands run in any state, except that only cancel and help are served
    while an analysis is in flight. Free text and uploads are interpreted by
    the current state. Analysis runs inside the same call, and the session is
    returned to idle whatever its outcome.
    """

    def __init__(self, context: ServiceContext) -> None:
        self.ctx = context
        self.sessions = context.sessions
        self.event_log = context.event_log

    # --- Entry point ----------------------------------------------------------

    async def handle(self, event: InboundEvent) -> None:
        """Process one event. Unexpected errors are logged and answered with an apology."""
        try:
            session = self._load_session(event)
            self._log_inbound(event)
            if event.callback_data is not None:
                await self._handle_callback(session, event)
            else:
                await self._dispatch(session, event)
        except Exception as e:
            logger.exception("Message handler failed for user=%s", event.user_id)
            self.event_log.append(
                "ERROR",
                "MESSAGE_HANDLER_ERROR",
                f"Error handling update {event.update_id}: {e}",
                user_id=event.user_id,
                chat_id=event.chat_id,
                error=e,
            )
            await self._reply(event, messages.GENERIC_ERROR)

    def _load_session(self, event: InboundEvent) -> Session:
        session = self.sessions.get(event.user_id)
        if session is not None:
            return session
        session = self.sessions.save(
            self.sessions.create(event.user_id, event.chat_id, event.language_code)
        )
        self.event_log.append(
            "INFO",
            "NEW_SESSION",
            "Created new session",
            data={"language_code": event.language_code},
            user_id=event.user_id,
            chat_id=event.chat_id,
        )
        return session

    def _log_inbound(self, event: InboundEvent) -> None:
        if event.document is not None:
            description = f"[document] {event.document.file_name or event.document.file_id}"
        elif event.callback_data is not None:
            description = f"[callback] {event.callback_data}"
        else:
            description = _preview(event.text)
        self.event_log.append(
            "INFO", "USER_MESSAGE", description, user_id=event.user_id, chat_id=event.chat_id
        )

    async def _reply(self, event: InboundEvent, text: str) -> bool:
        sent = await self.ctx.messenger.send_message(event.chat_id, text)
        if sent:
            self.event_log.append(
                "INFO", "BOT_RESPONSE", _preview(text), user_id=event.user_id, chat_id=event.chat_id
            )
        else:
            self.event_log.append(
                "ERROR",
                "SEND_MESSAGE_FAILED",
                "Failed to send message",
                data={"preview": _preview(text)},
                user_id=event.user_id,
                chat_id=event.chat_id,
            )
        return sent

    def _transition(self, session: Session, target: ConversationState) -> Session:
        ensure_transition(session.state, target)
        previous = session.state
        session = self.sessions.set_state(session.user_id, target)
        self.event_log.append(
            "INFO",
            "SESSION_STATE",
            f"{previous.value} -> {target.value}",
            user_id=session.user_id,
            chat_id=session.chat_id,
        )
        return session

    # --- Routing --------------------------------------------------------------

    async def _handle_callback(self, session: Session, event: InboundEvent) -> None:
        if event.callback_data == CANCEL:
            await self._cancel(session, event)
        else:
            await self._reply(event, messages.HELP)

    async def _dispatch(self, session: Session, event: InboundEvent) -> None:
        command = parse_command(event.text)
        if command is not None:
            if session.state == ConversationState.PROCESSING and command.name not in ALLOWED_WHILE_PROCESSING:
                await self._reply(event, messages.BUSY)
                return
            await self._run_command(session, command, event)
            return

        if session.state == ConversationState.IDLE:
            await self._on_idle(session, event)
        elif session.state == ConversationState.WAITING_RESUME:
            await self._on_waiting_resume(session, event)
        elif session.state == ConversationState.WAITING_JOB_POST:
            await self._on_waiting_job_post(session, event)
        else:
            await self._reply(event, messages.BUSY)

    async def _run_command(self, session: Session, command: Command, event: InboundEvent) -> None:
        if command.name == START:
            await self._reply(event, messages.WELCOME)
        elif command.name == MATCH:
            await self._start_collection(session, event)
        elif command.name == CANCEL:
            await self._cancel(session, event)
        elif command.name in ADMIN_COMMANDS:
            for reply in self.ctx.admin.handle(command, event.user_id, event.chat_id):
                if not await self._reply(event, reply):
                    break
        else:
            # /help and anything unrecognized
            await self._reply(event, messages.HELP)

    # --- Commands -------------------------------------------------------------

    async def _start_collection(self, session: Session, event: InboundEvent) -> None:
        ensure_transition(session.state, ConversationState.WAITING_RESUME)
        previous = session.state
        session.state = ConversationState.WAITING_RESUME
        session.resume_document = None
        session.job_post_document = None
        self.sessions.save(session)
        self.event_log.append(
            "INFO",
            "SESSION_STATE",
            f"{previous.value} -> {session.state.value}",
            user_id=event.user_id,
            chat_id=event.chat_id,
        )
        await self._reply(event, messages.ASK_RESUME)

    async def _cancel(self, session: Session, event: InboundEvent) -> None:
        previous = session.state
        self.sessions.complete(event.user_id)
        self.event_log.append(
            "INFO",
            "SESSION_STATE",
            f"{previous.value} -> {ConversationState.IDLE.value} (cancelled)",
            user_id=event.user_id,
            chat_id=event.chat_id,
        )
        await self._reply(event, messages.CANCELLED)

    # --- States ---------------------------------------------------------------

    async def _on_idle(self, session: Session, event: InboundEvent) -> None:
        if event.document is not None:
            await self._reply(event, messages.NOT_EXPECTING_DOCUMENT)
        elif event.text and matches_start_keyword(event.text):
            await self._start_collection(session, event)
        else:
            await self._reply(event, messages.HELP)

    async def _on_waiting_resume(self, session: Session, event: InboundEvent) -> None:
        document = await self._normalize(event)
        if document is None:
            return
        session = self.sessions.attach_resume(event.user_id, document)
        self._transition(session, ConversationState.WAITING_JOB_POST)
        await self._reply(event, messages.RESUME_RECEIVED)

    async def _on_waiting_job_post(self, session: Session, event: InboundEvent) -> None:
        document = await self._normalize(event)
        if document is None:
            return
        self.sessions.attach_job_post(event.user_id, document)
        session = self._transition(session, ConversationState.PROCESSING)
        await self._run_analysis(session, event)

    # --- Documents ------------------------------------------------------------

    async def _normalize(self, event: InboundEvent) -> Optional[Document]:
        """Turn the event into a Document, replying with the reason on rejection."""
        normalizer = self.ctx.normalizer
        try:
            if event.document is not None:
                upload = event.document
                media_type = normalizer.check_declared(upload.mime_type, upload.file_size, upload.file_name)
                try:
                    payload = await self.ctx.messenger.fetch_document(upload.file_id)
                except MessagingError as e:
                    self.event_log.append(
                        "WARN",
                        "DOCUMENT_REJECTED",
                        f"Download failed: {e}",
                        data={"file_name": upload.file_name},
                        user_id=event.user_id,
                        chat_id=event.chat_id,
                    )
                    await self._reply(event, messages.DOWNLOAD_FAILED)
                    return None
                return normalizer.normalize_binary(payload, media_type, upload.file_size, upload.file_name)
            if event.text:
                return normalizer.normalize_text(event.text)
        except DocumentValidationError as e:
            self.event_log.append(
                "WARN",
                "DOCUMENT_REJECTED",
                e.reason,
                user_id=event.user_id,
                chat_id=event.chat_id,
            )
            await self._reply(event, messages.validation_failed(e.reason))
            return None

        await self._reply(event, messages.SEND_DOCUMENT)
        return None

    # --- Analysis -------------------------------------------------------------

    async def _run_analysis(self, session: Session, event: InboundEvent) -> None:
        try:
            await self._reply(event, messages.ANALYSIS_STARTED)
            outcome = await self.ctx.orchestrator.run(session.resume_document, session.job_post_document)
            if outcome.success:
                self.event_log.append(
                    "INFO",
                    "AI_ANALYSIS",
                    f"Analysis completed: overall score {outcome.result.overall_score}",
                    data={
                        "overall_score": outcome.result.overall_score,
                        "duration_seconds": round(outcome.duration_seconds, 2),
                    },
                    user_id=event.user_id,
                    chat_id=event.chat_id,
                )
                for text in render_report(outcome.result):
                    await self._reply(event, text)
            else:
                self.event_log.append(
                    "ERROR",
                    "AI_ANALYSIS",
                    f"Analysis failed: {outcome.failure_reason}",
                    data={"duration_seconds": round(outcome.duration_seconds, 2)},
                    user_id=event.user_id,
                    chat_id=event.chat_id,
                )
                await self._reply(event, messages.ANALYSIS_FAILED)
        finally:
            self.sessions.complete(event.user_id)
            self.event_log.append(
                "INFO",
                "SESSION_STATE",
                f"{ConversationState.PROCESSING.value} -> {ConversationState.IDLE.value}",
                user_id=event.user_id,
                chat_id=event.chat_id,
            )
