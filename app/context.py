"""Per-event service wiring.

A ServiceContext is built once per inbound request and handed to every
component that needs a collaborator. Nothing here is cached between events;
all cross-event state lives in the key-value store and the event log.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from app.admin.gateway import AdminLogGateway
from app.analysis.orchestrator import AnalysisOrchestrator, Reasoner
from app.analysis.reasoning import ReasoningClient
from app.config import Settings
from app.ingestion.normalizer import DocumentNormalizer
from app.messaging.telegram import TelegramClient
from app.storage.kv_store import KeyValueStore
from app.storage.rate_limiter import RateLimiter
from app.storage.session_store import SessionStore
from app.utils.event_log import EventLog

RATE_WINDOW_SECONDS = 60


@dataclass
class ServiceContext:
    settings: Settings
    store: KeyValueStore
    sessions: SessionStore
    rate_limiter: RateLimiter
    normalizer: DocumentNormalizer
    orchestrator: AnalysisOrchestrator
    messenger: TelegramClient
    event_log: EventLog
    admin: AdminLogGateway

    async def aclose(self) -> None:
        await self.messenger.aclose()


def build_context(
    settings: Settings,
    messenger: Optional[TelegramClient] = None,
    reasoning: Optional[Reasoner] = None,
    clock: Callable[[], float] = time.time,
) -> ServiceContext:
    """Wire every component from settings.

    Args:
        settings: Application settings.
        messenger: Messaging client override (tests pass a fake).
        reasoning: Reasoning collaborator override (tests pass a fake).
        clock: Epoch-seconds clock for storage expiry.

    Returns:
        A fresh ServiceContext.
    """
    store = KeyValueStore(settings.storage_path, clock=clock)
    event_log = EventLog(settings.log_dir, retention_days=settings.event_log_retention_days)
    reasoning = reasoning or ReasoningClient(
        api_key=settings.anthropic_api_key,
        model=settings.llm_model_name,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_request_timeout_seconds,
        max_input_chars=settings.max_input_chars,
    )
    return ServiceContext(
        settings=settings,
        store=store,
        sessions=SessionStore(store, ttl_seconds=settings.session_ttl_hours * 3600),
        rate_limiter=RateLimiter(
            store,
            max_requests=settings.rate_limit_per_minute,
            window_seconds=RATE_WINDOW_SECONDS,
        ),
        normalizer=DocumentNormalizer(
            min_chars=settings.min_document_chars,
            max_chars=settings.max_document_chars,
            max_size_bytes=settings.max_file_size_bytes,
            allow_pdf=settings.allow_pdf,
            allow_docx=settings.allow_docx,
        ),
        orchestrator=AnalysisOrchestrator(
            reasoning,
            timeout_seconds=settings.analysis_timeout_seconds,
            parallel=settings.parallel_analysis,
        ),
        messenger=messenger or TelegramClient(settings.telegram_bot_token),
        event_log=event_log,
        admin=AdminLogGateway(event_log, settings.environment, settings.active_admin_password),
    )
