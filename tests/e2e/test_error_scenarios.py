"""E2E tests: error scenarios and recovery through the webhook endpoint."""

import asyncio

import pytest

from app.analysis import ReasoningError
from app.conversation import messages
from app.models import ConversationState
from tests.fakes import text_of_length, update_payload


@pytest.mark.e2e
class TestErrorScenarios:
    """Invalid documents, slow or failing analysis, rate limiting and admin access."""

    @pytest.fixture
    def send(self, api_client):
        counter = {"update_id": 500}

        def _send(text=None, document=None, user_id=42):
            counter["update_id"] += 1
            return api_client.post(
                "/webhook",
                json=update_payload(
                    text=text, user_id=user_id, chat_id=user_id * 100, update_id=counter["update_id"], document=document
                ),
            )

        return _send

    def test_invalid_documents_then_recovery(self, send, ctx, messenger):
        send("/resume_and_job_post_match")

        send("tiny")
        assert ctx.sessions.get(42).state == ConversationState.WAITING_RESUME
        assert "too short" in messenger.texts[-1]

        send(text_of_length(40_000))
        assert ctx.sessions.get(42).state == ConversationState.WAITING_RESUME
        assert "too long" in messenger.texts[-1]

        send(document={"file_id": "x", "file_name": "scan.jpg", "mime_type": "image/jpeg"})
        assert "Unsupported file type" in messenger.texts[-1]

        send(text_of_length(200))
        assert ctx.sessions.get(42).state == ConversationState.WAITING_JOB_POST

    def test_reasoning_outage_resets_session(self, send, ctx, messenger, reasoning):
        reasoning.replies["summary"] = ReasoningError("summary analysis request failed: overloaded")
        send("/resume_and_job_post_match")
        send(text_of_length(200))
        response = send(text_of_length(150))
        assert response.status_code == 200
        assert ctx.sessions.get(42).state == ConversationState.IDLE
        assert messenger.texts[-1] == messages.ANALYSIS_FAILED

    def test_slow_analysis_times_out(self, send, ctx, messenger, reasoning):
        async def hang(kind, resume_text, job_text):
            await asyncio.sleep(30)

        ctx.orchestrator.timeout_seconds = 0.1
        reasoning.replies["headline"] = hang
        send("/resume_and_job_post_match")
        send(text_of_length(200))
        send(text_of_length(150))
        assert ctx.sessions.get(42).state == ConversationState.IDLE
        assert messenger.texts[-1] == messages.ANALYSIS_FAILED

    def test_rate_limit_is_per_user(self, send, ctx):
        for _ in range(ctx.settings.rate_limit_per_minute):
            assert send("/help", user_id=1).status_code == 200
        assert send("/help", user_id=1).status_code == 429
        assert send("/help", user_id=2).status_code == 200

    def test_rate_window_recovers(self, send, ctx, clock):
        for _ in range(ctx.settings.rate_limit_per_minute):
            send("/help")
        assert send("/help").status_code == 429
        clock.advance(61)
        assert send("/help").status_code == 200

    def test_expired_session_starts_fresh(self, send, ctx, clock, test_settings):
        send("/resume_and_job_post_match")
        send(text_of_length(200))
        clock.advance(test_settings.session_ttl_hours * 3600 + 1)
        send("hello again")
        session = ctx.sessions.get(42)
        assert session.state == ConversationState.IDLE
        assert session.resume_document is None

    def test_admin_password_flow(self, send, ctx, messenger):
        send("/get_last_10_messages")
        assert "Usage" in messenger.texts[-1]

        send("/get_last_10_messages guess")
        assert messenger.texts[-1].startswith("❌ Invalid password")

        send("/get_last_10_messages s3cret-pass")
        assert "Log Messages" in messenger.texts[-1]

        audit = [(e.level, e.event_type) for e in ctx.event_log.query_recent(1000) if e.event_type.startswith("ADMIN")]
        assert sorted(audit) == [("INFO", "ADMIN_ACCESS_GRANTED"), ("WARN", "ADMIN_ACCESS_DENIED")]

    def test_processing_guard_via_cancel(self, send, ctx, messenger):
        send("/resume_and_job_post_match")
        send(text_of_length(200))
        ctx.sessions.attach_job_post(42, ctx.normalizer.normalize_text(text_of_length(150)))
        ctx.sessions.set_state(42, ConversationState.PROCESSING)

        send("/start")
        assert messenger.texts[-1] == messages.BUSY
        send("/cancel")
        assert ctx.sessions.get(42).state == ConversationState.IDLE
