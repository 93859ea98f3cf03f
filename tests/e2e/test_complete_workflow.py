"""E2E tests: full conversations driven through the webhook endpoint."""

import pytest

from app.conversation import messages
from app.models import ConversationState
from tests.fakes import text_of_length, update_payload


@pytest.mark.e2e
class TestCompleteWorkflow:
    """start matching -> resume -> job post -> report -> idle."""

    @pytest.fixture
    def send(self, api_client):
        counter = {"update_id": 100}

        def _send(text=None, document=None):
            counter["update_id"] += 1
            response = api_client.post(
                "/webhook",
                json=update_payload(text=text, update_id=counter["update_id"], document=document),
            )
            assert response.status_code == 200
            return response

        return _send

    def test_successful_match(self, send, ctx, messenger, reasoning):
        send("start matching")
        assert ctx.sessions.get(42).state == ConversationState.WAITING_RESUME

        send(text_of_length(200))
        session = ctx.sessions.get(42)
        assert session.state == ConversationState.WAITING_JOB_POST
        assert session.resume_document.character_count == 200
        assert session.job_post_document is None

        send(text_of_length(150, seed="Senior Backend Engineer, Berlin, hybrid. "))
        session = ctx.sessions.get(42)
        assert session.state == ConversationState.IDLE
        assert session.resume_document is None

        assert sorted(reasoning.calls) == ["experience", "headline", "job_conditions", "skills", "summary"]
        report = messenger.texts[messenger.texts.index(messages.ANALYSIS_STARTED) + 1:]
        assert "Overall match: 72/100" in report[0]
        assert len(report) == 6
        assert all(chat_id == 4200 for chat_id, _ in messenger.sent)

    def test_malformed_dimension_yields_single_failure(self, send, ctx, messenger, reasoning):
        reasoning.replies["experience"] = {"experienceMatch": "lots"}

        send("/resume_and_job_post_match")
        send(text_of_length(200))
        send(text_of_length(150))

        assert ctx.sessions.get(42).state == ConversationState.IDLE
        after_start = messenger.texts[messenger.texts.index(messages.ANALYSIS_STARTED) + 1:]
        assert after_start == [messages.ANALYSIS_FAILED]
        assert not any("/100" in text for text in messenger.texts)

    def test_user_can_restart_after_failure(self, send, ctx, reasoning, messenger):
        reasoning.replies["skills"] = {}
        send("/resume_and_job_post_match")
        send(text_of_length(200))
        send(text_of_length(150))

        from tests.fakes import make_reasoning_replies

        reasoning.replies.update(make_reasoning_replies(overall_score=55))
        send("/resume_and_job_post_match")
        send(text_of_length(220))
        send(text_of_length(160))
        assert ctx.sessions.get(42).state == ConversationState.IDLE
        assert any("55/100" in text for text in messenger.texts)

    def test_uploaded_documents(self, send, ctx, messenger):
        messenger.files["resume-file"] = text_of_length(400).encode("utf-8")
        messenger.files["job-file"] = text_of_length(300).encode("utf-8")

        send("/resume_and_job_post_match")
        send(document={"file_id": "resume-file", "file_name": "resume.txt", "file_size": 400})
        assert ctx.sessions.get(42).resume_document.source_kind == "binary"
        send(document={"file_id": "job-file", "file_name": "job.txt", "mime_type": "text/plain"})

        assert ctx.sessions.get(42).state == ConversationState.IDLE
        assert any("72/100" in text for text in messenger.texts)

    def test_event_log_records_the_conversation(self, send, ctx):
        send("start matching")
        send(text_of_length(200))
        send(text_of_length(150))
        events = {e.event_type for e in ctx.event_log.query_recent(1000)}
        assert {"WEBHOOK_RECEIVED", "NEW_SESSION", "USER_MESSAGE", "BOT_RESPONSE", "SESSION_STATE", "AI_ANALYSIS"} <= events
