"""Tests for reply parsing, the analysis orchestrator and report rendering."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from app.analysis import (
    ANALYSIS_KINDS,
    AnalysisOrchestrator,
    ReasoningClient,
    ReasoningError,
    get_prompt_for_kind,
    parse_json_reply,
    render_report,
    split_message,
)
from app.models import Document
from tests.fakes import FakeReasoning, make_reasoning_replies, text_of_length


def _doc(n: int) -> Document:
    text = text_of_length(n)
    return Document(text=text, word_count=len(text.split()), character_count=n, source_kind="text")


def _run(orchestrator: AnalysisOrchestrator):
    return asyncio.run(orchestrator.run(_doc(200), _doc(150)))


@pytest.mark.unit
class TestParseJsonReply:
    def test_raw_json(self):
        assert parse_json_reply('{"a": 1}') == {"a": 1}

    def test_code_fence(self):
        assert parse_json_reply('Here you go:\n```json\n{"a": 2}\n```\nThanks') == {"a": 2}

    def test_brace_slice(self):
        assert parse_json_reply('Result: {"a": {"b": 3}} done') == {"a": {"b": 3}}

    def test_no_json(self):
        with pytest.raises(ReasoningError):
            parse_json_reply("I cannot help with that.")

    def test_json_array_is_not_an_object(self):
        with pytest.raises(ReasoningError):
            parse_json_reply("[1, 2, 3]")


@pytest.mark.unit
class TestPrompts:
    def test_every_kind_has_a_template(self):
        assert set(ANALYSIS_KINDS) == {"headline", "skills", "experience", "job_conditions", "summary"}

    def test_template_renders_documents(self):
        messages = get_prompt_for_kind("skills").format_messages(resume="RESUME-TEXT", job_post="JOB-TEXT")
        human = messages[-1].content
        assert "RESUME-TEXT" in human
        assert "JOB-TEXT" in human
        assert '"matchingSkills"' in human

    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            get_prompt_for_kind("salary_only")


@pytest.mark.unit
class TestReasoningClient:
    def _client(self, llm) -> ReasoningClient:
        return ReasoningClient(api_key="k", model="m", llm=llm, max_input_chars=50)

    def test_parses_model_reply(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content='```json\n{"overallScore": 60, "summary": "ok"}\n```'))
        result = asyncio.run(self._client(llm).analyze("summary", "resume", "job"))
        assert result == {"overallScore": 60, "summary": "ok"}

    def test_inputs_truncated(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content="{}"))
        asyncio.run(self._client(llm).analyze("headline", "R" * 500, "J" * 500))
        human = llm.ainvoke.call_args.args[0][-1].content
        assert "R" * 50 in human
        assert "R" * 51 not in human

    def test_transport_error_wrapped(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("overloaded"))
        with pytest.raises(ReasoningError):
            asyncio.run(self._client(llm).analyze("skills", "r", "j"))

    def test_non_json_reply(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content="Sorry, no."))
        with pytest.raises(ReasoningError):
            asyncio.run(self._client(llm).analyze("skills", "r", "j"))


@pytest.mark.unit
class TestOrchestrator:
    def test_success_passes_summary_through(self):
        reasoning = FakeReasoning(make_reasoning_replies(overall_score=72))
        outcome = _run(AnalysisOrchestrator(reasoning))
        assert outcome.success
        assert outcome.result.overall_score == 72
        assert outcome.result.summary.startswith("Strong backend candidate")
        assert outcome.result.skills.missing_skills == ["AWS"]
        assert sorted(reasoning.calls) == sorted(ANALYSIS_KINDS)

    def test_sequential_mode(self):
        reasoning = FakeReasoning(make_reasoning_replies())
        outcome = _run(AnalysisOrchestrator(reasoning, parallel=False))
        assert outcome.success
        assert reasoning.calls == list(ANALYSIS_KINDS)

    def test_malformed_dimension_fails_whole_run(self):
        replies = make_reasoning_replies()
        replies["skills"] = {"explanation": "missing everything else"}
        outcome = _run(AnalysisOrchestrator(FakeReasoning(replies)))
        assert not outcome.success
        assert outcome.result is None

    def test_out_of_range_score_fails(self):
        replies = make_reasoning_replies()
        replies["headline"]["matchScore"] = 101
        assert not _run(AnalysisOrchestrator(FakeReasoning(replies))).success

    @pytest.mark.parametrize("kind", ["headline", "skills", "experience", "job_conditions"])
    def test_dimension_without_problem_lists_fails(self, kind):
        replies = make_reasoning_replies()
        del replies[kind]["problems"]
        del replies[kind]["recommendations"]
        outcome = _run(AnalysisOrchestrator(FakeReasoning(replies)))
        assert not outcome.success
        assert outcome.failure_reason == "Malformed analysis response"

    def test_missing_additional_skills_fails(self):
        replies = make_reasoning_replies()
        del replies["skills"]["additionalSkills"]
        assert not _run(AnalysisOrchestrator(FakeReasoning(replies))).success

    def test_string_score_fails(self):
        replies = make_reasoning_replies()
        replies["headline"]["matchScore"] = "80"
        outcome = _run(AnalysisOrchestrator(FakeReasoning(replies)))
        assert not outcome.success
        assert outcome.result is None

    def test_string_compatibility_flag_fails(self):
        replies = make_reasoning_replies()
        replies["job_conditions"]["salary"]["compatible"] = "yes"
        assert not _run(AnalysisOrchestrator(FakeReasoning(replies))).success

    def test_string_overall_score_fails(self):
        replies = make_reasoning_replies()
        replies["summary"]["overallScore"] = "72"
        assert not _run(AnalysisOrchestrator(FakeReasoning(replies))).success

    def test_empty_problem_lists_are_valid(self):
        replies = make_reasoning_replies()
        replies["skills"]["problems"] = []
        replies["skills"]["recommendations"] = []
        assert _run(AnalysisOrchestrator(FakeReasoning(replies))).success

    def test_reasoning_error_fails(self):
        replies = make_reasoning_replies()
        replies["experience"] = ReasoningError("Model reply did not contain a JSON object")
        outcome = _run(AnalysisOrchestrator(FakeReasoning(replies)))
        assert not outcome.success
        assert "JSON" in outcome.failure_reason

    def test_timeout_fails(self):
        async def slow(kind, resume_text, job_text):
            await asyncio.sleep(5)
            return {}

        replies = make_reasoning_replies()
        replies["job_conditions"] = slow
        outcome = _run(AnalysisOrchestrator(FakeReasoning(replies), timeout_seconds=0.05))
        assert not outcome.success
        assert outcome.failure_reason == "Analysis timed out"

    def test_unexpected_error_propagates(self):
        replies = make_reasoning_replies()
        replies["headline"] = KeyError("bug")
        with pytest.raises(KeyError):
            _run(AnalysisOrchestrator(FakeReasoning(replies)))


@pytest.mark.unit
class TestReport:
    def _result(self):
        outcome = _run(AnalysisOrchestrator(FakeReasoning(make_reasoning_replies(overall_score=72))))
        return outcome.result

    def test_one_message_per_section(self):
        messages = render_report(self._result())
        assert len(messages) == 6
        assert "72/100" in messages[0]
        assert "JOB TITLE" in messages[1]
        assert "SKILLS" in messages[2]
        assert "EXPERIENCE" in messages[3]
        assert "WORKING CONDITIONS" in messages[4]

    def test_messages_within_limit(self):
        result = self._result()
        result.skills.explanation = "word " * 2000
        assert all(len(m) <= 4096 for m in render_report(result))

    def test_split_prefers_line_boundaries(self):
        text = "\n".join(["x" * 30] * 10)
        chunks = split_message(text, limit=100)
        assert all(len(c) <= 100 for c in chunks)
        assert "\n".join(chunks) == text

    def test_split_hard_cuts_long_line(self):
        chunks = split_message("y" * 250, limit=100)
        assert [len(c) for c in chunks] == [100, 100, 50]

    def test_split_keeps_leading_blank_lines(self):
        text = "\n".join(["", "", "a" * 30, "b" * 30])
        chunks = split_message(text, limit=40)
        assert chunks == ["\n\n" + "a" * 30, "b" * 30]
        assert "\n".join(chunks) == text

    def test_split_keeps_blank_lines_after_hard_cut(self):
        text = "z" * 100 + "\n\n" + "tail"
        chunks = split_message(text, limit=50)
        assert chunks == ["z" * 50, "z" * 50, "\ntail"]

    def test_short_text_unchanged(self):
        assert split_message("hello") == ["hello"]
