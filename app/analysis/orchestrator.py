"""Analysis orchestrator: run every dimension, validate, aggregate or fail as a whole."""

import asyncio
import logging
import time
from typing import Any, Protocol

from pydantic import ValidationError

from app.models import (
    AnalysisOutcome,
    AnalysisResult,
    AnalysisSummary,
    Document,
    ExperienceAnalysis,
    HeadlineAnalysis,
    JobConditionsAnalysis,
    SkillsAnalysis,
)

from .reasoning import ReasoningError

logger = logging.getLogger(__name__)

# Kind sent to the reasoning service -> model its reply must validate against
DIMENSION_SCHEMAS = {
    "headline": HeadlineAnalysis,
    "skills": SkillsAnalysis,
    "experience": ExperienceAnalysis,
    "job_conditions": JobConditionsAnalysis,
    "summary": AnalysisSummary,
}


class Reasoner(Protocol):
    async def analyze(self, kind: str, resume_text: str, job_text: str) -> dict[str, Any]: ...


class AnalysisOrchestrator:
    """Issues the dimension requests and turns their replies into one AnalysisResult.

    Any transport failure, unparsable reply, schema violation or overall
    timeout fails the whole run; there is no partial report.
    """

    def __init__(self, reasoning: Reasoner, timeout_seconds: float = 90.0, parallel: bool = True) -> None:
        self.reasoning = reasoning
        self.timeout_seconds = timeout_seconds
        self.parallel = parallel

    async def _run_kind(self, kind: str, resume: Document, job: Document):
        raw = await self.reasoning.analyze(kind, resume.text, job.text)
        return DIMENSION_SCHEMAS[kind].model_validate(raw)

    async def _gather(self, resume: Document, job: Document) -> dict[str, Any]:
        kinds = list(DIMENSION_SCHEMAS)
        if not self.parallel:
            return {kind: await self._run_kind(kind, resume, job) for kind in kinds}

        tasks = [asyncio.ensure_future(self._run_kind(kind, resume, job)) for kind in kinds]
        try:
            results = await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        return dict(zip(kinds, results))

    async def run(self, resume: Document, job: Document) -> AnalysisOutcome:
        """Analyze a resume against a job post.

        Args:
            resume: Normalized resume.
            job: Normalized job posting.

        Returns:
            AnalysisOutcome carrying either the full result or a failure reason.
        """
        t0 = time.perf_counter()
        try:
            parts = await asyncio.wait_for(self._gather(resume, job), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            elapsed = time.perf_counter() - t0
            logger.warning("Analysis timed out after %.1fs", elapsed)
            return AnalysisOutcome.failed("Analysis timed out", duration_seconds=elapsed)
        except ValidationError as e:
            elapsed = time.perf_counter() - t0
            logger.warning("Analysis reply failed schema validation: %s", e.errors()[:3])
            return AnalysisOutcome.failed("Malformed analysis response", duration_seconds=elapsed)
        except ReasoningError as e:
            elapsed = time.perf_counter() - t0
            logger.warning("Analysis request failed: %s", e)
            return AnalysisOutcome.failed(str(e), duration_seconds=elapsed)

        summary: AnalysisSummary = parts["summary"]
        result = AnalysisResult(
            overall_score=summary.overall_score,
            headline=parts["headline"],
            skills=parts["skills"],
            experience=parts["experience"],
            job_conditions=parts["job_conditions"],
            summary=summary.summary,
        )
        elapsed = time.perf_counter() - t0
        logger.info("Analysis completed in %.2fs: overall_score=%d", elapsed, result.overall_score)
        return AnalysisOutcome.ok(result, duration_seconds=elapsed)
