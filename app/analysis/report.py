"""Render an AnalysisResult as a sequence of chat messages."""

from typing import Optional

from app.models import (
    AnalysisResult,
    ConditionComparison,
    ExperienceAnalysis,
    HeadlineAnalysis,
    JobConditionsAnalysis,
    SkillsAnalysis,
)

MESSAGE_LIMIT = 4096

_SENIORITY_LABELS = {
    "under-qualified": "Under-qualified",
    "perfect-match": "Perfect match",
    "over-qualified": "Over-qualified",
}


def score_icon(score: int) -> str:
    if score >= 80:
        return "🟢"
    if score >= 60:
        return "🟡"
    if score >= 40:
        return "🟠"
    return "🔴"


def _bullets(items: list[str], empty: str = "none") -> str:
    if not items:
        return f"  • {empty}"
    return "\n".join(f"  • {item}" for item in items)


def _problems_and_recommendations(problems: list[str], recommendations: list[str]) -> list[str]:
    lines: list[str] = []
    if problems:
        lines += ["", "⚠️ Problems:", _bullets(problems)]
    if recommendations:
        lines += ["", "💡 Recommendations:", _bullets(recommendations)]
    return lines


def format_header(result: AnalysisResult) -> str:
    return "\n".join([
        "📊 RESUME / JOB POST MATCH REPORT",
        "",
        f"{score_icon(result.overall_score)} Overall match: {result.overall_score}/100",
        "",
        "📝 Summary:",
        result.summary,
    ])


def format_headline(headline: HeadlineAnalysis) -> str:
    lines = [
        f"1️⃣ JOB TITLE {score_icon(headline.match_score)} {headline.match_score}/100",
        "",
        f"🎯 Position: {headline.job_title}",
        "👤 Candidate titles:",
        _bullets(headline.candidate_titles),
        "",
        headline.explanation,
    ]
    lines += _problems_and_recommendations(headline.problems, headline.recommendations)
    return "\n".join(lines)


def format_skills(skills: SkillsAnalysis) -> str:
    lines = [
        f"2️⃣ SKILLS {score_icon(skills.match_score)} {skills.match_score}/100",
        "",
        "✅ Matching:",
        _bullets(skills.matching_skills),
        "",
        "❌ Missing:",
        _bullets(skills.missing_skills),
    ]
    if skills.additional_skills:
        lines += ["", "➕ Additional:", _bullets(skills.additional_skills)]
    lines += ["", skills.explanation]
    lines += _problems_and_recommendations(skills.problems, skills.recommendations)
    return "\n".join(lines)


def format_experience(experience: ExperienceAnalysis) -> str:
    lines = [
        f"3️⃣ EXPERIENCE {score_icon(experience.experience_match)} {experience.experience_match}/100",
        "",
        f"📈 Seniority: {_SENIORITY_LABELS[experience.seniority_match]}",
        experience.seniority_explanation,
        "",
        f"⏳ Amount of experience: {experience.quantity_match}/100",
        experience.quantity_explanation,
        "",
        "📋 Role requires:",
        _bullets(experience.job_requirements),
        "",
        experience.explanation,
    ]
    lines += _problems_and_recommendations(experience.problems, experience.recommendations)
    return "\n".join(lines)


def _condition_line(label: str, condition: ConditionComparison) -> str:
    mark = "✅" if condition.compatible else "❌"
    return (
        f"{mark} {label}: job: {condition.job_value} / candidate: {condition.candidate_value}\n"
        f"     {condition.explanation}"
    )


def format_job_conditions(conditions: JobConditionsAnalysis) -> str:
    lines = [
        f"4️⃣ WORKING CONDITIONS {score_icon(conditions.overall_score)} {conditions.overall_score}/100",
        "",
        _condition_line("Location", conditions.location),
        _condition_line("Salary", conditions.salary),
        _condition_line("Schedule", conditions.schedule),
        _condition_line("Work format", conditions.work_format),
        "",
        conditions.explanation,
    ]
    lines += _problems_and_recommendations(conditions.problems, conditions.recommendations)
    return "\n".join(lines)


CLOSING_MESSAGE = (
    "✅ Analysis complete!\n\n"
    "Send /resume_and_job_post_match to compare another resume and job post."
)


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split text into chunks no longer than ``limit``, preferring line boundaries."""
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    # None means no chunk started yet; "" is a chunk that begins with a blank line
    current: Optional[str] = None
    for line in text.split("\n"):
        while len(line) > limit:
            # A single line longer than the limit is cut hard
            if current is not None:
                chunks.append(current)
                current = None
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = line if current is None else f"{current}\n{line}"
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current is not None:
        chunks.append(current)
    # Telegram rejects empty messages
    return [chunk for chunk in chunks if chunk.strip()]


def render_report(result: AnalysisResult) -> list[str]:
    """Return the report as an ordered list of messages, each within the transport limit."""
    sections = [
        format_header(result),
        format_headline(result.headline),
        format_skills(result.skills),
        format_experience(result.experience),
        format_job_conditions(result.job_conditions),
        CLOSING_MESSAGE,
    ]
    messages: list[str] = []
    for section in sections:
        messages.extend(split_message(section))
    return messages
