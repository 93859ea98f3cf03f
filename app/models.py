"""Pydantic v2 models for sessions, documents, analysis reports, and inbound updates."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Conversation state -------------------------------------------------------


class ConversationState(str, Enum):
    """Where a user is in the resume -> job post -> analysis cycle."""

    IDLE = "idle"
    WAITING_RESUME = "waiting_resume"
    WAITING_JOB_POST = "waiting_job_post"
    PROCESSING = "processing"


class Document(BaseModel):
    """Normalized plain-text resume or job posting."""

    text: str = Field(..., description="Normalized plain text")
    word_count: int = Field(..., ge=0, description="Whitespace-delimited word count")
    character_count: int = Field(..., ge=0, description="Length of text in characters")
    source_kind: Literal["text", "binary"] = Field(
        ...,
        description="Whether the document arrived as pasted text or an uploaded file",
    )
    file_name: Optional[str] = Field(default=None, description="Original file name, if uploaded")
    media_type: Optional[str] = Field(default=None, description="Declared media type, if uploaded")
    processed_at: datetime = Field(default_factory=utc_now)


class Session(BaseModel):
    """Per-user conversation state persisted in the key-value store."""

    user_id: int = Field(..., description="Telegram user id")
    chat_id: int = Field(..., description="Telegram chat id replies go to")
    state: ConversationState = Field(default=ConversationState.IDLE)
    resume_document: Optional[Document] = None
    job_post_document: Optional[Document] = None
    language_code: Optional[str] = Field(default=None, description="Locale hint, informational only")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _job_post_requires_resume(self) -> "Session":
        if self.job_post_document is not None and self.resume_document is None:
            raise ValueError("job_post_document cannot be set before resume_document")
        return self


# --- Analysis dimensions ------------------------------------------------------

class DimensionReport(BaseModel):
    """Fields shared by every dimension the reasoning service returns.

    Validation is strict: every field must be present with its JSON type
    (no "80" for a score, no "yes" for a flag). Empty lists are fine.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True)

    explanation: str
    problems: list[str]
    recommendations: list[str]


class HeadlineAnalysis(DimensionReport):
    """Job title vs. the titles the candidate has held."""

    job_title: str = Field(..., alias="jobTitle")
    candidate_titles: list[str] = Field(..., alias="candidateTitles")
    match_score: int = Field(..., ge=0, le=100, alias="matchScore")


class SkillsAnalysis(DimensionReport):
    """Requested skills vs. skills evidenced in the resume."""

    requested_skills: list[str] = Field(..., alias="requestedSkills")
    candidate_skills: list[str] = Field(..., alias="candidateSkills")
    matching_skills: list[str] = Field(..., alias="matchingSkills")
    missing_skills: list[str] = Field(..., alias="missingSkills")
    additional_skills: list[str] = Field(..., alias="additionalSkills")
    match_score: int = Field(..., ge=0, le=100, alias="matchScore")


class ExperienceAnalysis(DimensionReport):
    """Experience fit, including seniority and quantity sub-scores."""

    candidate_experience: list[str] = Field(..., alias="candidateExperience")
    job_requirements: list[str] = Field(..., alias="jobRequirements")
    experience_match: int = Field(..., ge=0, le=100, alias="experienceMatch")
    seniority_match: Literal["under-qualified", "perfect-match", "over-qualified"] = Field(
        ..., alias="seniorityMatch"
    )
    seniority_explanation: str = Field(..., alias="seniorityExplanation")
    quantity_match: int = Field(..., ge=0, le=100, alias="quantityMatch")
    quantity_explanation: str = Field(..., alias="quantityExplanation")


class ConditionComparison(BaseModel):
    """One logistical condition as stated by the job post and by the candidate."""

    model_config = ConfigDict(populate_by_name=True, strict=True)

    job_value: str = Field(..., alias="jobValue")
    candidate_value: str = Field(..., alias="candidateValue")
    compatible: bool
    explanation: str


class JobConditionsAnalysis(BaseModel):
    """Location, salary, schedule and work format compatibility."""

    model_config = ConfigDict(populate_by_name=True, strict=True)

    location: ConditionComparison
    salary: ConditionComparison
    schedule: ConditionComparison
    work_format: ConditionComparison = Field(..., alias="workFormat")
    overall_score: int = Field(..., ge=0, le=100, alias="overallScore")
    explanation: str
    problems: list[str]
    recommendations: list[str]


class AnalysisSummary(BaseModel):
    """Composite score and synthesis, passed through from the reasoning service."""

    model_config = ConfigDict(populate_by_name=True, strict=True)

    overall_score: int = Field(..., ge=0, le=100, alias="overallScore")
    summary: str = Field(..., min_length=1)


class AnalysisResult(BaseModel):
    """Full compatibility report. Never persisted."""

    overall_score: int = Field(..., ge=0, le=100)
    headline: HeadlineAnalysis
    skills: SkillsAnalysis
    experience: ExperienceAnalysis
    job_conditions: JobConditionsAnalysis
    summary: str
    processed_at: datetime = Field(default_factory=utc_now)


class AnalysisOutcome(BaseModel):
    """Tagged result of one orchestration run: a report or a failure reason."""

    success: bool
    result: Optional[AnalysisResult] = None
    failure_reason: Optional[str] = None
    duration_seconds: float = 0.0

    @classmethod
    def ok(cls, result: AnalysisResult, duration_seconds: float = 0.0) -> "AnalysisOutcome":
        return cls(success=True, result=result, duration_seconds=duration_seconds)

    @classmethod
    def failed(cls, reason: str, duration_seconds: float = 0.0) -> "AnalysisOutcome":
        return cls(success=False, failure_reason=reason, duration_seconds=duration_seconds)


# --- Log sink -----------------------------------------------------------------


class LogEntry(BaseModel):
    """One record in the persistent event log."""

    timestamp: datetime = Field(default_factory=utc_now)
    level: Literal["DEBUG", "INFO", "WARN", "ERROR"]
    event_type: str
    message: str
    data: Optional[dict] = None
    user_id: Optional[int] = None
    chat_id: Optional[int] = None
    error_details: Optional[str] = None


# --- Telegram update payloads -------------------------------------------------


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    first_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: Optional[str] = None


class TelegramDocument(BaseModel):
    file_id: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)


class TelegramMessage(BaseModel):
    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    date: Optional[int] = None
    text: Optional[str] = None
    document: Optional[TelegramDocument] = None


class CallbackQuery(BaseModel):
    id: str
    from_user: TelegramUser = Field(..., alias="from")
    message: Optional[TelegramMessage] = None
    data: Optional[str] = None


class TelegramUpdate(BaseModel):
    """Webhook body. Must carry an update id and either a message or a callback query."""

    update_id: int
    message: Optional[TelegramMessage] = None
    callback_query: Optional[CallbackQuery] = None

    @model_validator(mode="after")
    def _has_payload(self) -> "TelegramUpdate":
        if self.message is None and self.callback_query is None:
            raise ValueError("update must contain a message or a callback_query")
        return self

    @property
    def user_id(self) -> Optional[int]:
        if self.message is not None:
            return self.message.from_user.id if self.message.from_user else None
        return self.callback_query.from_user.id

    @property
    def chat_id(self) -> Optional[int]:
        if self.message is not None:
            return self.message.chat.id
        if self.callback_query.message is not None:
            return self.callback_query.message.chat.id
        return None


class InboundEvent(BaseModel):
    """Transport-independent view of one update, as the conversation handler sees it."""

    update_id: int
    user_id: int
    chat_id: int
    text: Optional[str] = None
    document: Optional[TelegramDocument] = None
    callback_data: Optional[str] = None
    language_code: Optional[str] = None

    @classmethod
    def from_update(cls, update: TelegramUpdate) -> "InboundEvent":
        """Build an event; raises ValueError when user or chat id is missing."""
        user_id = update.user_id
        chat_id = update.chat_id
        if user_id is None or chat_id is None:
            raise ValueError("update is missing user or chat id")
        if update.message is not None:
            sender = update.message.from_user
            return cls(
                update_id=update.update_id,
                user_id=user_id,
                chat_id=chat_id,
                text=update.message.text,
                document=update.message.document,
                language_code=sender.language_code if sender else None,
            )
        query = update.callback_query
        return cls(
            update_id=update.update_id,
            user_id=user_id,
            chat_id=chat_id,
            callback_data=query.data or "",
            language_code=query.from_user.language_code,
        )
