"""Pydantic schemas for quiz attempts."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from quizdesk.models.attempt import AttemptStatus, FinishReason
from quizdesk.schemas.quiz import OptionWithKey, QuestionPublic

# ============================================================================
# Start
# ============================================================================


class StartAttemptRequest(BaseModel):
    access_code: str | None = Field(None, description="Required for password-protected quizzes")


class StartAttemptResponse(BaseModel):
    """Attempt token; send it back as ``X-Quiz-Token``."""

    attempt_id: int
    quiz_id: int
    status: AttemptStatus
    attempt_token: str
    started_at: datetime
    expires_at: datetime


# ============================================================================
# In progress
# ============================================================================


class AttemptQuestionsResponse(BaseModel):
    attempt_id: int
    quiz_id: int
    expires_at: datetime
    questions: list[QuestionPublic]


# ============================================================================
# Submit
# ============================================================================


class AnswerIn(BaseModel):
    question_id: int
    option_id: int | None = Field(None, description="null = unanswered")


class SubmitAttemptRequest(BaseModel):
    answers: list[AnswerIn] = Field(default_factory=list)

    @field_validator("answers")
    @classmethod
    def unique_questions(cls, v: list[AnswerIn]) -> list[AnswerIn]:
        seen: set[int] = set()
        for answer in v:
            if answer.question_id in seen:
                raise ValueError(f"Duplicate answer for question {answer.question_id}")
            seen.add(answer.question_id)
        return v

    def as_mapping(self) -> dict[int, int | None]:
        return {a.question_id: a.option_id for a in self.answers}


class QuestionResultOut(BaseModel):
    question_id: int
    selected_option_id: int | None
    is_correct: bool


class SubmitAttemptResponse(BaseModel):
    attempt_id: int
    quiz_id: int
    score: int
    max_score: int
    passed: bool
    score_percent: int
    correct_count: int
    finished_at: datetime
    results: list[QuestionResultOut]


# ============================================================================
# After submission
# ============================================================================


class SolutionQuestionOut(BaseModel):
    question_id: int
    text: str
    points: int
    options: list[OptionWithKey]
    selected_option_id: int | None
    is_correct: bool


class SolutionsResponse(BaseModel):
    attempt_id: int
    quiz_id: int
    score: int | None
    max_score: int | None
    passed: bool | None
    finish_reason: FinishReason | None
    questions: list[SolutionQuestionOut]


class AttemptOut(BaseModel):
    """Attempt summary; never includes the token."""

    id: int
    student_id: int
    quiz_id: int
    status: AttemptStatus
    started_at: datetime | None
    attempt_token_expires_at: datetime | None
    finished_at: datetime | None
    finish_reason: FinishReason | None
    score: int | None
    max_score: int | None
    passed: bool | None

    class Config:
        from_attributes = True


class ExpireSweepResponse(BaseModel):
    expired: int
