"""Quiz authoring schemas.

Public views never carry ``is_correct``; the ``*WithKey`` views are for
the owning teacher and admins.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from quizdesk.common.clock import to_naive_utc

# ============================================================================
# Quizzes
# ============================================================================


class QuizCreate(BaseModel):
    """Request to create a quiz."""

    title: str = Field(..., min_length=1, max_length=255)
    subject_id: int
    teacher_id: int | None = Field(
        None, description="Owning teacher; required when an admin creates the quiz"
    )
    password: str | None = Field(None, min_length=1, max_length=128, description="Access code")
    time_limit: int = Field(..., ge=1, description="Minutes")
    passing_score: int = Field(..., ge=0, description="Raw points needed to pass")
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_window(self) -> "QuizCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class QuizUpdate(BaseModel):
    """Partial quiz update. ``clear_password`` removes the access code."""

    title: str | None = Field(None, min_length=1, max_length=255)
    subject_id: int | None = None
    password: str | None = Field(None, min_length=1, max_length=128)
    clear_password: bool = False
    time_limit: int | None = Field(None, ge=1)
    passing_score: int | None = Field(None, ge=0)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v) if v is not None else v


class QuizPublic(BaseModel):
    """Quiz metadata visible to everyone."""

    id: int
    title: str
    subject_id: int
    teacher_id: int
    has_password: bool
    time_limit: int
    passing_score: int
    start_time: datetime
    end_time: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Options
# ============================================================================


class OptionFields(BaseModel):
    text: str = Field(..., min_length=1)
    is_correct: bool = False


class OptionCreate(OptionFields):
    question_id: int


class OptionUpdate(BaseModel):
    text: str | None = Field(None, min_length=1)
    is_correct: bool | None = None


class OptionPublic(BaseModel):
    id: int
    text: str

    class Config:
        from_attributes = True


class OptionWithKey(OptionPublic):
    question_id: int
    is_correct: bool


# ============================================================================
# Questions
# ============================================================================


class QuestionCreate(BaseModel):
    """Question with optional options created in the same request."""

    quiz_id: int
    text: str = Field(..., min_length=1)
    points: int = Field(1, ge=1)
    position: int = Field(0, ge=0)
    options: list[OptionFields] = Field(default_factory=list)


class QuestionUpdate(BaseModel):
    text: str | None = Field(None, min_length=1)
    points: int | None = Field(None, ge=1)
    position: int | None = Field(None, ge=0)


class QuestionPublic(BaseModel):
    """Question as shown during an attempt."""

    id: int
    text: str
    points: int
    position: int
    options: list[OptionPublic]

    class Config:
        from_attributes = True


class QuestionWithKey(BaseModel):
    id: int
    quiz_id: int
    text: str
    points: int
    position: int
    options: list[OptionWithKey]

    class Config:
        from_attributes = True
