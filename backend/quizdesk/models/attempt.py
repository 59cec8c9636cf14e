"""Attempt session and answer record models."""

from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from quizdesk.db.base import Base


class AttemptStatus(str, PyEnum):
    """Attempt session lifecycle state."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class FinishReason(str, PyEnum):
    """Why an attempt reached FINISHED."""

    SUBMITTED = "SUBMITTED"
    EXPIRED = "EXPIRED"


class AttemptSession(Base):
    """A student's single attempt at a quiz."""

    __tablename__ = "attempt_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    quiz_id = Column(
        Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status = Column(
        Enum(AttemptStatus, name="attempt_status", native_enum=False, length=16),
        nullable=False,
        default=AttemptStatus.PENDING,
    )
    attempt_token = Column(String(128), unique=True, nullable=True)
    attempt_token_expires_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    finish_reason = Column(
        Enum(FinishReason, name="attempt_finish_reason", native_enum=False, length=16),
        nullable=True,
    )

    # Scoring (written once, at finalization)
    score = Column(Integer, nullable=True)
    max_score = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    student = relationship("Student", back_populates="attempts")
    quiz = relationship("Quiz")
    answers = relationship(
        "AnswerRecord",
        back_populates="attempt",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AnswerRecord.id",
    )

    __table_args__ = (
        UniqueConstraint("student_id", "quiz_id", name="uq_attempt_sessions_student_quiz"),
        Index("ix_attempt_sessions_status_expires", "status", "attempt_token_expires_at"),
    )

    @property
    def finished(self) -> bool:
        return self.status == AttemptStatus.FINISHED

    def token_expired(self, now) -> bool:
        """Expiry is observed lazily: past ``attempt_token_expires_at`` means expired."""
        return self.attempt_token_expires_at is not None and now > self.attempt_token_expires_at


class AnswerRecord(Base):
    """Immutable per-question result written when an attempt is finalized."""

    __tablename__ = "answer_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    attempt_id = Column(
        Integer, ForeignKey("attempt_sessions.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    option_id = Column(
        Integer, ForeignKey("options.id", ondelete="SET NULL"), nullable=True
    )  # null = unanswered
    is_correct = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    attempt = relationship("AttemptSession", back_populates="answers")
    question = relationship("Question")
    option = relationship("Option")

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answer_records_attempt_question"),
    )
