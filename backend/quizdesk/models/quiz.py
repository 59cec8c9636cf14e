"""Quiz authoring models: quizzes, questions and options."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from quizdesk.db.base import Base


class Quiz(Base):
    """A timed quiz owned by a teacher and filed under a subject."""

    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)  # null = open quiz
    subject_id = Column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    teacher_id = Column(
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True
    )

    time_limit = Column(Integer, nullable=False)  # minutes
    passing_score = Column(Integer, nullable=False)  # raw points
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    subject = relationship("Subject")
    teacher = relationship("Teacher", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Question.position, Question.id]",
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_quizzes_window"),
        CheckConstraint("time_limit >= 1", name="ck_quizzes_time_limit"),
        CheckConstraint("passing_score >= 0", name="ck_quizzes_passing_score"),
    )

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None

    def is_open(self, now) -> bool:
        """Whether the attempt window contains ``now``."""
        return self.start_time <= now <= self.end_time


class Question(Base):
    """Single-answer question within a quiz."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(
        Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )
    text = Column(Text, nullable=False)
    points = Column(Integer, nullable=False, default=1)
    position = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    quiz = relationship("Quiz", back_populates="questions")
    options = relationship(
        "Option",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Option.id",
    )

    __table_args__ = (
        CheckConstraint("points > 0", name="ck_questions_points"),
        Index("ix_questions_quiz_position", "quiz_id", "position"),
    )


class Option(Base):
    """Answer option for a question."""

    __tablename__ = "options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    question = relationship("Question", back_populates="options")
