"""Database models."""

# Import all models here so Alembic can detect them
from quizdesk.models.academic import Faculty, Subject
from quizdesk.models.accounts import Admin, Student, Teacher
from quizdesk.models.attempt import AnswerRecord, AttemptSession, AttemptStatus, FinishReason
from quizdesk.models.quiz import Option, Question, Quiz

__all__ = [
    "Admin",
    "Teacher",
    "Student",
    "Faculty",
    "Subject",
    "Quiz",
    "Question",
    "Option",
    "AttemptSession",
    "AttemptStatus",
    "FinishReason",
    "AnswerRecord",
]
