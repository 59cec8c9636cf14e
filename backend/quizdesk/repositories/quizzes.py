"""Typed read access to quizzes, questions and options."""

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from quizdesk.core.app_exceptions import NotFoundError
from quizdesk.models.quiz import Option, Question, Quiz
from quizdesk.services.scoring import AnswerKey, QuestionKey


def get_quiz(db: Session, quiz_id: int) -> Quiz:
    """Fetch a quiz or raise NotFoundError."""
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found", details={"quiz_id": quiz_id})
    return quiz


def get_question(db: Session, question_id: int) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise NotFoundError("Question not found", details={"question_id": question_id})
    return question


def get_option(db: Session, option_id: int) -> Option:
    option = db.get(Option, option_id)
    if option is None:
        raise NotFoundError("Option not found", details={"option_id": option_id})
    return option


def list_questions(db: Session, quiz_id: int) -> list[Question]:
    """Questions of a quiz in quiz order, options eagerly loaded."""
    stmt = (
        select(Question)
        .where(Question.quiz_id == quiz_id)
        .options(selectinload(Question.options))
        .order_by(Question.position, Question.id)
    )
    return list(db.execute(stmt).scalars().all())


def load_answer_key(db: Session, quiz: Quiz) -> AnswerKey:
    """Build the scoring engine's answer key for a quiz."""
    questions = list_questions(db, quiz.id)
    return AnswerKey(
        quiz_id=quiz.id,
        passing_score=quiz.passing_score,
        questions=tuple(
            QuestionKey(
                question_id=q.id,
                points=q.points,
                option_ids=frozenset(o.id for o in q.options),
                correct_option_ids=frozenset(o.id for o in q.options if o.is_correct),
            )
            for q in questions
        ),
    )
