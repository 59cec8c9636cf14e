"""Tests for starting and resuming quiz attempts."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import (
    AlreadyAttemptedError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    OutOfWindowError,
    ValidationAppError,
)
from quizdesk.core.config import settings
from quizdesk.models.attempt import AttemptSession, AttemptStatus
from quizdesk.models.quiz import Question
from quizdesk.services.attempt_engine import start_attempt, submit_attempt, validate_token
from tests.helpers.seed import FIXED_NOW, create_test_quiz

WINDOW = {
    "start_time": FIXED_NOW - timedelta(hours=1),
    "end_time": FIXED_NOW + timedelta(hours=2),
}


def _attempt_count(db: Session, student_id: int, quiz_id: int) -> int:
    return db.execute(
        select(func.count())
        .select_from(AttemptSession)
        .where(AttemptSession.student_id == student_id, AttemptSession.quiz_id == quiz_id)
    ).scalar_one()


def test_start_issues_token_and_expiry(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, time_limit=10, **WINDOW)

    attempt = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)

    assert attempt.status == AttemptStatus.ACTIVE
    assert attempt.attempt_token
    assert len(attempt.attempt_token) >= 64
    assert attempt.started_at == FIXED_NOW
    assert attempt.attempt_token_expires_at == FIXED_NOW + timedelta(minutes=10)
    assert attempt.finished is False


def test_expiry_capped_at_quiz_end(db: Session, teacher, student) -> None:
    end_time = FIXED_NOW + timedelta(minutes=5)
    quiz = create_test_quiz(
        db,
        teacher,
        time_limit=30,
        start_time=FIXED_NOW - timedelta(hours=1),
        end_time=end_time,
    )

    attempt = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)

    assert attempt.attempt_token_expires_at == end_time


def test_second_start_returns_same_token(db: Session, teacher, student) -> None:
    """Resuming before expiry keeps the token and the original expiry."""
    quiz = create_test_quiz(db, teacher, time_limit=10, **WINDOW)

    first = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)
    token, expires_at = first.attempt_token, first.attempt_token_expires_at
    second = start_attempt(db, student.id, quiz.id, now=FIXED_NOW + timedelta(minutes=3))

    assert second.attempt_token == token
    assert second.attempt_token_expires_at == expires_at
    assert second.started_at == FIXED_NOW
    assert _attempt_count(db, student.id, quiz.id) == 1


def test_unknown_quiz(db: Session, student) -> None:
    with pytest.raises(NotFoundError):
        start_attempt(db, student.id, 9999, now=FIXED_NOW)


@pytest.mark.parametrize(
    "now",
    [FIXED_NOW - timedelta(hours=2), FIXED_NOW + timedelta(hours=3)],
    ids=["before_start", "after_end"],
)
def test_out_of_window(db: Session, teacher, student, now) -> None:
    quiz = create_test_quiz(db, teacher, **WINDOW)

    with pytest.raises(OutOfWindowError) as exc_info:
        start_attempt(db, student.id, quiz.id, now=now)

    assert exc_info.value.code == "QUIZ_NOT_OPEN"
    assert _attempt_count(db, student.id, quiz.id) == 0


def test_window_bounds_are_inclusive(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, **WINDOW)

    attempt = start_attempt(db, student.id, quiz.id, now=WINDOW["start_time"])

    assert attempt.status == AttemptStatus.ACTIVE


@pytest.mark.parametrize("supplied", [None, "", "wrong-code"])
def test_password_protected_rejects_bad_code(db: Session, teacher, student, supplied) -> None:
    quiz = create_test_quiz(db, teacher, password="s3cret", **WINDOW)

    with pytest.raises(ForbiddenError) as exc_info:
        start_attempt(db, student.id, quiz.id, supplied, now=FIXED_NOW)

    assert exc_info.value.code == "INVALID_ACCESS_CODE"
    assert _attempt_count(db, student.id, quiz.id) == 0


def test_password_protected_accepts_code(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, password="s3cret", **WINDOW)

    attempt = start_attempt(db, student.id, quiz.id, "s3cret", now=FIXED_NOW)

    assert attempt.status == AttemptStatus.ACTIVE


def test_quiz_without_questions_is_not_ready(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, question_points=(), **WINDOW)

    with pytest.raises(ValidationAppError) as exc_info:
        start_attempt(db, student.id, quiz.id, now=FIXED_NOW)

    assert exc_info.value.code == "QUIZ_NOT_READY"


def test_question_without_correct_option_is_not_ready(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, **WINDOW)
    db.add(Question(quiz_id=quiz.id, text="No key", points=1, position=9))
    db.commit()

    with pytest.raises(ValidationAppError) as exc_info:
        start_attempt(db, student.id, quiz.id, now=FIXED_NOW)

    assert exc_info.value.code == "QUIZ_NOT_READY"


def test_not_ready_quiz_leaves_no_attempt(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, question_points=(), **WINDOW)

    with pytest.raises(ValidationAppError):
        start_attempt(db, student.id, quiz.id, now=FIXED_NOW)

    assert _attempt_count(db, student.id, quiz.id) == 0


def test_active_attempt_resumes_after_key_becomes_incomplete(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, **WINDOW)
    first = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)
    db.add(Question(quiz_id=quiz.id, text="No key", points=1, position=9))
    db.commit()

    resumed = start_attempt(db, student.id, quiz.id, now=FIXED_NOW + timedelta(minutes=2))

    assert resumed.attempt_token == first.attempt_token


def test_finished_attempt_reported_before_readiness(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, **WINDOW)
    attempt = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)
    submit_attempt(db, attempt.attempt_token, {}, now=FIXED_NOW + timedelta(minutes=1))
    db.add(Question(quiz_id=quiz.id, text="No key", points=1, position=9))
    db.commit()

    with pytest.raises(AlreadyAttemptedError):
        start_attempt(db, student.id, quiz.id, now=FIXED_NOW + timedelta(minutes=2))


def test_finished_attempt_cannot_restart(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, **WINDOW)
    attempt = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)
    submit_attempt(db, attempt.attempt_token, {}, now=FIXED_NOW + timedelta(minutes=1))

    with pytest.raises(AlreadyAttemptedError) as exc_info:
        start_attempt(db, student.id, quiz.id, now=FIXED_NOW + timedelta(minutes=2))

    assert exc_info.value.code == "ALREADY_ATTEMPTED"
    assert exc_info.value.status_code == 409


def test_expired_attempt_is_reissued(db: Session, teacher, student) -> None:
    quiz = create_test_quiz(db, teacher, time_limit=10, **WINDOW)
    first = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)
    old_token = first.attempt_token

    later = FIXED_NOW + timedelta(minutes=20)
    second = start_attempt(db, student.id, quiz.id, now=later)

    assert second.id == first.id
    assert second.attempt_token != old_token
    assert second.started_at == later
    assert second.attempt_token_expires_at == later + timedelta(minutes=10)
    assert validate_token(db, second.attempt_token, now=later).id == first.id
    assert _attempt_count(db, student.id, quiz.id) == 1


def test_expired_attempt_without_reissue(
    db: Session, teacher, student, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "ATTEMPT_REISSUE_ON_EXPIRY", False)
    quiz = create_test_quiz(db, teacher, time_limit=10, **WINDOW)
    first = start_attempt(db, student.id, quiz.id, now=FIXED_NOW)

    with pytest.raises(ExpiredError):
        start_attempt(db, student.id, quiz.id, now=FIXED_NOW + timedelta(minutes=20))

    db.refresh(first)
    assert first.status == AttemptStatus.ACTIVE
