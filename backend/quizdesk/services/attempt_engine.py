"""Attempt session manager: start, validate and finalize quiz attempts.

Lifecycle of an ``AttemptSession`` row:

    PENDING --start_attempt--> ACTIVE --submit_attempt / sweep--> FINISHED

There is exactly one row per (student, quiz); the unique constraint is the
source of truth and every state change is a compare-and-set UPDATE, so two
callers racing on the same row cannot both win. Expiry is never written by
a timer: it is observed when a token is validated, and finalized only by
``expire_stale_attempts``.
"""

from collections.abc import Mapping
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quizdesk.common.clock import utcnow
from quizdesk.core.app_exceptions import (
    AlreadyAttemptedError,
    AlreadySubmittedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InternalError,
    InvalidTokenError,
    OutOfWindowError,
    ValidationAppError,
)
from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger
from quizdesk.core.security import generate_attempt_token, verify_password
from quizdesk.models.attempt import AnswerRecord, AttemptSession, AttemptStatus, FinishReason
from quizdesk.models.quiz import Question, Quiz
from quizdesk.repositories import attempts as attempt_repo
from quizdesk.repositories.quizzes import get_quiz, list_questions, load_answer_key
from quizdesk.services.scoring import ScoreResult, empty_result, score_attempt

logger = get_logger(__name__)

MAX_ACTIVATION_ATTEMPTS = 3


def compute_expiry(quiz: Quiz, started_at: datetime) -> datetime:
    """Token expiry: time limit from start, never past the quiz window."""
    return min(started_at + timedelta(minutes=quiz.time_limit), quiz.end_time)


def _ensure_ready(db: Session, quiz: Quiz) -> None:
    if not load_answer_key(db, quiz).is_complete():
        raise ValidationAppError(
            "Quiz is not ready: every question needs a correct option",
            code="QUIZ_NOT_READY",
            details={"quiz_id": quiz.id},
        )


def _create_or_fetch(db: Session, student_id: int, quiz_id: int) -> AttemptSession:
    """Return the (student, quiz) row, inserting a PENDING one if missing.

    Concurrent inserts collide on the unique constraint; the loser rolls
    back and reads the winner's row.
    """
    attempt = attempt_repo.find_attempt(db, student_id, quiz_id)
    if attempt is not None:
        return attempt

    attempt = AttemptSession(student_id=student_id, quiz_id=quiz_id, status=AttemptStatus.PENDING)
    db.add(attempt)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        existing = attempt_repo.find_attempt(db, student_id, quiz_id)
        if existing is None:
            raise InternalError() from e
        logger.info(
            "attempt_create_race_lost",
            extra={"student_id": student_id, "quiz_id": quiz_id, "attempt_id": existing.id},
        )
        return existing
    return attempt


def start_attempt(
    db: Session,
    student_id: int,
    quiz_id: int,
    supplied_password: str | None = None,
    now: datetime | None = None,
) -> AttemptSession:
    """
    Start (or resume) a student's attempt at a quiz.

    Args:
        db: Database session
        student_id: Authenticated student
        quiz_id: Quiz to attempt
        supplied_password: Access code for password-protected quizzes
        now: Current time (naive UTC); defaults to the clock

    Returns:
        The ACTIVE attempt session carrying the attempt token

    Raises:
        NotFoundError: Unknown quiz
        OutOfWindowError: Quiz not open at ``now``
        ForbiddenError: Wrong access code
        ValidationAppError: Quiz has no questions or lacks correct options
        AlreadyAttemptedError: Attempt already finished
        ExpiredError: Token expired and re-issue is disabled
    """
    now = now or utcnow()
    quiz = get_quiz(db, quiz_id)

    if not quiz.is_open(now):
        raise OutOfWindowError(
            "Quiz has not started yet" if now < quiz.start_time else "Quiz has ended",
            details={
                "start_time": quiz.start_time.isoformat(),
                "end_time": quiz.end_time.isoformat(),
            },
        )

    if quiz.password_hash is not None:
        if not supplied_password or not verify_password(supplied_password, quiz.password_hash):
            raise ForbiddenError("Invalid access code", code="INVALID_ACCESS_CODE")

    # Readiness only gates activation
    attempt = attempt_repo.find_attempt(db, student_id, quiz_id)
    ready_checked = attempt is None
    if ready_checked:
        _ensure_ready(db, quiz)
        attempt = _create_or_fetch(db, student_id, quiz_id)

    for _ in range(MAX_ACTIVATION_ATTEMPTS):
        if attempt.finished:
            raise AlreadyAttemptedError(details={"attempt_id": attempt.id})

        if attempt.status == AttemptStatus.ACTIVE and attempt.attempt_token:
            if not attempt.token_expired(now):
                # Resume: same token, original expiry
                return attempt
            if not settings.ATTEMPT_REISSUE_ON_EXPIRY:
                raise ExpiredError(details={"attempt_id": attempt.id})

        if not ready_checked:
            _ensure_ready(db, quiz)
            ready_checked = True
        token = generate_attempt_token()
        expires_at = compute_expiry(quiz, now)
        try:
            won = attempt_repo.activate_attempt(
                db,
                attempt,
                expected_token=attempt.attempt_token,
                token=token,
                started_at=now,
                expires_at=expires_at,
            )
            if won:
                db.commit()
                db.refresh(attempt)
                logger.info(
                    "attempt_started",
                    extra={
                        "attempt_id": attempt.id,
                        "student_id": student_id,
                        "quiz_id": quiz_id,
                        "expires_at": expires_at.isoformat(),
                    },
                )
                return attempt
            db.rollback()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("attempt_start_failed", extra={"quiz_id": quiz_id}, exc_info=True)
            raise InternalError() from e

        # Someone else activated or finished the row meanwhile; re-read
        attempt = attempt_repo.find_attempt(db, student_id, quiz_id)
        if attempt is None:
            raise InternalError()

    raise ConflictError("Attempt is being started concurrently, retry")


def _check_scope(
    attempt: AttemptSession, quiz_id: int | None, student_id: int | None
) -> None:
    if quiz_id is not None and attempt.quiz_id != quiz_id:
        raise ForbiddenError("Token does not match quiz", code="ATTEMPT_MISMATCH")
    if student_id is not None and attempt.student_id != student_id:
        raise ForbiddenError("Token does not belong to you", code="ATTEMPT_MISMATCH")


def validate_token(
    db: Session,
    token: str | None,
    now: datetime | None = None,
    *,
    quiz_id: int | None = None,
    student_id: int | None = None,
) -> AttemptSession:
    """
    Resolve an attempt token to its usable session.

    Raises:
        InvalidTokenError: Token unknown, or attempt already finished
        ExpiredError: Token past its expiry (checked before finished state)
        ForbiddenError: Token belongs to another quiz or student
    """
    now = now or utcnow()
    attempt = attempt_repo.find_by_token(db, token) if token else None
    if attempt is None:
        raise InvalidTokenError()
    _check_scope(attempt, quiz_id, student_id)
    if attempt.token_expired(now):
        raise ExpiredError(details={"expired_at": attempt.attempt_token_expires_at.isoformat()})
    if attempt.finished:
        raise InvalidTokenError("Attempt already finished")
    return attempt


def _finalize(
    db: Session,
    attempt: AttemptSession,
    result: ScoreResult,
    now: datetime,
    reason: FinishReason,
) -> bool:
    """Write FINISHED state and answer records in the caller's transaction."""
    won = attempt_repo.finish_attempt(
        db,
        attempt,
        finished_at=now,
        finish_reason=reason,
        score=result.total_points,
        max_score=result.max_points,
        passed=result.passed,
    )
    if not won:
        return False

    db.add_all(
        [
            AnswerRecord(
                attempt_id=attempt.id,
                question_id=question_id,
                option_id=result.selections[question_id],
                is_correct=is_correct,
            )
            for question_id, is_correct in result.per_question.items()
        ]
    )
    db.flush()
    return True


def submit_attempt(
    db: Session,
    token: str | None,
    answers: Mapping[int, int | None],
    now: datetime | None = None,
    *,
    quiz_id: int | None = None,
    student_id: int | None = None,
) -> ScoreResult:
    """
    Score and finalize an attempt in a single transaction.

    Args:
        db: Database session
        token: Attempt token from start_attempt
        answers: Question id -> selected option id (None = unanswered)
        now: Current time (naive UTC); defaults to the clock
        quiz_id: Optional guard; token must belong to this quiz
        student_id: Optional guard; token must belong to this student

    Returns:
        ScoreResult that was persisted

    Raises:
        InvalidTokenError: Unknown token
        AlreadySubmittedError: Attempt already finished (no writes)
        ExpiredError: Token expired (no writes)
        InternalError: Storage failure; nothing was persisted
    """
    now = now or utcnow()
    attempt = attempt_repo.find_by_token(db, token, for_update=True) if token else None
    if attempt is None:
        db.rollback()
        raise InvalidTokenError()

    try:
        _check_scope(attempt, quiz_id, student_id)
        if attempt.finished:
            raise AlreadySubmittedError(details={"attempt_id": attempt.id})
        if attempt.token_expired(now):
            raise ExpiredError(
                details={"expired_at": attempt.attempt_token_expires_at.isoformat()}
            )
    except (AlreadySubmittedError, ExpiredError, ForbiddenError):
        db.rollback()
        raise

    answer_key = load_answer_key(db, get_quiz(db, attempt.quiz_id))
    result = score_attempt(answer_key, answers)

    try:
        if not _finalize(db, attempt, result, now, FinishReason.SUBMITTED):
            db.rollback()
            raise AlreadySubmittedError(details={"attempt_id": attempt.id})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "attempt_submit_failed",
            extra={"attempt_id": attempt.id},
            exc_info=True,
        )
        raise InternalError() from e

    db.refresh(attempt)
    logger.info(
        "attempt_submitted",
        extra={
            "attempt_id": attempt.id,
            "student_id": attempt.student_id,
            "quiz_id": attempt.quiz_id,
            "score": result.total_points,
            "max_score": result.max_points,
            "passed": result.passed,
        },
    )
    return result


def expire_stale_attempts(db: Session, now: datetime | None = None) -> int:
    """
    Finalize ACTIVE attempts whose token expired without submission.

    Each attempt gets unanswered answer records and score 0. Returns the
    number of attempts finalized by this call.
    """
    now = now or utcnow()
    stale_ids = attempt_repo.list_stale_attempt_ids(db, now)
    db.rollback()

    expired = 0
    for attempt_id in stale_ids:
        attempt = db.get(AttemptSession, attempt_id, with_for_update=True, populate_existing=True)
        if attempt is None or attempt.status != AttemptStatus.ACTIVE or not attempt.token_expired(now):
            db.rollback()
            continue

        result = empty_result(load_answer_key(db, get_quiz(db, attempt.quiz_id)))
        try:
            if _finalize(db, attempt, result, now, FinishReason.EXPIRED):
                db.commit()
                expired += 1
            else:
                db.rollback()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("attempt_expire_failed", extra={"attempt_id": attempt_id}, exc_info=True)
            raise InternalError() from e

    logger.info("attempt_expiry_sweep", extra={"expired": expired, "candidates": len(stale_ids)})
    return expired


def get_attempt_questions(
    db: Session,
    token: str | None,
    *,
    quiz_id: int,
    student_id: int,
    now: datetime | None = None,
) -> tuple[AttemptSession, list[Question]]:
    """Questions for an in-progress attempt (token must be valid)."""
    attempt = validate_token(db, token, now, quiz_id=quiz_id, student_id=student_id)
    return attempt, list_questions(db, quiz_id)


def get_solutions(
    db: Session, student_id: int, quiz_id: int
) -> tuple[AttemptSession, list[Question], dict[int, AnswerRecord]]:
    """Correct options plus the student's recorded answers, after submission only."""
    get_quiz(db, quiz_id)
    attempt = attempt_repo.find_attempt(db, student_id, quiz_id)
    if attempt is None or not attempt.finished:
        raise ForbiddenError(
            "Solutions are available after the attempt is finished",
            code="SOLUTIONS_LOCKED",
        )
    records = {r.question_id: r for r in attempt_repo.list_answer_records(db, attempt.id)}
    return attempt, list_questions(db, quiz_id), records


def list_student_attempts(db: Session, student_id: int) -> list[AttemptSession]:
    return attempt_repo.list_for_student(db, student_id)


def list_quiz_attempts(db: Session, quiz_id: int) -> list[AttemptSession]:
    get_quiz(db, quiz_id)
    return attempt_repo.list_for_quiz(db, quiz_id)


def list_available_quizzes(
    db: Session, student_id: int, now: datetime | None = None
) -> list[Quiz]:
    """Quizzes open right now that the student has not finished."""
    now = now or utcnow()
    finished_quiz_ids = (
        select(AttemptSession.quiz_id)
        .where(
            AttemptSession.student_id == student_id,
            AttemptSession.status == AttemptStatus.FINISHED,
        )
    )
    stmt = (
        select(Quiz)
        .where(
            Quiz.start_time <= now,
            Quiz.end_time >= now,
            Quiz.id.not_in(finished_quiz_ids),
        )
        .order_by(Quiz.end_time, Quiz.id)
    )
    return list(db.execute(stmt).scalars().all())
