"""Typed access to attempt sessions and answer records."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from quizdesk.models.attempt import AnswerRecord, AttemptSession, AttemptStatus


def find_attempt(db: Session, student_id: int, quiz_id: int) -> AttemptSession | None:
    """Fetch the (student, quiz) attempt row, bypassing the identity map."""
    stmt = (
        select(AttemptSession)
        .where(AttemptSession.student_id == student_id, AttemptSession.quiz_id == quiz_id)
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalar_one_or_none()


def find_by_token(db: Session, token: str, *, for_update: bool = False) -> AttemptSession | None:
    stmt = select(AttemptSession).where(AttemptSession.attempt_token == token)
    if for_update:
        stmt = stmt.with_for_update()
    stmt = stmt.execution_options(populate_existing=True)
    return db.execute(stmt).scalar_one_or_none()


def activate_attempt(
    db: Session,
    attempt: AttemptSession,
    *,
    expected_token: str | None,
    token: str,
    started_at: datetime,
    expires_at: datetime,
) -> bool:
    """Compare-and-set the attempt into ACTIVE with a fresh token.

    Only succeeds while the row is unfinished and still holds
    ``expected_token``. Returns False if another caller got there first.
    """
    if expected_token is None:
        token_matches = AttemptSession.attempt_token.is_(None)
    else:
        token_matches = AttemptSession.attempt_token == expected_token

    stmt = (
        update(AttemptSession)
        .where(
            AttemptSession.id == attempt.id,
            AttemptSession.status != AttemptStatus.FINISHED,
            token_matches,
        )
        .values(
            status=AttemptStatus.ACTIVE,
            attempt_token=token,
            attempt_token_expires_at=expires_at,
            started_at=started_at,
        )
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount == 1


def finish_attempt(db: Session, attempt: AttemptSession, **values) -> bool:
    """Compare-and-set the attempt from ACTIVE to FINISHED."""
    stmt = (
        update(AttemptSession)
        .where(
            AttemptSession.id == attempt.id,
            AttemptSession.status == AttemptStatus.ACTIVE,
        )
        .values(status=AttemptStatus.FINISHED, **values)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount == 1


def list_stale_attempt_ids(db: Session, now: datetime) -> list[int]:
    """ACTIVE attempts whose token already expired."""
    stmt = (
        select(AttemptSession.id)
        .where(
            AttemptSession.status == AttemptStatus.ACTIVE,
            AttemptSession.attempt_token_expires_at < now,
        )
        .order_by(AttemptSession.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_answer_records(db: Session, attempt_id: int) -> list[AnswerRecord]:
    stmt = (
        select(AnswerRecord)
        .where(AnswerRecord.attempt_id == attempt_id)
        .order_by(AnswerRecord.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_for_student(db: Session, student_id: int) -> list[AttemptSession]:
    stmt = (
        select(AttemptSession)
        .where(AttemptSession.student_id == student_id)
        .options(selectinload(AttemptSession.quiz))
        .order_by(AttemptSession.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def list_for_quiz(db: Session, quiz_id: int) -> list[AttemptSession]:
    stmt = (
        select(AttemptSession)
        .where(AttemptSession.quiz_id == quiz_id)
        .options(selectinload(AttemptSession.student))
        .order_by(AttemptSession.id)
    )
    return list(db.execute(stmt).scalars().all())


def has_finished_attempts(db: Session, quiz_id: int) -> bool:
    stmt = (
        select(AttemptSession.id)
        .where(
            AttemptSession.quiz_id == quiz_id,
            AttemptSession.status == AttemptStatus.FINISHED,
        )
        .limit(1)
    )
    return db.execute(stmt).first() is not None
