"""Quiz metadata and authoring endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import ForbiddenError, NotFoundError, ValidationAppError
from quizdesk.core.dependencies import require_operation
from quizdesk.core.logging import get_logger
from quizdesk.core.security import hash_password
from quizdesk.db.session import get_db
from quizdesk.models.academic import Subject
from quizdesk.models.accounts import Teacher
from quizdesk.models.quiz import Quiz
from quizdesk.repositories.quizzes import get_quiz, list_questions
from quizdesk.schemas.attempt import AttemptOut
from quizdesk.schemas.quiz import QuestionWithKey, QuizCreate, QuizPublic, QuizUpdate
from quizdesk.services.access_policy import (
    AdminIdentity,
    Identity,
    Operation,
    ensure_quiz_owner,
)
from quizdesk.services.attempt_engine import list_quiz_attempts

router = APIRouter(tags=["Quizzes"])
logger = get_logger(__name__)


def _ensure_subject(db: Session, subject_id: int) -> None:
    if db.get(Subject, subject_id) is None:
        raise NotFoundError("Subject not found", details={"subject_id": subject_id})


def get_owned_quiz(db: Session, identity: Identity, quiz_id: int) -> Quiz:
    """Quiz the caller may author (owning teacher or admin)."""
    quiz = get_quiz(db, quiz_id)
    ensure_quiz_owner(identity, quiz)
    return quiz


# ============================================================================
# Public
# ============================================================================


@router.get(
    "/quizzes",
    response_model=list[QuizPublic],
    summary="List quizzes",
    description="Quiz metadata only; answer keys are never included.",
)
def list_quizzes(
    subject_id: int | None = Query(None),
    teacher_id: int | None = Query(None),
    db: Session = Depends(get_db),
) -> list[QuizPublic]:
    query = db.query(Quiz)
    if subject_id is not None:
        query = query.filter(Quiz.subject_id == subject_id)
    if teacher_id is not None:
        query = query.filter(Quiz.teacher_id == teacher_id)
    quizzes = query.order_by(Quiz.start_time.desc(), Quiz.id.desc()).all()
    return [QuizPublic.model_validate(q) for q in quizzes]


@router.get("/quizzes1/{quiz_id}", response_model=QuizPublic, summary="View quiz")
def view_quiz(quiz_id: int, db: Session = Depends(get_db)) -> QuizPublic:
    return QuizPublic.model_validate(get_quiz(db, quiz_id))


# ============================================================================
# Authoring
# ============================================================================


@router.post(
    "/quizzes",
    response_model=QuizPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Create quiz",
)
def create_quiz(
    request_data: QuizCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUIZ_CREATE)),
) -> QuizPublic:
    if isinstance(identity, AdminIdentity):
        if request_data.teacher_id is None:
            raise ValidationAppError("teacher_id is required when an admin creates a quiz")
        teacher_id = request_data.teacher_id
        if db.get(Teacher, teacher_id) is None:
            raise NotFoundError("Teacher not found", details={"teacher_id": teacher_id})
    else:
        if request_data.teacher_id not in (None, identity.id):
            raise ForbiddenError("Teachers can only create their own quizzes")
        teacher_id = identity.id

    _ensure_subject(db, request_data.subject_id)

    quiz = Quiz(
        title=request_data.title,
        subject_id=request_data.subject_id,
        teacher_id=teacher_id,
        password_hash=hash_password(request_data.password) if request_data.password else None,
        time_limit=request_data.time_limit,
        passing_score=request_data.passing_score,
        start_time=request_data.start_time,
        end_time=request_data.end_time,
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)

    logger.info("quiz_created", extra={"quiz_id": quiz.id, "teacher_id": teacher_id})
    return QuizPublic.model_validate(quiz)


@router.put("/quizzes/{quiz_id}", response_model=QuizPublic, summary="Update quiz")
def update_quiz(
    quiz_id: int,
    request_data: QuizUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUIZ_UPDATE)),
) -> QuizPublic:
    quiz = get_owned_quiz(db, identity, quiz_id)

    update_data = request_data.model_dump(exclude_unset=True)
    password = update_data.pop("password", None)
    clear_password = update_data.pop("clear_password", False)

    start_time = update_data.get("start_time") or quiz.start_time
    end_time = update_data.get("end_time") or quiz.end_time
    if end_time <= start_time:
        raise ValidationAppError("end_time must be after start_time")
    if update_data.get("subject_id") is not None:
        _ensure_subject(db, update_data["subject_id"])

    for field, value in update_data.items():
        if value is not None:
            setattr(quiz, field, value)
    if password:
        quiz.password_hash = hash_password(password)
    elif clear_password:
        quiz.password_hash = None

    db.commit()
    db.refresh(quiz)
    return QuizPublic.model_validate(quiz)


@router.delete(
    "/quizzes/{quiz_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete quiz",
)
def delete_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUIZ_DELETE)),
) -> Response:
    quiz = get_owned_quiz(db, identity, quiz_id)
    db.delete(quiz)
    db.commit()
    logger.info("quiz_deleted", extra={"quiz_id": quiz_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/quizzes/{quiz_id}/questions",
    response_model=list[QuestionWithKey],
    summary="Questions with answer keys",
)
def list_quiz_questions(
    quiz_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUIZ_READ_KEY)),
) -> list[QuestionWithKey]:
    get_owned_quiz(db, identity, quiz_id)
    return [QuestionWithKey.model_validate(q) for q in list_questions(db, quiz_id)]


@router.get(
    "/quizzes/{quiz_id}/attempts",
    response_model=list[AttemptOut],
    summary="Attempts at a quiz",
)
def list_attempts_for_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUIZ_READ_RESULTS)),
) -> list[AttemptOut]:
    get_owned_quiz(db, identity, quiz_id)
    return [AttemptOut.model_validate(a) for a in list_quiz_attempts(db, quiz_id)]
