"""Question authoring endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from quizdesk.api.v1.endpoints.quizzes import get_owned_quiz
from quizdesk.core.app_exceptions import ConflictError
from quizdesk.core.dependencies import require_operation
from quizdesk.db.session import get_db
from quizdesk.models.quiz import Option, Question
from quizdesk.repositories.attempts import has_finished_attempts
from quizdesk.repositories.quizzes import get_question
from quizdesk.schemas.quiz import QuestionCreate, QuestionUpdate, QuestionWithKey
from quizdesk.services.access_policy import Identity, Operation

router = APIRouter(tags=["Questions"])


def get_owned_question(db: Session, identity: Identity, question_id: int) -> Question:
    question = get_question(db, question_id)
    get_owned_quiz(db, identity, question.quiz_id)
    return question


def ensure_answer_key_unlocked(db: Session, quiz_id: int) -> None:
    """Refuse scoring changes once the quiz has submitted attempts."""
    if has_finished_attempts(db, quiz_id):
        raise ConflictError(
            "Quiz already has submitted attempts; its answer key cannot change",
            code="ANSWER_KEY_LOCKED",
            details={"quiz_id": quiz_id},
        )


@router.post(
    "/questions",
    response_model=QuestionWithKey,
    status_code=status.HTTP_201_CREATED,
    summary="Create question",
    description="Create a question, optionally together with its options.",
)
def create_question(
    request_data: QuestionCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUESTION_WRITE)),
) -> QuestionWithKey:
    get_owned_quiz(db, identity, request_data.quiz_id)
    ensure_answer_key_unlocked(db, request_data.quiz_id)

    question = Question(
        quiz_id=request_data.quiz_id,
        text=request_data.text,
        points=request_data.points,
        position=request_data.position,
        options=[Option(text=o.text, is_correct=o.is_correct) for o in request_data.options],
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return QuestionWithKey.model_validate(question)


@router.put("/questions/{question_id}", response_model=QuestionWithKey, summary="Update question")
def update_question(
    question_id: int,
    request_data: QuestionUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUESTION_WRITE)),
) -> QuestionWithKey:
    question = get_owned_question(db, identity, question_id)
    changes = request_data.model_dump(exclude_unset=True)
    if changes.get("points") is not None:
        ensure_answer_key_unlocked(db, question.quiz_id)
    for field, value in changes.items():
        if value is not None:
            setattr(question, field, value)
    db.commit()
    db.refresh(question)
    return QuestionWithKey.model_validate(question)


@router.delete(
    "/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete question",
)
def delete_question(
    question_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.QUESTION_WRITE)),
) -> Response:
    question = get_owned_question(db, identity, question_id)
    ensure_answer_key_unlocked(db, question.quiz_id)
    db.delete(question)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
