"""Answer option authoring endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from quizdesk.api.v1.endpoints.questions import ensure_answer_key_unlocked, get_owned_question
from quizdesk.core.dependencies import require_operation
from quizdesk.db.session import get_db
from quizdesk.models.quiz import Option
from quizdesk.repositories.quizzes import get_option
from quizdesk.schemas.quiz import OptionCreate, OptionUpdate, OptionWithKey
from quizdesk.services.access_policy import Identity, Operation

router = APIRouter(tags=["Options"])


@router.post(
    "/options",
    response_model=OptionWithKey,
    status_code=status.HTTP_201_CREATED,
    summary="Create option",
)
def create_option(
    request_data: OptionCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.OPTION_WRITE)),
) -> OptionWithKey:
    question = get_owned_question(db, identity, request_data.question_id)
    ensure_answer_key_unlocked(db, question.quiz_id)
    option = Option(
        question_id=request_data.question_id,
        text=request_data.text,
        is_correct=request_data.is_correct,
    )
    db.add(option)
    db.commit()
    db.refresh(option)
    return OptionWithKey.model_validate(option)


@router.put("/options/{option_id}", response_model=OptionWithKey, summary="Update option")
def update_option(
    option_id: int,
    request_data: OptionUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.OPTION_WRITE)),
) -> OptionWithKey:
    option = get_option(db, option_id)
    question = get_owned_question(db, identity, option.question_id)
    changes = request_data.model_dump(exclude_unset=True)
    if changes.get("is_correct") is not None:
        ensure_answer_key_unlocked(db, question.quiz_id)
    for field, value in changes.items():
        if value is not None:
            setattr(option, field, value)
    db.commit()
    db.refresh(option)
    return OptionWithKey.model_validate(option)


@router.delete(
    "/options/{option_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete option",
)
def delete_option(
    option_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.OPTION_WRITE)),
) -> Response:
    option = get_option(db, option_id)
    question = get_owned_question(db, identity, option.question_id)
    ensure_answer_key_unlocked(db, question.quiz_id)
    db.delete(option)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
