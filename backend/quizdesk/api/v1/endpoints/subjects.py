"""Subject management endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import ConflictError, NotFoundError
from quizdesk.core.dependencies import require_operation
from quizdesk.db.session import get_db
from quizdesk.models.academic import Subject
from quizdesk.models.quiz import Quiz
from quizdesk.schemas.academic import SubjectCreate, SubjectResponse, SubjectUpdate
from quizdesk.services.access_policy import Identity, Operation

router = APIRouter(prefix="/subjects", tags=["Subjects"])


def _get_subject(db: Session, subject_id: int) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise NotFoundError("Subject not found", details={"subject_id": subject_id})
    return subject


def _commit(db: Session, subject: Subject) -> None:
    code = subject.code
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"Subject with code '{code}' already exists", details={"code": code}) from e
    db.refresh(subject)


@router.get("", response_model=list[SubjectResponse], summary="List subjects")
def list_subjects(
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.SUBJECT_READ)),
) -> list[SubjectResponse]:
    return [SubjectResponse.model_validate(f) for f in db.query(Subject).order_by(Subject.code).all()]


@router.get("/{subject_id}", response_model=SubjectResponse, summary="Get subject")
def get_subject(
    subject_id: int,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.SUBJECT_READ)),
) -> SubjectResponse:
    return SubjectResponse.model_validate(_get_subject(db, subject_id))


@router.post(
    "",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
)
def create_subject(
    request_data: SubjectCreate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.SUBJECT_WRITE)),
) -> SubjectResponse:
    subject = Subject(code=request_data.code, name=request_data.name)
    db.add(subject)
    _commit(db, subject)
    return SubjectResponse.model_validate(subject)


@router.put("/{subject_id}", response_model=SubjectResponse, summary="Update subject")
def update_subject(
    subject_id: int,
    request_data: SubjectUpdate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.SUBJECT_WRITE)),
) -> SubjectResponse:
    subject = _get_subject(db, subject_id)
    for field, value in request_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(subject, field, value)
    _commit(db, subject)
    return SubjectResponse.model_validate(subject)


@router.delete(
    "/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete subject",
    description="Refused while quizzes are filed under the subject.",
)
def delete_subject(
    subject_id: int,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.SUBJECT_WRITE)),
) -> Response:
    subject = _get_subject(db, subject_id)
    if db.query(Quiz).filter(Quiz.subject_id == subject_id).first() is not None:
        raise ConflictError("Subject still has quizzes", details={"subject_id": subject_id})
    db.delete(subject)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
