"""Faculty management endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import ConflictError, NotFoundError
from quizdesk.core.dependencies import require_operation
from quizdesk.db.session import get_db
from quizdesk.models.academic import Faculty
from quizdesk.schemas.academic import FacultyCreate, FacultyResponse, FacultyUpdate
from quizdesk.services.access_policy import Identity, Operation

router = APIRouter(prefix="/faculties", tags=["Faculties"])


def _get_faculty(db: Session, faculty_id: int) -> Faculty:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise NotFoundError("Faculty not found", details={"faculty_id": faculty_id})
    return faculty


def _commit(db: Session, faculty: Faculty) -> None:
    code = faculty.code
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"Faculty with code '{code}' already exists", details={"code": code}) from e
    db.refresh(faculty)


@router.get("", response_model=list[FacultyResponse], summary="List faculties")
def list_faculties(
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.FACULTY_READ)),
) -> list[FacultyResponse]:
    return [FacultyResponse.model_validate(f) for f in db.query(Faculty).order_by(Faculty.code).all()]


@router.get("/{faculty_id}", response_model=FacultyResponse, summary="Get faculty")
def get_faculty(
    faculty_id: int,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.FACULTY_READ)),
) -> FacultyResponse:
    return FacultyResponse.model_validate(_get_faculty(db, faculty_id))


@router.post(
    "",
    response_model=FacultyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create faculty",
)
def create_faculty(
    request_data: FacultyCreate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.FACULTY_WRITE)),
) -> FacultyResponse:
    faculty = Faculty(code=request_data.code, name=request_data.name)
    db.add(faculty)
    _commit(db, faculty)
    return FacultyResponse.model_validate(faculty)


@router.put("/{faculty_id}", response_model=FacultyResponse, summary="Update faculty")
def update_faculty(
    faculty_id: int,
    request_data: FacultyUpdate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.FACULTY_WRITE)),
) -> FacultyResponse:
    faculty = _get_faculty(db, faculty_id)
    for field, value in request_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(faculty, field, value)
    _commit(db, faculty)
    return FacultyResponse.model_validate(faculty)


@router.delete(
    "/{faculty_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete faculty",
    description="Students of the faculty are kept and lose their faculty link.",
)
def delete_faculty(
    faculty_id: int,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.FACULTY_WRITE)),
) -> Response:
    db.delete(_get_faculty(db, faculty_id))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
