"""Student account management endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from quizdesk.common.pagination import (
    PaginatedResponse,
    PaginationParams,
    paginate,
    pagination_params,
)
from quizdesk.core.app_exceptions import NotFoundError
from quizdesk.core.dependencies import require_operation
from quizdesk.db.session import get_db
from quizdesk.models.academic import Faculty
from quizdesk.models.accounts import Student
from quizdesk.schemas.accounts import StudentCreate, StudentResponse, StudentUpdate
from quizdesk.services.access_policy import Identity, Operation, Role, ensure_self_or_admin
from quizdesk.services.accounts import create_account, update_account

router = APIRouter(prefix="/students", tags=["Students"])


def _get_student(db: Session, student_id: int) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student not found", details={"student_id": student_id})
    return student


def _ensure_faculty(db: Session, faculty_id: int | None) -> None:
    if faculty_id is not None and db.get(Faculty, faculty_id) is None:
        raise NotFoundError("Faculty not found", details={"faculty_id": faculty_id})


@router.get(
    "",
    response_model=PaginatedResponse[StudentResponse],
    summary="List students",
)
def list_students(
    q: str | None = Query(None, description="Search by name or email"),
    faculty_id: int | None = Query(None),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.STUDENT_LIST)),
) -> PaginatedResponse[StudentResponse]:
    query = db.query(Student)
    if q:
        search_term = f"%{q.lower()}%"
        query = query.filter(or_(Student.name.ilike(search_term), Student.email.ilike(search_term)))
    if faculty_id is not None:
        query = query.filter(Student.faculty_id == faculty_id)

    return paginate(query.order_by(Student.id), pagination, StudentResponse)


@router.get("/{student_id}", response_model=StudentResponse, summary="Get student")
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.STUDENT_READ)),
) -> StudentResponse:
    ensure_self_or_admin(identity, Role.STUDENT, student_id)
    return StudentResponse.model_validate(_get_student(db, student_id))


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create student",
)
def create_student(
    request_data: StudentCreate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.STUDENT_WRITE)),
) -> StudentResponse:
    _ensure_faculty(db, request_data.faculty_id)
    student = create_account(db, Role.STUDENT, request_data.model_dump())
    return StudentResponse.model_validate(student)


@router.put("/{student_id}", response_model=StudentResponse, summary="Update student")
def update_student(
    student_id: int,
    request_data: StudentUpdate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.STUDENT_WRITE)),
) -> StudentResponse:
    student = _get_student(db, student_id)
    update_data = request_data.model_dump(exclude_unset=True)
    _ensure_faculty(db, update_data.get("faculty_id"))
    return StudentResponse.model_validate(update_account(db, student, update_data))


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete student",
    description="Also deletes the student's attempts.",
)
def delete_student(
    student_id: int,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.STUDENT_WRITE)),
) -> Response:
    db.delete(_get_student(db, student_id))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
