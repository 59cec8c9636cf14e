"""Teacher account management endpoints."""

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
from quizdesk.models.accounts import Teacher
from quizdesk.schemas.accounts import TeacherCreate, TeacherResponse, TeacherUpdate
from quizdesk.services.access_policy import Identity, Operation, Role, ensure_self_or_admin
from quizdesk.services.accounts import create_account, update_account

router = APIRouter(prefix="/teachers", tags=["Teachers"])


def _get_teacher(db: Session, teacher_id: int) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher not found", details={"teacher_id": teacher_id})
    return teacher


@router.get(
    "",
    response_model=PaginatedResponse[TeacherResponse],
    summary="List teachers",
)
def list_teachers(
    q: str | None = Query(None, description="Search by name or email"),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.TEACHER_LIST)),
) -> PaginatedResponse[TeacherResponse]:
    query = db.query(Teacher)
    if q:
        search_term = f"%{q.lower()}%"
        query = query.filter(or_(Teacher.name.ilike(search_term), Teacher.email.ilike(search_term)))

    return paginate(query.order_by(Teacher.id), pagination, TeacherResponse)


@router.get("/{teacher_id}", response_model=TeacherResponse, summary="Get teacher")
def get_teacher(
    teacher_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.TEACHER_READ)),
) -> TeacherResponse:
    ensure_self_or_admin(identity, Role.TEACHER, teacher_id)
    return TeacherResponse.model_validate(_get_teacher(db, teacher_id))


@router.post(
    "",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create teacher",
)
def create_teacher(
    request_data: TeacherCreate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.TEACHER_WRITE)),
) -> TeacherResponse:
    teacher = create_account(db, Role.TEACHER, request_data.model_dump())
    return TeacherResponse.model_validate(teacher)


@router.put("/{teacher_id}", response_model=TeacherResponse, summary="Update teacher")
def update_teacher(
    teacher_id: int,
    request_data: TeacherUpdate,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.TEACHER_WRITE)),
) -> TeacherResponse:
    teacher = _get_teacher(db, teacher_id)
    update_data = request_data.model_dump(exclude_unset=True)
    return TeacherResponse.model_validate(update_account(db, teacher, update_data))


@router.delete(
    "/{teacher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete teacher",
    description="Also deletes the teacher's quizzes and their attempts.",
)
def delete_teacher(
    teacher_id: int,
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.TEACHER_WRITE)),
) -> Response:
    db.delete(_get_teacher(db, teacher_id))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
