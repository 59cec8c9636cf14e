"""Page-based pagination for account listings."""

from typing import Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy.orm import Query as OrmQuery

from quizdesk.core.app_exceptions import ValidationAppError

T = TypeVar("T", bound=BaseModel)

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100


class PaginationParams(BaseModel):
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int


def pagination_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, description=f"At most {MAX_PAGE_SIZE}"),
) -> PaginationParams:
    if page_size > MAX_PAGE_SIZE:
        raise ValidationAppError(
            f"page_size must be <= {MAX_PAGE_SIZE}", details={"page_size": page_size}
        )
    return PaginationParams(page=page, page_size=page_size)


def paginate(query: OrmQuery, params: PaginationParams, schema: type[T]) -> PaginatedResponse[T]:
    """Count ``query``, fetch one page and convert rows with ``schema``."""
    total = query.order_by(None).count()
    rows = query.offset(params.offset).limit(params.page_size).all()
    return PaginatedResponse[schema](
        items=[schema.model_validate(row) for row in rows],
        page=params.page,
        page_size=params.page_size,
        total=total,
    )
