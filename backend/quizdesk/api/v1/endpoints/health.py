"""Liveness and readiness probes."""

from typing import Literal

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizdesk.common.request_id import get_request_id
from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger
from quizdesk.core.redis_client import is_redis_available
from quizdesk.db.session import get_db

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)

CheckStatus = Literal["ok", "degraded", "down"]

_SEVERITY = {"ok": 0, "degraded": 1, "down": 2}


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ReadinessCheck(BaseModel):
    status: CheckStatus
    message: str | None = None


class ReadinessResponse(BaseModel):
    status: CheckStatus
    checks: dict[str, ReadinessCheck]
    request_id: str


def _check_database(db: Session) -> ReadinessCheck:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("readiness_db_failed", extra={"error": str(e)})
        return ReadinessCheck(status="down", message=None if settings.ENV == "prod" else str(e))
    return ReadinessCheck(status="ok")


def _check_redis() -> ReadinessCheck:
    if not settings.REDIS_ENABLED:
        return ReadinessCheck(status="ok", message="Not enabled")
    if is_redis_available():
        return ReadinessCheck(status="ok")
    # Rate limiting fails open unless Redis is required
    return ReadinessCheck(
        status="down" if settings.REDIS_REQUIRED else "degraded",
        message="Redis unavailable",
    )


@router.get("/health", response_model=HealthResponse, summary="Liveness")
def health_check() -> HealthResponse:
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness",
    description="Database connectivity and, when enabled, Redis. 503 when any check is down.",
)
def readiness_check(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> ReadinessResponse:
    checks = {"db": _check_database(db), "redis": _check_redis()}
    overall = max((c.status for c in checks.values()), key=_SEVERITY.__getitem__)
    if overall == "down":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status=overall, checks=checks, request_id=get_request_id(request))
