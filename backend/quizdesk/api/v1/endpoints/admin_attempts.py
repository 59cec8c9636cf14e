"""Administrative attempt maintenance."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizdesk.core.dependencies import require_operation
from quizdesk.db.session import get_db
from quizdesk.schemas.attempt import ExpireSweepResponse
from quizdesk.services.access_policy import Identity, Operation
from quizdesk.services.attempt_engine import expire_stale_attempts

router = APIRouter(prefix="/admin/attempts", tags=["Admin - Attempts"])


@router.post(
    "/expire",
    response_model=ExpireSweepResponse,
    summary="Finalize expired attempts",
    description=(
        "Finish every active attempt whose token expired without submission, "
        "recording all questions as unanswered."
    ),
)
def expire_attempts(
    db: Session = Depends(get_db),
    _identity: Identity = Depends(require_operation(Operation.ATTEMPT_EXPIRE_SWEEP)),
) -> ExpireSweepResponse:
    return ExpireSweepResponse(expired=expire_stale_attempts(db))
