"""Student attempt endpoints: start, questions, submit, solutions."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import AppError
from quizdesk.core.dependencies import AttemptToken, require_operation
from quizdesk.core.security_logging import SecurityOutcome, log_security_event
from quizdesk.db.session import get_db
from quizdesk.repositories.attempts import find_attempt
from quizdesk.schemas.attempt import (
    AttemptOut,
    AttemptQuestionsResponse,
    QuestionResultOut,
    SolutionQuestionOut,
    SolutionsResponse,
    StartAttemptRequest,
    StartAttemptResponse,
    SubmitAttemptRequest,
    SubmitAttemptResponse,
)
from quizdesk.schemas.quiz import OptionWithKey, QuestionPublic, QuizPublic
from quizdesk.services import attempt_engine
from quizdesk.services.access_policy import Identity, Operation

router = APIRouter(prefix="/student", tags=["Student Attempts"])

# Codes worth a security log line when a student is turned away
_LOGGED_DENIALS = {"INVALID_ACCESS_CODE", "ATTEMPT_MISMATCH", "INVALID_ATTEMPT_TOKEN"}


def _log_denial(request: Request, identity: Identity, e: AppError, quiz_id: int) -> None:
    if e.code in _LOGGED_DENIALS:
        log_security_event(
            request,
            event_type="attempt_denied",
            outcome=SecurityOutcome.DENY,
            reason_code=e.code,
            account_id=identity.id,
            role=identity.role.value,
            quiz_id=quiz_id,
        )


@router.post(
    "/quizzes/{quiz_id}/start",
    response_model=StartAttemptResponse,
    status_code=status.HTTP_200_OK,
    summary="Start attempt",
    description=(
        "Start or resume the caller's single attempt at a quiz. Returns the attempt "
        "token to send as X-Quiz-Token."
    ),
)
def start_attempt(
    quiz_id: int,
    request: Request,
    request_data: StartAttemptRequest | None = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.ATTEMPT_START)),
) -> StartAttemptResponse:
    access_code = request_data.access_code if request_data else None
    try:
        attempt = attempt_engine.start_attempt(db, identity.id, quiz_id, access_code)
    except AppError as e:
        _log_denial(request, identity, e, quiz_id)
        raise

    return StartAttemptResponse(
        attempt_id=attempt.id,
        quiz_id=attempt.quiz_id,
        status=attempt.status,
        attempt_token=attempt.attempt_token,
        started_at=attempt.started_at,
        expires_at=attempt.attempt_token_expires_at,
    )


@router.get(
    "/questions/{quiz_id}",
    response_model=AttemptQuestionsResponse,
    summary="Questions for the running attempt",
)
def get_questions(
    quiz_id: int,
    request: Request,
    token: AttemptToken,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.ATTEMPT_READ_QUESTIONS)),
) -> AttemptQuestionsResponse:
    try:
        attempt, questions = attempt_engine.get_attempt_questions(
            db, token, quiz_id=quiz_id, student_id=identity.id
        )
    except AppError as e:
        _log_denial(request, identity, e, quiz_id)
        raise

    return AttemptQuestionsResponse(
        attempt_id=attempt.id,
        quiz_id=quiz_id,
        expires_at=attempt.attempt_token_expires_at,
        questions=[QuestionPublic.model_validate(q) for q in questions],
    )


@router.post(
    "/quizzes/{quiz_id}/submit",
    response_model=SubmitAttemptResponse,
    summary="Submit attempt",
)
def submit_attempt(
    quiz_id: int,
    request_data: SubmitAttemptRequest,
    request: Request,
    token: AttemptToken,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.ATTEMPT_SUBMIT)),
) -> SubmitAttemptResponse:
    try:
        result = attempt_engine.submit_attempt(
            db,
            token,
            request_data.as_mapping(),
            quiz_id=quiz_id,
            student_id=identity.id,
        )
    except AppError as e:
        _log_denial(request, identity, e, quiz_id)
        raise

    attempt = find_attempt(db, identity.id, quiz_id)
    return SubmitAttemptResponse(
        attempt_id=attempt.id,
        quiz_id=quiz_id,
        score=result.total_points,
        max_score=result.max_points,
        passed=result.passed,
        score_percent=result.score_percent,
        correct_count=result.correct_count,
        finished_at=attempt.finished_at,
        results=[
            QuestionResultOut(
                question_id=question_id,
                selected_option_id=result.selections[question_id],
                is_correct=is_correct,
            )
            for question_id, is_correct in result.per_question.items()
        ],
    )


@router.get(
    "/solutions/{quiz_id}",
    response_model=SolutionsResponse,
    summary="Solutions after submission",
)
def get_solutions(
    quiz_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.ATTEMPT_READ_SOLUTIONS)),
) -> SolutionsResponse:
    attempt, questions, records = attempt_engine.get_solutions(db, identity.id, quiz_id)

    items = []
    for question in questions:
        record = records.get(question.id)
        items.append(
            SolutionQuestionOut(
                question_id=question.id,
                text=question.text,
                points=question.points,
                options=[OptionWithKey.model_validate(o) for o in question.options],
                selected_option_id=record.option_id if record else None,
                is_correct=record.is_correct if record else False,
            )
        )

    return SolutionsResponse(
        attempt_id=attempt.id,
        quiz_id=quiz_id,
        score=attempt.score,
        max_score=attempt.max_score,
        passed=attempt.passed,
        finish_reason=attempt.finish_reason,
        questions=items,
    )


@router.get("/attempts", response_model=list[AttemptOut], summary="Own attempts")
def list_my_attempts(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.ATTEMPT_LIST_OWN)),
) -> list[AttemptOut]:
    return [AttemptOut.model_validate(a) for a in attempt_engine.list_student_attempts(db, identity.id)]


@router.get(
    "/quizzes/available",
    response_model=list[QuizPublic],
    summary="Open quizzes not yet finished",
)
def list_available(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_operation(Operation.ATTEMPT_LIST_OWN)),
) -> list[QuizPublic]:
    return [
        QuizPublic.model_validate(q)
        for q in attempt_engine.list_available_quizzes(db, identity.id)
    ]
