"""Login endpoints, one per role store."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import UnauthenticatedError
from quizdesk.core.dependencies import CurrentIdentity
from quizdesk.core.rate_limit import limit_login_by_email, limit_login_by_ip
from quizdesk.core.security import create_access_token
from quizdesk.core.security_logging import SecurityOutcome, log_security_event
from quizdesk.db.session import get_db
from quizdesk.schemas.auth import CheckAuthResponse, LoginRequest, TokenResponse
from quizdesk.services.access_policy import Role
from quizdesk.services.accounts import authenticate, get_account

router = APIRouter(tags=["Auth"])


def _login(role: Role, request_data: LoginRequest, request: Request, db: Session) -> TokenResponse:
    limit_login_by_email(request_data.email, request)

    account = authenticate(db, role, request_data.email, request_data.password)
    if account is None:
        log_security_event(
            request,
            event_type="auth_login_failed",
            outcome=SecurityOutcome.DENY,
            reason_code="UNAUTHORIZED",
            role=role.value,
        )
        # Generic message: don't reveal whether the email exists
        raise UnauthenticatedError("Invalid email or password")

    log_security_event(
        request,
        event_type="auth_login_success",
        outcome=SecurityOutcome.ALLOW,
        account_id=account.id,
        role=role.value,
    )
    return TokenResponse(
        access_token=create_access_token(account.id, role.value),
        role=role.value,
        account_id=account.id,
        name=account.name,
    )


@router.post(
    "/authenticate",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Admin login",
)
def admin_login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    _rate_limit_ip: None = Depends(limit_login_by_ip),
) -> TokenResponse:
    return _login(Role.ADMIN, request_data, request, db)


@router.post(
    "/stauthenticate",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Student login",
)
def student_login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    _rate_limit_ip: None = Depends(limit_login_by_ip),
) -> TokenResponse:
    return _login(Role.STUDENT, request_data, request, db)


@router.post(
    "/teauthenticate",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Teacher login",
)
def teacher_login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    _rate_limit_ip: None = Depends(limit_login_by_ip),
) -> TokenResponse:
    return _login(Role.TEACHER, request_data, request, db)


@router.get(
    "/checkauth",
    response_model=CheckAuthResponse,
    summary="Describe the authenticated identity",
)
def check_auth(
    identity: CurrentIdentity,
    db: Session = Depends(get_db),
) -> CheckAuthResponse:
    account = get_account(db, identity.role, identity.id)
    return CheckAuthResponse(
        role=identity.role.value,
        account_id=account.id,
        name=account.name,
        email=account.email,
    )
