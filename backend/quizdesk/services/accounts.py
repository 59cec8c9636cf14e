"""Account stores and credential checks.

Admins, teachers and students live in separate tables; the role tag picks
the store. An email may exist in more than one store.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quizdesk.common.clock import utcnow
from quizdesk.core.app_exceptions import ConflictError
from quizdesk.core.logging import get_logger
from quizdesk.core.security import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    password_needs_rehash,
    verify_password,
)
from quizdesk.models.accounts import Admin, Student, Teacher
from quizdesk.services.access_policy import Role

logger = get_logger(__name__)

NULLABLE_FIELDS = {"phone", "faculty_id"}

ACCOUNT_MODEL_BY_ROLE = {
    Role.ADMIN: Admin,
    Role.TEACHER: Teacher,
    Role.STUDENT: Student,
}


def get_account(db: Session, role: Role, account_id: int):
    """Account row from the role's store, or None."""
    return db.get(ACCOUNT_MODEL_BY_ROLE[role], account_id)


def find_account_by_email(db: Session, role: Role, email: str):
    model = ACCOUNT_MODEL_BY_ROLE[role]
    return db.query(model).filter(model.email == email.lower().strip()).first()


def authenticate(db: Session, role: Role, email: str, password: str):
    """
    Check credentials against one role store.

    Returns the account on success, None otherwise. The password hash is
    always verified so unknown emails take as long as wrong passwords.
    """
    account = find_account_by_email(db, role, email)
    password_hash = account.password_hash if account else DUMMY_PASSWORD_HASH
    password_valid = verify_password(password, password_hash)

    if account is None or not password_valid or not account.is_active:
        return None

    account.last_login_at = utcnow()
    if password_needs_rehash(account.password_hash):
        account.password_hash = hash_password(password)
    db.commit()
    return account


def _commit_account(db: Session, account) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email or phone already registered") from e
    db.refresh(account)


def build_account(role: Role, data: dict):
    """Unsaved account for the role's store; ``data["password"]`` is hashed."""
    values = dict(data)
    password = values.pop("password")
    return ACCOUNT_MODEL_BY_ROLE[role](password_hash=hash_password(password), **values)


def create_account(db: Session, role: Role, data: dict):
    account = build_account(role, data)
    db.add(account)
    _commit_account(db, account)
    logger.info("account_created", extra={"role": role.value, "account_id": account.id})
    return account


def update_account(db: Session, account, data: dict):
    """Apply a partial update; a new password replaces the hash."""
    values = dict(data)
    password = values.pop("password", None)
    for field, value in values.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(account, field, value)
    if password:
        account.password_hash = hash_password(password)
    _commit_account(db, account)
    return account
