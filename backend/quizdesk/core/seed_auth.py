"""Demo accounts for local development, one per role store."""

from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger
from quizdesk.db.session import session_scope
from quizdesk.services.access_policy import Role
from quizdesk.services.accounts import build_account, find_account_by_email

logger = get_logger(__name__)

DEMO_ACCOUNTS = [
    (Role.ADMIN, "Admin User", "admin@example.com", "Admin123!"),
    (Role.TEACHER, "Teacher User", "teacher@example.com", "Teacher123!"),
    (Role.STUDENT, "Student User", "student@example.com", "Student123!"),
]


def seed_demo_accounts() -> int:
    """Create missing demo accounts when ENV=dev and SEED_DEMO_ACCOUNTS is set.

    Returns the number of accounts created.
    """
    if settings.ENV != "dev" or not settings.SEED_DEMO_ACCOUNTS:
        return 0

    created = 0
    with session_scope() as db:
        for role, name, email, password in DEMO_ACCOUNTS:
            if find_account_by_email(db, role, email) is not None:
                continue
            db.add(build_account(role, {"name": name, "email": email, "password": password}))
            created += 1
            logger.info("demo_account_created", extra={"role": role.value, "email": email})

    logger.info("demo_accounts_seeded", extra={"created": created})
    return created
