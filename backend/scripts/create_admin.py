#!/usr/bin/env python3
"""Create an admin account, or reset the password of an existing one."""

import argparse
import sys
from pathlib import Path

# Allow running from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from quizdesk.core.logging import get_logger, setup_logging  # noqa: E402
from quizdesk.core.security import hash_password  # noqa: E402
from quizdesk.db.session import session_scope  # noqa: E402
from quizdesk.services.access_policy import Role  # noqa: E402
from quizdesk.services.accounts import build_account, find_account_by_email  # noqa: E402

logger = get_logger(__name__)


def create_admin_user(email: str, password: str, name: str) -> bool:
    """Returns True when a new account was created, False when one was reset."""
    email = email.lower().strip()
    with session_scope() as db:
        admin = find_account_by_email(db, Role.ADMIN, email)
        if admin is not None:
            admin.password_hash = hash_password(password)
            admin.name = name
            admin.is_active = True
            logger.info("admin_account_reset", extra={"email": email})
            return False

        db.add(build_account(Role.ADMIN, {"name": name, "email": email, "password": password}))
        logger.info("admin_account_created", extra={"email": email})
        return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a QuizDesk admin account")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--name", default="Administrator", help="Display name")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        created = create_admin_user(args.email, args.password, args.name)
    except SQLAlchemyError as e:
        print(f"Error creating admin account: {e}", file=sys.stderr)
        return 1

    print(f"{'Created' if created else 'Updated'} admin account: {args.email.lower().strip()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
