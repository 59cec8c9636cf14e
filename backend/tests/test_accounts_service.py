"""Service-level tests for account lookup and authentication."""

import pytest
from argon2 import PasswordHasher
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import ConflictError
from quizdesk.core.security import verify_password
from quizdesk.services.access_policy import Role
from quizdesk.services.accounts import authenticate, create_account
from tests.helpers.seed import create_test_student


def test_authenticate_matches_role_store(db: Session):
    student = create_test_student(db, email="anna@example.com", password="StudentPass123!")

    assert authenticate(db, Role.STUDENT, "Anna@Example.com ", "StudentPass123!").id == student.id
    assert authenticate(db, Role.TEACHER, "anna@example.com", "StudentPass123!") is None
    assert authenticate(db, Role.STUDENT, "anna@example.com", "wrong") is None


def test_authenticate_sets_last_login(db: Session):
    student = create_test_student(db, password="StudentPass123!")
    assert student.last_login_at is None

    authenticate(db, Role.STUDENT, student.email, "StudentPass123!")

    db.refresh(student)
    assert student.last_login_at is not None


def test_weak_hash_upgraded_on_login(db: Session):
    student = create_test_student(db, password="StudentPass123!")
    weak_hash = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash("StudentPass123!")
    student.password_hash = weak_hash
    db.commit()

    assert authenticate(db, Role.STUDENT, student.email, "StudentPass123!") is not None

    db.refresh(student)
    assert student.password_hash != weak_hash
    assert verify_password("StudentPass123!", student.password_hash)


def test_duplicate_email_conflicts(db: Session):
    create_test_student(db, email="dup@example.com")

    with pytest.raises(ConflictError):
        create_account(
            db,
            Role.STUDENT,
            {"email": "dup@example.com", "password": "AnotherPass123!", "name": "Dup"},
        )
