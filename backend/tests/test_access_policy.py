"""Tests for the role table and ownership checks."""

from typing import get_args

import pytest
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import ForbiddenError
from quizdesk.services.access_policy import (
    POLICY,
    AdminIdentity,
    Identity,
    Operation,
    Role,
    StudentIdentity,
    TeacherIdentity,
    authorize,
    ensure_authorized,
    ensure_quiz_owner,
    ensure_self_or_admin,
    make_identity,
)
from tests.helpers.seed import create_test_quiz


@pytest.mark.parametrize("role", list(Role))
def test_make_identity_yields_identity_variant(role: Role) -> None:
    identity = make_identity(role, 7)

    assert isinstance(identity, Identity)
    assert identity.role is role
    assert set(get_args(Identity)) == {AdminIdentity, TeacherIdentity, StudentIdentity}


def test_every_operation_has_a_policy() -> None:
    assert set(POLICY) == set(Operation)


@pytest.mark.parametrize(
    "operation",
    [
        Operation.ATTEMPT_START,
        Operation.ATTEMPT_SUBMIT,
        Operation.ATTEMPT_READ_QUESTIONS,
        Operation.ATTEMPT_READ_SOLUTIONS,
    ],
)
def test_attempt_operations_are_student_only(operation: Operation) -> None:
    assert authorize(Role.STUDENT, operation) is True
    assert authorize(Role.TEACHER, operation) is False
    assert authorize(Role.ADMIN, operation) is False


def test_authoring_is_for_teachers_and_admins() -> None:
    assert authorize(Role.TEACHER, Operation.QUIZ_CREATE) is True
    assert authorize(Role.ADMIN, Operation.QUIZ_CREATE) is True
    assert authorize(Role.STUDENT, Operation.QUIZ_CREATE) is False


def test_administration_is_admin_only() -> None:
    for operation in (Operation.STUDENT_WRITE, Operation.TEACHER_WRITE, Operation.FACULTY_WRITE):
        assert authorize(Role.ADMIN, operation) is True
        assert authorize(Role.TEACHER, operation) is False
        assert authorize(Role.STUDENT, operation) is False


def test_ensure_authorized_raises_forbidden() -> None:
    with pytest.raises(ForbiddenError) as exc_info:
        ensure_authorized(StudentIdentity(1), Operation.QUIZ_DELETE)
    assert exc_info.value.status_code == 403
    assert exc_info.value.details["operation"] == "quiz.delete"


def test_identity_carries_role_tag() -> None:
    identity = make_identity(Role.TEACHER, 7)
    assert isinstance(identity, TeacherIdentity)
    assert identity.role == Role.TEACHER
    # Same id in another store is a different identity
    assert make_identity(Role.STUDENT, 7) != identity


def test_quiz_owner_checks(db: Session, teacher, other_teacher) -> None:
    quiz = create_test_quiz(db, teacher)

    ensure_quiz_owner(TeacherIdentity(teacher.id), quiz)
    ensure_quiz_owner(AdminIdentity(999), quiz)
    with pytest.raises(ForbiddenError):
        ensure_quiz_owner(TeacherIdentity(other_teacher.id), quiz)
    with pytest.raises(ForbiddenError):
        ensure_quiz_owner(StudentIdentity(teacher.id), quiz)


def test_self_or_admin() -> None:
    ensure_self_or_admin(StudentIdentity(3), Role.STUDENT, 3)
    ensure_self_or_admin(AdminIdentity(1), Role.STUDENT, 3)
    with pytest.raises(ForbiddenError):
        ensure_self_or_admin(StudentIdentity(4), Role.STUDENT, 3)
    with pytest.raises(ForbiddenError):
        ensure_self_or_admin(TeacherIdentity(3), Role.STUDENT, 3)
