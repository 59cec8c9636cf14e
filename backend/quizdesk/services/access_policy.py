"""Access policy gate: role table plus ownership checks.

Callers are represented as a tagged ``Identity`` variant. Each role has its
own credential store, so an identity is only meaningful together with its
role tag; ids from different stores may collide.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from quizdesk.core.app_exceptions import ForbiddenError
from quizdesk.models.quiz import Quiz


class Role(str, Enum):
    """Caller role; one per credential store."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


@dataclass(frozen=True)
class AdminIdentity:
    id: int
    role: ClassVar[Role] = Role.ADMIN


@dataclass(frozen=True)
class TeacherIdentity:
    id: int
    role: ClassVar[Role] = Role.TEACHER


@dataclass(frozen=True)
class StudentIdentity:
    id: int
    role: ClassVar[Role] = Role.STUDENT


Identity = AdminIdentity | TeacherIdentity | StudentIdentity

IDENTITY_BY_ROLE: dict[Role, type] = {
    Role.ADMIN: AdminIdentity,
    Role.TEACHER: TeacherIdentity,
    Role.STUDENT: StudentIdentity,
}


def make_identity(role: Role, account_id: int) -> Identity:
    return IDENTITY_BY_ROLE[role](account_id)


class Operation(str, Enum):
    """Operations guarded by the policy table."""

    # Attempt lifecycle
    ATTEMPT_START = "attempt.start"
    ATTEMPT_READ_QUESTIONS = "attempt.read_questions"
    ATTEMPT_SUBMIT = "attempt.submit"
    ATTEMPT_READ_SOLUTIONS = "attempt.read_solutions"
    ATTEMPT_LIST_OWN = "attempt.list_own"
    ATTEMPT_EXPIRE_SWEEP = "attempt.expire_sweep"

    # Quiz authoring
    QUIZ_CREATE = "quiz.create"
    QUIZ_UPDATE = "quiz.update"
    QUIZ_DELETE = "quiz.delete"
    QUIZ_READ_KEY = "quiz.read_key"
    QUIZ_READ_RESULTS = "quiz.read_results"
    QUESTION_WRITE = "question.write"
    OPTION_WRITE = "option.write"

    # Administration
    FACULTY_READ = "faculty.read"
    FACULTY_WRITE = "faculty.write"
    SUBJECT_READ = "subject.read"
    SUBJECT_WRITE = "subject.write"
    STUDENT_LIST = "student.list"
    STUDENT_READ = "student.read"
    STUDENT_WRITE = "student.write"
    TEACHER_LIST = "teacher.list"
    TEACHER_READ = "teacher.read"
    TEACHER_WRITE = "teacher.write"


_ADMIN = frozenset({Role.ADMIN})
_TEACHER_OR_ADMIN = frozenset({Role.TEACHER, Role.ADMIN})
_STUDENT = frozenset({Role.STUDENT})
_ANY = frozenset(Role)

POLICY: dict[Operation, frozenset[Role]] = {
    Operation.ATTEMPT_START: _STUDENT,
    Operation.ATTEMPT_READ_QUESTIONS: _STUDENT,
    Operation.ATTEMPT_SUBMIT: _STUDENT,
    Operation.ATTEMPT_READ_SOLUTIONS: _STUDENT,
    Operation.ATTEMPT_LIST_OWN: _STUDENT,
    Operation.ATTEMPT_EXPIRE_SWEEP: _ADMIN,
    Operation.QUIZ_CREATE: _TEACHER_OR_ADMIN,
    Operation.QUIZ_UPDATE: _TEACHER_OR_ADMIN,
    Operation.QUIZ_DELETE: _TEACHER_OR_ADMIN,
    Operation.QUIZ_READ_KEY: _TEACHER_OR_ADMIN,
    Operation.QUIZ_READ_RESULTS: _TEACHER_OR_ADMIN,
    Operation.QUESTION_WRITE: _TEACHER_OR_ADMIN,
    Operation.OPTION_WRITE: _TEACHER_OR_ADMIN,
    # Lists of taxonomy are visible to every signed-in role (dropdowns)
    Operation.FACULTY_READ: _ANY,
    Operation.FACULTY_WRITE: _ADMIN,
    Operation.SUBJECT_READ: _ANY,
    Operation.SUBJECT_WRITE: _ADMIN,
    Operation.STUDENT_LIST: _ADMIN,
    Operation.STUDENT_READ: frozenset({Role.ADMIN, Role.STUDENT}),
    Operation.STUDENT_WRITE: _ADMIN,
    Operation.TEACHER_LIST: _ADMIN,
    Operation.TEACHER_READ: _TEACHER_OR_ADMIN,
    Operation.TEACHER_WRITE: _ADMIN,
}


def authorize(role: Role, operation: Operation) -> bool:
    """Whether ``role`` may invoke ``operation`` at all."""
    return role in POLICY.get(operation, frozenset())


def ensure_authorized(identity: Identity, operation: Operation) -> None:
    if not authorize(identity.role, operation):
        raise ForbiddenError(
            "Access denied for this role",
            details={"operation": operation.value, "role": identity.role.value},
        )


def ensure_quiz_owner(identity: Identity, quiz: Quiz) -> None:
    """Admins pass; teachers must own the quiz."""
    if isinstance(identity, AdminIdentity):
        return
    if isinstance(identity, TeacherIdentity) and quiz.teacher_id == identity.id:
        return
    raise ForbiddenError("Only the quiz owner may do this", details={"quiz_id": quiz.id})


def ensure_self_or_admin(identity: Identity, role: Role, account_id: int) -> None:
    """Admins pass; anyone else may only touch their own account."""
    if isinstance(identity, AdminIdentity):
        return
    if identity.role == role and identity.id == account_id:
        return
    raise ForbiddenError("You may only access your own account")
