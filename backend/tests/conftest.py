"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; point them at an isolated test setup first
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test_jwt_secret_key_change_in_production_min_32_chars"
os.environ["REDIS_ENABLED"] = "false"
os.environ["SEED_DEMO_ACCOUNTS"] = "false"

from collections.abc import AsyncGenerator, Generator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from quizdesk.db.base import Base  # noqa: E402
from quizdesk.db.engine import engine  # noqa: E402
from quizdesk.db.session import SessionLocal, get_db  # noqa: E402
from quizdesk.main import create_app  # noqa: E402
from quizdesk.models.academic import Subject  # noqa: E402
from quizdesk.models.accounts import Admin, Student, Teacher  # noqa: E402
from quizdesk.services.access_policy import Role  # noqa: E402
from tests.helpers.seed import (  # noqa: E402
    auth_headers,
    create_test_admin,
    create_test_student,
    create_test_subject,
    create_test_teacher,
)

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test on the shared in-memory SQLite database."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def async_client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Async FastAPI test client sharing the test session."""
    test_app = create_app()

    def override_get_db():
        yield db

    test_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        try:
            yield ac
        finally:
            test_app.dependency_overrides.clear()


@pytest.fixture
def admin(db: Session) -> Admin:
    return create_test_admin(db)


@pytest.fixture
def teacher(db: Session) -> Teacher:
    return create_test_teacher(db)


@pytest.fixture
def other_teacher(db: Session) -> Teacher:
    return create_test_teacher(db)


@pytest.fixture
def student(db: Session) -> Student:
    return create_test_student(db)


@pytest.fixture
def subject(db: Session) -> Subject:
    return create_test_subject(db)


@pytest.fixture
def admin_headers(admin: Admin) -> dict[str, str]:
    return auth_headers(admin, Role.ADMIN)


@pytest.fixture
def teacher_headers(teacher: Teacher) -> dict[str, str]:
    return auth_headers(teacher, Role.TEACHER)


@pytest.fixture
def student_headers(student: Student) -> dict[str, str]:
    return auth_headers(student, Role.STUDENT)
