"""Database base and model registry."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# Import all models here so Alembic and create_all can see them
from quizdesk import models  # noqa: E402,F401
