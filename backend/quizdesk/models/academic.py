"""Academic taxonomy models (faculties and subjects)."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from quizdesk.db.base import Base


class Faculty(Base):
    """Faculty (department) students belong to."""

    __tablename__ = "faculties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)


class Subject(Base):
    """Subject a quiz is filed under."""

    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)
