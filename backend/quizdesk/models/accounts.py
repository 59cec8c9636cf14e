"""Account models: one credential store per role."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from quizdesk.db.base import Base


class AccountMixin:
    """Columns shared by the admin, teacher and student stores."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(32), unique=True, nullable=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)


class Admin(AccountMixin, Base):
    """Platform administrator."""

    __tablename__ = "admins"


class Teacher(AccountMixin, Base):
    """Teacher account; owns the quizzes it authors."""

    __tablename__ = "teachers"

    quizzes = relationship(
        "Quiz", back_populates="teacher", cascade="all, delete-orphan", passive_deletes=True
    )


class Student(AccountMixin, Base):
    """Student account."""

    __tablename__ = "students"

    faculty_id = Column(
        Integer, ForeignKey("faculties.id", ondelete="SET NULL"), nullable=True, index=True
    )

    faculty = relationship("Faculty")
    attempts = relationship(
        "AttemptSession",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
