"""Initial schema: accounts, taxonomy, quizzes, attempts

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def _account_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    ]


def upgrade() -> None:
    # Taxonomy
    op.create_table(
        "faculties",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(32), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(32), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )

    # Accounts: one store per role
    op.create_table("admins", *_account_columns())
    op.create_table("teachers", *_account_columns())
    op.create_table(
        "students",
        *_account_columns(),
        sa.Column(
            "faculty_id",
            sa.Integer(),
            sa.ForeignKey("faculties.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    for table in ("admins", "teachers", "students"):
        op.create_index(f"ix_{table}_email", table, ["email"], unique=True)
    op.create_index("ix_students_faculty_id", "students", ["faculty_id"])

    # Quiz content
    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "subject_id",
            sa.Integer(),
            sa.ForeignKey("subjects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "teacher_id",
            sa.Integer(),
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("time_limit", sa.Integer(), nullable=False),
        sa.Column("passing_score", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_quizzes_window"),
        sa.CheckConstraint("time_limit >= 1", name="ck_quizzes_time_limit"),
        sa.CheckConstraint("passing_score >= 0", name="ck_quizzes_passing_score"),
    )
    op.create_index("ix_quizzes_subject_id", "quizzes", ["subject_id"])
    op.create_index("ix_quizzes_teacher_id", "quizzes", ["teacher_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "quiz_id",
            sa.Integer(),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("points > 0", name="ck_questions_points"),
    )
    op.create_index("ix_questions_quiz_position", "questions", ["quiz_id", "position"])

    op.create_table(
        "options",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "question_id",
            sa.Integer(),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_options_question_id", "options", ["question_id"])

    # Attempts
    op.create_table(
        "attempt_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer(),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "quiz_id",
            sa.Integer(),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("attempt_token", sa.String(128), nullable=True, unique=True),
        sa.Column("attempt_token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("finish_reason", sa.String(16), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("max_score", sa.Integer(), nullable=True),
        sa.Column("passed", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "quiz_id", name="uq_attempt_sessions_student_quiz"),
    )
    op.create_index("ix_attempt_sessions_quiz_id", "attempt_sessions", ["quiz_id"])
    op.create_index(
        "ix_attempt_sessions_status_expires",
        "attempt_sessions",
        ["status", "attempt_token_expires_at"],
    )

    op.create_table(
        "answer_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "attempt_id",
            sa.Integer(),
            sa.ForeignKey("attempt_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.Integer(),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "option_id",
            sa.Integer(),
            sa.ForeignKey("options.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "attempt_id", "question_id", name="uq_answer_records_attempt_question"
        ),
    )


def downgrade() -> None:
    op.drop_table("answer_records")
    op.drop_index("ix_attempt_sessions_status_expires", table_name="attempt_sessions")
    op.drop_index("ix_attempt_sessions_quiz_id", table_name="attempt_sessions")
    op.drop_table("attempt_sessions")
    op.drop_index("ix_options_question_id", table_name="options")
    op.drop_table("options")
    op.drop_index("ix_questions_quiz_position", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_quizzes_teacher_id", table_name="quizzes")
    op.drop_index("ix_quizzes_subject_id", table_name="quizzes")
    op.drop_table("quizzes")
    op.drop_index("ix_students_faculty_id", table_name="students")
    for table in ("students", "teachers", "admins"):
        op.drop_index(f"ix_{table}_email", table_name=table)
        op.drop_table(table)
    op.drop_table("subjects")
    op.drop_table("faculties")
