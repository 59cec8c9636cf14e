"""API v1 router - includes all endpoints."""

from fastapi import APIRouter

from quizdesk.api.v1.endpoints import (
    admin_attempts,
    auth,
    faculties,
    health,
    options,
    questions,
    quizzes,
    student_attempts,
    students,
    subjects,
    teachers,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(quizzes.router)
api_router.include_router(questions.router)
api_router.include_router(options.router)
api_router.include_router(student_attempts.router)
api_router.include_router(faculties.router)
api_router.include_router(subjects.router)
api_router.include_router(students.router)
api_router.include_router(teachers.router)
api_router.include_router(admin_attempts.router)
