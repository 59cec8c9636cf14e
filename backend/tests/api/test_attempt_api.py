"""End-to-end tests for the student attempt workflow over HTTP."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from quizdesk.common.clock import utcnow
from quizdesk.repositories.attempts import find_attempt
from tests.helpers.seed import correct_option_id, create_test_quiz, wrong_option_id


async def _start(async_client: AsyncClient, quiz_id: int, headers: dict, **body) -> dict:
    response = await async_client.post(
        f"/api/student/quizzes/{quiz_id}/start", headers=headers, json=body or None
    )
    assert response.status_code == 200, response.text
    return response.json()


def _with_token(headers: dict, token: str) -> dict:
    return {**headers, "X-Quiz-Token": token}


@pytest.mark.asyncio
async def test_full_attempt_flow(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher, question_points=(3, 4), passing_score=5)
    q1, q2 = quiz.questions

    started = await _start(async_client, quiz.id, student_headers)
    assert started["status"] == "ACTIVE"
    token = started["attempt_token"]

    # Questions are served without answer keys
    response = await async_client.get(
        f"/api/student/questions/{quiz.id}", headers=_with_token(student_headers, token)
    )
    assert response.status_code == 200
    questions = response.json()["questions"]
    assert [q["id"] for q in questions] == [q1.id, q2.id]
    assert all("is_correct" not in o for q in questions for o in q["options"])

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/submit",
        headers=_with_token(student_headers, token),
        json={
            "answers": [
                {"question_id": q1.id, "option_id": correct_option_id(q1)},
                {"question_id": q2.id, "option_id": correct_option_id(q2)},
            ]
        },
    )
    assert response.status_code == 200
    result = response.json()
    assert result["score"] == 7
    assert result["max_score"] == 7
    assert result["passed"] is True
    assert result["correct_count"] == 2
    assert result["finished_at"] is not None

    response = await async_client.get(f"/api/student/solutions/{quiz.id}", headers=student_headers)
    assert response.status_code == 200
    solutions = response.json()
    assert solutions["score"] == 7
    assert solutions["finish_reason"] == "SUBMITTED"
    first = solutions["questions"][0]
    assert first["selected_option_id"] == correct_option_id(q1)
    assert any(o["is_correct"] for o in first["options"])

    response = await async_client.get("/api/student/attempts", headers=student_headers)
    assert response.status_code == 200
    attempts = response.json()
    assert len(attempts) == 1
    assert "attempt_token" not in attempts[0]


@pytest.mark.asyncio
async def test_restart_returns_same_token(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)

    first = await _start(async_client, quiz.id, student_headers)
    second = await _start(async_client, quiz.id, student_headers)

    assert second["attempt_token"] == first["attempt_token"]
    assert second["expires_at"] == first["expires_at"]


@pytest.mark.asyncio
async def test_second_submit_conflicts(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    q1, _ = quiz.questions
    token = (await _start(async_client, quiz.id, student_headers))["attempt_token"]
    url = f"/api/student/quizzes/{quiz.id}/submit"
    headers = _with_token(student_headers, token)

    first = await async_client.post(
        url, headers=headers, json={"answers": [{"question_id": q1.id, "option_id": wrong_option_id(q1)}]}
    )
    second = await async_client.post(
        url, headers=headers, json={"answers": [{"question_id": q1.id, "option_id": correct_option_id(q1)}]}
    )

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["error_code"] == "ALREADY_SUBMITTED"
    assert first.json()["score"] == 0


@pytest.mark.asyncio
async def test_restart_after_submit_conflicts(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    token = (await _start(async_client, quiz.id, student_headers))["attempt_token"]
    await async_client.post(
        f"/api/student/quizzes/{quiz.id}/submit",
        headers=_with_token(student_headers, token),
        json={"answers": []},
    )

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/start", headers=student_headers
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "ALREADY_ATTEMPTED"


@pytest.mark.asyncio
async def test_questions_require_attempt_token(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    await _start(async_client, quiz.id, student_headers)

    response = await async_client.get(f"/api/student/questions/{quiz.id}", headers=student_headers)

    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_ATTEMPT_TOKEN"


@pytest.mark.asyncio
async def test_token_used_for_other_quiz(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    other = create_test_quiz(db, teacher)
    token = (await _start(async_client, quiz.id, student_headers))["attempt_token"]

    response = await async_client.get(
        f"/api/student/questions/{other.id}", headers=_with_token(student_headers, token)
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "ATTEMPT_MISMATCH"


@pytest.mark.asyncio
async def test_submit_after_expiry(
    async_client: AsyncClient, db: Session, teacher, student, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    token = (await _start(async_client, quiz.id, student_headers))["attempt_token"]
    attempt = find_attempt(db, student.id, quiz.id)
    attempt.attempt_token_expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/submit",
        headers=_with_token(student_headers, token),
        json={"answers": []},
    )

    assert response.status_code == 410
    assert response.json()["error_code"] == "ATTEMPT_EXPIRED"
    assert find_attempt(db, student.id, quiz.id).answers == []


@pytest.mark.asyncio
async def test_password_protected_quiz(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher, password="open-sesame")
    url = f"/api/student/quizzes/{quiz.id}/start"

    denied = await async_client.post(url, headers=student_headers, json={"access_code": "wrong"})
    missing = await async_client.post(url, headers=student_headers)
    allowed = await async_client.post(
        url, headers=student_headers, json={"access_code": "open-sesame"}
    )

    assert denied.status_code == 403
    assert denied.json()["error_code"] == "INVALID_ACCESS_CODE"
    assert missing.status_code == 403
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_closed_quiz(async_client: AsyncClient, db: Session, teacher, student_headers) -> None:
    now = utcnow()
    quiz = create_test_quiz(
        db, teacher, start_time=now + timedelta(days=1), end_time=now + timedelta(days=2)
    )

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/start", headers=student_headers
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "QUIZ_NOT_OPEN"


@pytest.mark.asyncio
async def test_solutions_locked_until_finished(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    await _start(async_client, quiz.id, student_headers)

    response = await async_client.get(f"/api/student/solutions/{quiz.id}", headers=student_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_teacher_cannot_start_attempt(
    async_client: AsyncClient, db: Session, teacher, teacher_headers
) -> None:
    quiz = create_test_quiz(db, teacher)

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/start", headers=teacher_headers
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_duplicate_answers_rejected(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    q1, _ = quiz.questions
    token = (await _start(async_client, quiz.id, student_headers))["attempt_token"]

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/submit",
        headers=_with_token(student_headers, token),
        json={
            "answers": [
                {"question_id": q1.id, "option_id": correct_option_id(q1)},
                {"question_id": q1.id, "option_id": wrong_option_id(q1)},
            ]
        },
    )

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_available_quizzes(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)

    before = await async_client.get("/api/student/quizzes/available", headers=student_headers)
    assert [q["id"] for q in before.json()] == [quiz.id]

    token = (await _start(async_client, quiz.id, student_headers))["attempt_token"]
    await async_client.post(
        f"/api/student/quizzes/{quiz.id}/submit",
        headers=_with_token(student_headers, token),
        json={"answers": []},
    )

    after = await async_client.get("/api/student/quizzes/available", headers=student_headers)
    assert after.json() == []


@pytest.mark.asyncio
async def test_student_responses_are_not_cached(
    async_client: AsyncClient, db: Session, teacher, student_headers
) -> None:
    quiz = create_test_quiz(db, teacher)

    response = await async_client.post(
        f"/api/student/quizzes/{quiz.id}/start", headers=student_headers
    )

    assert response.headers["Cache-Control"] == "no-store"
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_admin_expiry_sweep(
    async_client: AsyncClient, db: Session, teacher, student, student_headers, admin_headers
) -> None:
    quiz = create_test_quiz(db, teacher)
    await _start(async_client, quiz.id, student_headers)
    attempt = find_attempt(db, student.id, quiz.id)
    attempt.attempt_token_expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    denied = await async_client.post("/api/admin/attempts/expire", headers=student_headers)
    response = await async_client.post("/api/admin/attempts/expire", headers=admin_headers)

    assert denied.status_code == 403
    assert response.status_code == 200
    assert response.json() == {"expired": 1}
    assert find_attempt(db, student.id, quiz.id).finish_reason.value == "EXPIRED"
