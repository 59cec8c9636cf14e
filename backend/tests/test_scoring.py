"""Unit tests for the scoring engine."""

from quizdesk.services.scoring import (
    AnswerKey,
    QuestionKey,
    empty_result,
    normalize_selection,
    score_attempt,
)


def _key(passing_score: int = 5) -> AnswerKey:
    return AnswerKey(
        quiz_id=1,
        passing_score=passing_score,
        questions=(
            QuestionKey(10, 3, frozenset({100, 101, 102}), frozenset({100})),
            QuestionKey(20, 4, frozenset({200, 201}), frozenset({201})),
        ),
    )


def test_all_correct() -> None:
    result = score_attempt(_key(), {10: 100, 20: 201})

    assert result.total_points == 7
    assert result.max_points == 7
    assert result.passed is True
    assert result.score_percent == 100
    assert result.correct_count == 2


def test_passing_score_is_inclusive() -> None:
    result = score_attempt(_key(passing_score=4), {10: 101, 20: 201})

    assert result.total_points == 4
    assert result.passed is True


def test_below_passing_score() -> None:
    result = score_attempt(_key(), {10: 100, 20: 200})

    assert result.total_points == 3
    assert result.passed is False
    assert result.score_percent == 43


def test_invalid_selections_count_as_unanswered() -> None:
    result = score_attempt(_key(), {10: 201, 20: 999})

    assert result.per_question == {10: False, 20: False}
    assert result.selections == {10: None, 20: None}


def test_unknown_questions_are_ignored() -> None:
    result = score_attempt(_key(), {10: 100, 77: 5})

    assert list(result.per_question) == [10, 20]
    assert result.total_points == 3


def test_normalize_selection() -> None:
    question = _key().questions[0]

    assert normalize_selection(question, 101) == 101
    assert normalize_selection(question, None) is None
    assert normalize_selection(question, 200) is None


def test_empty_result_for_expired_attempt() -> None:
    result = empty_result(_key())

    assert result.total_points == 0
    assert result.max_points == 7
    assert result.passed is False
    assert result.selections == {10: None, 20: None}


def test_zero_passing_score_passes_empty_attempt() -> None:
    assert empty_result(_key(passing_score=0)).passed is True


def test_answer_key_completeness() -> None:
    assert _key().is_complete() is True
    assert AnswerKey(quiz_id=1, passing_score=0, questions=()).is_complete() is False
    incomplete = AnswerKey(
        quiz_id=1,
        passing_score=0,
        questions=(QuestionKey(1, 1, frozenset({5}), frozenset()),),
    )
    assert incomplete.is_complete() is False
