"""Scoring engine for submitted quiz attempts.

Pure functions only: no database access, no clock. The repository layer
builds an ``AnswerKey`` from the ORM and the attempt engine persists the
returned ``ScoreResult``.

Scoring rules:
- Questions are walked in quiz order.
- A question is correct when the selected option belongs to the question
  and is marked correct.
- Unanswered selections, unknown option ids and options of another question
  all count as incorrect; the latter two are normalized to "unanswered".
- ``passed`` compares raw points against the quiz passing score.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class QuestionKey:
    """Answer key for one question."""

    question_id: int
    points: int
    option_ids: frozenset[int]
    correct_option_ids: frozenset[int]


@dataclass(frozen=True)
class AnswerKey:
    """Answer key for a whole quiz, questions in quiz order."""

    quiz_id: int
    passing_score: int
    questions: tuple[QuestionKey, ...]

    @property
    def max_points(self) -> int:
        return sum(q.points for q in self.questions)

    def is_complete(self) -> bool:
        """Every question has at least one correct option."""
        return bool(self.questions) and all(q.correct_option_ids for q in self.questions)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one attempt."""

    per_question: dict[int, bool] = field(default_factory=dict)
    selections: dict[int, int | None] = field(default_factory=dict)
    total_points: int = 0
    max_points: int = 0
    passed: bool = False
    score_percent: int = 0

    @property
    def correct_count(self) -> int:
        return sum(1 for ok in self.per_question.values() if ok)


def normalize_selection(question: QuestionKey, option_id: int | None) -> int | None:
    """Drop selections that do not belong to the question."""
    if option_id is None or option_id not in question.option_ids:
        return None
    return option_id


def score_attempt(answer_key: AnswerKey, answers: Mapping[int, int | None]) -> ScoreResult:
    """Score submitted answers against a quiz answer key.

    Args:
        answer_key: Answer key of the quiz
        answers: Mapping of question id to selected option id (or None)

    Returns:
        ScoreResult with per-question correctness and totals
    """
    per_question: dict[int, bool] = {}
    selections: dict[int, int | None] = {}
    total_points = 0

    for question in answer_key.questions:
        selected = normalize_selection(question, answers.get(question.question_id))
        is_correct = selected is not None and selected in question.correct_option_ids

        per_question[question.question_id] = is_correct
        selections[question.question_id] = selected
        if is_correct:
            total_points += question.points

    max_points = answer_key.max_points
    score_percent = round(100 * total_points / max_points) if max_points > 0 else 0

    return ScoreResult(
        per_question=per_question,
        selections=selections,
        total_points=total_points,
        max_points=max_points,
        passed=total_points >= answer_key.passing_score,
        score_percent=score_percent,
    )


def empty_result(answer_key: AnswerKey) -> ScoreResult:
    """Result for an attempt that expired without submission."""
    return score_attempt(answer_key, {})
