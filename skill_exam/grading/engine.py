"""
Grading engine.

Scores submitted answers against a stored exam and aggregates the results by
category and by difficulty. Grading is a pure function of the exam, the
answers and the band table.
"""

import logging
import math
from collections.abc import Sequence
from typing import Any

from skill_exam.grading.bands import SCORE_BANDS, select_band
from skill_exam.models import (
    Breakdown,
    CategoryAccuracy,
    DifficultyAccuracy,
    Exam,
    GradeResult,
    Question,
    QuestionResult,
    ScoreBand,
)

logger = logging.getLogger(__name__)

NO_GRADE = "N/A"


class GradingInputError(ValueError):
    """Raised when a grading request is malformed."""


class InvalidAnswersError(GradingInputError):
    """Raised when answers are not a sequence."""


class AnswerCountMismatchError(GradingInputError):
    """Raised when the number of answers differs from the number of questions."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} answers, got {actual}")


def round_percent(numerator: int, denominator: int) -> float:
    """Percentage rounded half-up to one decimal; 0.0 for an empty denominator."""
    if denominator == 0:
        return 0.0
    return math.floor(numerator * 1000 / denominator + 0.5) / 10


def coerce_answer(value: Any) -> int | None:
    """
    Coerce a submitted answer into an option index.

    Integers and integral numbers (including numeric strings) are accepted.
    Anything else counts as unanswered.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


class GradingEngine:
    """
    Grades exams.

    Checks:
    1. Answers are a sequence matching the question count
    2. Each answer is strictly equal to the correct option index
    3. The score maps onto a band, or "N/A" if the table has a gap
    """

    def __init__(self, bands: Sequence[ScoreBand] = SCORE_BANDS):
        self._bands = tuple(bands)

    @property
    def bands(self) -> tuple[ScoreBand, ...]:
        return self._bands

    def grade(self, exam: Exam, answers: Any) -> GradeResult:
        """
        Grade answers against an exam.

        Args:
            exam: The exam being answered.
            answers: One entry per question, matched by position.

        Returns:
            GradeResult with score, band and breakdowns.

        Raises:
            InvalidAnswersError: If answers is not a list or tuple.
            AnswerCountMismatchError: If the answer count is wrong.
        """
        if not isinstance(answers, (list, tuple)):
            raise InvalidAnswersError("Answers must be a list")
        if len(answers) != len(exam.questions):
            raise AnswerCountMismatchError(len(exam.questions), len(answers))

        question_results = tuple(
            self._grade_question(question, answer)
            for question, answer in zip(exam.questions, answers)
        )

        total = len(question_results)
        score = sum(1 for r in question_results if r.correct)

        band = select_band(score, self._bands)
        if band is None:
            logger.warning("No score band matches score %d; grading as %s", score, NO_GRADE)

        return GradeResult(
            total=total,
            score=score,
            percentage=round_percent(score, total),
            grade=band.label if band else NO_GRADE,
            band=band,
            breakdown=self._aggregate(question_results),
            question_results=question_results,
            generated_at=exam.generated_at,
            source=exam.source,
        )

    @staticmethod
    def _grade_question(question: Question, answer: Any) -> QuestionResult:
        user_index = coerce_answer(answer)
        return QuestionResult(
            id=question.id,
            question=question.question,
            category=question.category,
            difficulty=question.difficulty,
            correct=user_index is not None and user_index == question.answer,
            correct_option_index=question.answer,
            user_option_index=user_index,
            explanation=question.explanation,
        )

    @staticmethod
    def _aggregate(results: Sequence[QuestionResult]) -> Breakdown:
        """Group results by category and by difficulty, in order of first occurrence."""
        categories: dict[str, list[int]] = {}
        difficulties: dict[str, list[int]] = {}

        for result in results:
            for groups, key in ((categories, result.category), (difficulties, result.difficulty)):
                counts = groups.setdefault(key, [0, 0])
                counts[0] += 1
                if result.correct:
                    counts[1] += 1

        return Breakdown(
            categories=tuple(
                CategoryAccuracy(
                    category=name,
                    total=total,
                    correct=correct,
                    accuracy=round_percent(correct, total),
                )
                for name, (total, correct) in categories.items()
            ),
            difficulties=tuple(
                DifficultyAccuracy(
                    difficulty=name,
                    total=total,
                    correct=correct,
                    accuracy=round_percent(correct, total),
                )
                for name, (total, correct) in difficulties.items()
            ),
        )
