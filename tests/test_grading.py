"""
Unit tests for the grading engine.

Tests score bands, answer coercion, rounding, and the breakdowns produced
by GradingEngine.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import pytest

from skill_exam.generation import build_fallback_exam
from skill_exam.grading import (
    SCORE_BANDS,
    AnswerCountMismatchError,
    BandTableError,
    GradingEngine,
    GradingInputError,
    InvalidAnswersError,
    select_band,
    validate_bands,
)
from skill_exam.grading.engine import NO_GRADE, coerce_answer, round_percent
from skill_exam.models import Exam, Question, ScoreBand


def wrong(question: Question) -> int:
    return (question.answer + 1) % len(question.options)


def answers_with_score(exam: Exam, score: int) -> list[int]:
    """Answer the first `score` questions correctly and the rest wrongly."""
    return [q.answer if i < score else wrong(q) for i, q in enumerate(exam.questions)]


class TestScoreBands:
    """Tests for the band table and band selection."""

    def test_default_table(self) -> None:
        """Test the shipped bands and thresholds."""
        assert [(b.label, b.min_score) for b in SCORE_BANDS] == [
            ("S", 9),
            ("A", 8),
            ("B", 6),
            ("C", 5),
            ("D", 0),
        ]
        validate_bands(SCORE_BANDS)

    @pytest.mark.parametrize(
        "score,label",
        [(10, "S"), (9, "S"), (8, "A"), (7, "B"), (6, "B"), (5, "C"), (4, "D"), (0, "D")],
    )
    def test_select_band(self, score: int, label: str) -> None:
        """Test the highest threshold not above the score wins."""
        assert select_band(score).label == label

    def test_select_band_order_independent(self) -> None:
        """Test selection does not depend on table order."""
        assert select_band(8, tuple(reversed(SCORE_BANDS))).label == "A"

    def test_select_band_gap(self) -> None:
        """Test a score below every threshold has no band."""
        assert select_band(2, (ScoreBand(label="Pass", min_score=3),)) is None

    def test_validate_empty_table(self) -> None:
        """Test an empty table is rejected."""
        with pytest.raises(BandTableError, match="empty"):
            validate_bands(())

    def test_validate_missing_floor(self) -> None:
        """Test a table without a zero floor is rejected."""
        with pytest.raises(BandTableError, match="start at 0"):
            validate_bands((ScoreBand(label="Pass", min_score=3),))

    def test_validate_duplicate_labels(self) -> None:
        """Test repeated labels are rejected."""
        bands = (ScoreBand(label="A", min_score=5), ScoreBand(label="A", min_score=0))

        with pytest.raises(BandTableError, match="Duplicate"):
            validate_bands(bands)

    def test_band_payload_uses_camel_case(self) -> None:
        """Test bands serialize with client-facing keys."""
        assert SCORE_BANDS[0].to_payload() == {
            "label": "S",
            "minScore": 9,
            "description": SCORE_BANDS[0].description,
        }


class TestAnswerCoercion:
    """Tests for coerce_answer and round_percent."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, 0),
            (2, 2),
            (1.0, 1),
            ("2", 2),
            (" 1 ", 1),
            ("1.0", 1),
            (None, None),
            (True, None),
            (False, None),
            ("", None),
            ("  ", None),
            ("abc", None),
            (1.5, None),
            ("1.5", None),
            (float("nan"), None),
            (float("inf"), None),
            ("nan", None),
            ([1], None),
            ({"answer": 1}, None),
        ],
    )
    def test_coerce_answer(self, value: Any, expected: int | None) -> None:
        """Test integral values are accepted and everything else is unanswered."""
        assert coerce_answer(value) == expected

    @pytest.mark.parametrize(
        "numerator,denominator,expected",
        [
            (3, 5, 60.0),
            (1, 3, 33.3),
            (2, 3, 66.7),
            (1, 6, 16.7),
            (1, 8, 12.5),
            (1, 16, 6.3),
            (5, 5, 100.0),
            (0, 5, 0.0),
            (0, 0, 0.0),
        ],
    )
    def test_round_percent(self, numerator: int, denominator: int, expected: float) -> None:
        """Test percentages round half-up to one decimal."""
        assert round_percent(numerator, denominator) == expected


class TestGradingEngine:
    """Tests for GradingEngine."""

    def test_all_correct(self, sample_exam: Exam, correct_answers: list[int]) -> None:
        """Test a perfect submission."""
        result = GradingEngine().grade(sample_exam, correct_answers)

        assert result.total == 5
        assert result.score == 5
        assert result.percentage == 100.0
        assert result.grade == "C"
        assert result.band.label == "C"
        assert all(r.correct for r in result.question_results)

    def test_single_category_exam(self) -> None:
        """Test a five-question, one-category exam with three correct answers."""
        exam = Exam(
            source="openai",
            generated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            questions=tuple(
                Question(
                    id=i,
                    category="A",
                    difficulty="beginner",
                    question=f"Q{i}?",
                    options=("x", "y", "z"),
                    answer=0,
                )
                for i in range(1, 6)
            ),
        )

        result = GradingEngine().grade(exam, [0, 0, 0, 1, 2])

        assert result.score == 3
        assert result.percentage == 60.0
        assert [(c.category, c.total, c.correct, c.accuracy) for c in result.breakdown.categories] == [
            ("A", 5, 3, 60.0)
        ]

    @pytest.mark.parametrize(
        "score,grade",
        [(10, "S"), (9, "S"), (8, "A"), (7, "B"), (6, "B"), (5, "C"), (4, "D"), (0, "D")],
    )
    def test_grade_bands_on_ten_questions(self, score: int, grade: str) -> None:
        """Test grades follow the raw score on a full-length exam."""
        exam = build_fallback_exam(10)

        result = GradingEngine().grade(exam, answers_with_score(exam, score))

        assert result.score == score
        assert result.grade == grade
        assert result.percentage == score * 10.0

    @pytest.mark.parametrize("count", range(5, 11))
    @pytest.mark.parametrize("score", [0, 2, 5])
    def test_breakdown_sums(self, count: int, score: int) -> None:
        """Test breakdown totals add up to the overall totals."""
        exam = build_fallback_exam(count)

        result = GradingEngine().grade(exam, answers_with_score(exam, score))

        assert result.score == sum(r.correct for r in result.question_results) == score
        for groups in (result.breakdown.categories, result.breakdown.difficulties):
            assert sum(g.total for g in groups) == count
            assert sum(g.correct for g in groups) == score
            assert all(0.0 <= g.accuracy <= 100.0 for g in groups)

    def test_breakdown_first_occurrence_order(
        self, sample_exam: Exam, correct_answers: list[int]
    ) -> None:
        """Test groups appear in order of first occurrence."""
        result = GradingEngine().grade(sample_exam, correct_answers)

        assert [c.category for c in result.breakdown.categories] == [
            "Prompt Design",
            "Data Security",
        ]
        assert [d.difficulty for d in result.breakdown.difficulties] == [
            "beginner",
            "intermediate",
            "advanced",
        ]

    def test_category_accuracy(self, sample_exam: Exam) -> None:
        """Test per-category accuracy uses one-decimal rounding."""
        # Prompt Design: 2 of 3 correct; Data Security: 1 of 2 correct
        result = GradingEngine().grade(sample_exam, [1, 0, 0, 0, 0])

        by_category = {c.category: c for c in result.breakdown.categories}
        assert by_category["Prompt Design"].correct == 2
        assert by_category["Prompt Design"].accuracy == 66.7
        assert by_category["Data Security"].accuracy == 50.0

    def test_unanswered_and_invalid_answers(self, sample_exam: Exam) -> None:
        """Test skipped and malformed answers are scored incorrect."""
        result = GradingEngine().grade(sample_exam, [None, False, "", "two", 0.5])

        assert result.score == 0
        assert result.grade == "D"
        assert all(r.user_option_index is None for r in result.question_results)
        assert not any(r.correct for r in result.question_results)

    def test_string_answers_accepted(self, sample_exam: Exam) -> None:
        """Test numeric strings count as option indexes."""
        result = GradingEngine().grade(sample_exam, ["1", "0", "1", "2", "0"])

        assert result.score == 5

    def test_boolean_true_is_not_index_one(self, sample_exam: Exam) -> None:
        """Test True is not treated as option 1."""
        result = GradingEngine().grade(sample_exam, [True, 0, 1, 2, 0])

        assert not result.question_results[0].correct
        assert result.score == 4

    def test_question_results_reveal_answers(
        self, sample_exam: Exam, sample_questions: tuple[Question, ...]
    ) -> None:
        """Test per-question results carry the key and explanation."""
        result = GradingEngine().grade(sample_exam, [0, 0, 1, 2, None])

        first = result.question_results[0]
        assert first.id == 1
        assert not first.correct
        assert first.correct_option_index == 1
        assert first.user_option_index == 0
        assert first.explanation == sample_questions[0].explanation
        assert result.question_results[4].user_option_index is None

    def test_tuple_answers_accepted(self, sample_exam: Exam, correct_answers: list[int]) -> None:
        """Test answers may be a tuple."""
        assert GradingEngine().grade(sample_exam, tuple(correct_answers)).score == 5

    @pytest.mark.parametrize("answers", ["10120", None, {"0": 1}, 3])
    def test_answers_not_a_list(self, sample_exam: Exam, answers: Any) -> None:
        """Test non-sequence answers are rejected."""
        with pytest.raises(InvalidAnswersError):
            GradingEngine().grade(sample_exam, answers)

    @pytest.mark.parametrize("length", [0, 4, 6])
    def test_answer_count_mismatch(self, sample_exam: Exam, length: int) -> None:
        """Test the answer count must match the question count."""
        with pytest.raises(AnswerCountMismatchError) as exc_info:
            GradingEngine().grade(sample_exam, [0] * length)

        assert exc_info.value.expected == 5
        assert exc_info.value.actual == length
        assert isinstance(exc_info.value, GradingInputError)
        assert isinstance(exc_info.value, ValueError)

    def test_no_matching_band(
        self, sample_exam: Exam, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a band table gap grades as N/A."""
        engine = GradingEngine(bands=(ScoreBand(label="Pass", min_score=3),))

        with caplog.at_level(logging.WARNING, logger="skill_exam.grading.engine"):
            result = engine.grade(sample_exam, [None] * 5)

        assert result.grade == NO_GRADE
        assert result.band is None
        assert "No score band" in caplog.text

    def test_result_echoes_exam_metadata(
        self, sample_exam: Exam, correct_answers: list[int]
    ) -> None:
        """Test source and generation time are carried over."""
        result = GradingEngine().grade(sample_exam, correct_answers)

        assert result.source == "openai"
        assert result.generated_at == sample_exam.generated_at

    def test_grading_is_deterministic(
        self, sample_exam: Exam, correct_answers: list[int]
    ) -> None:
        """Test grading the same submission twice gives the same result."""
        engine = GradingEngine()

        assert engine.grade(sample_exam, correct_answers) == engine.grade(
            sample_exam, correct_answers
        )

    def test_payload_uses_camel_case(self, sample_exam: Exam, correct_answers: list[int]) -> None:
        """Test grade results serialize with client-facing keys."""
        payload = GradingEngine().grade(sample_exam, correct_answers).to_payload()

        assert payload["score"] == 5
        assert payload["band"]["minScore"] == 5
        assert payload["questionResults"][0]["correctOptionIndex"] == 1
        assert payload["questionResults"][0]["userOptionIndex"] == 1
        assert payload["breakdown"]["categories"][0]["category"] == "Prompt Design"
        assert payload["generatedAt"].startswith("2025-01-15T09:30:00")
