"""
Grading Module.

Scores submissions against stored exams and maps scores onto letter bands.
"""

from skill_exam.grading.bands import SCORE_BANDS, BandTableError, select_band, validate_bands
from skill_exam.grading.engine import (
    AnswerCountMismatchError,
    GradingEngine,
    GradingInputError,
    InvalidAnswersError,
)

__all__ = [
    "SCORE_BANDS",
    "AnswerCountMismatchError",
    "BandTableError",
    "GradingEngine",
    "GradingInputError",
    "InvalidAnswersError",
    "select_band",
    "validate_bands",
]
