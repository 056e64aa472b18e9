"""
Pydantic models for the Skill Exam system.

These models define the strict schemas for:
- Questions and exams produced by the generation pipeline
- Stored exam records held by the session store
- Score bands and grading results

Domain models are frozen: an exam never changes after it is assembled.
Consumer-facing models serialize with camelCase aliases.
"""

import math
from datetime import datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ==============================================================================
# Protocol Constants
# ==============================================================================

MIN_QUESTION_COUNT = 5
MAX_QUESTION_COUNT = 10
DEFAULT_QUESTION_COUNT = MAX_QUESTION_COUNT
OPTIONS_PER_QUESTION = 3

FALLBACK_SOURCE = "fallback"


def clamp_question_count(value: Any) -> int:
    """
    Resolve a requested question count into the published bounds.

    Missing, non-numeric and non-finite values yield the default. Anything else
    is rounded half-up to the nearest integer and clamped.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_QUESTION_COUNT
    try:
        parsed = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return DEFAULT_QUESTION_COUNT
    if not math.isfinite(parsed):
        return DEFAULT_QUESTION_COUNT
    return min(MAX_QUESTION_COUNT, max(MIN_QUESTION_COUNT, math.floor(parsed + 0.5)))


# ==============================================================================
# Exam Models
# ==============================================================================


class Question(BaseModel):
    """
    A single multiple-choice question.

    The answer is a zero-based index into the ordered options.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    id: int = Field(
        ...,
        description="Stable identifier, usually the 1-based position in the exam",
    )

    category: str = Field(
        ...,
        description="Free-text category label",
    )

    difficulty: str = Field(
        ...,
        description="Difficulty label (beginner, intermediate, advanced)",
    )

    question: str = Field(
        ...,
        description="Question text",
    )

    options: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Ordered answer choices",
    )

    answer: int = Field(
        ...,
        description="Zero-based index of the correct option",
    )

    explanation: str = Field(
        default="",
        description="Why the correct option is correct",
    )

    @model_validator(mode="after")
    def validate_answer_index(self) -> "Question":
        """Ensure the answer points at one of the options."""
        if not 0 <= self.answer < len(self.options):
            raise ValueError(
                f"Answer index {self.answer} is outside [0, {len(self.options)})"
            )
        return self


class Exam(BaseModel):
    """
    An assembled exam.

    Every question carries the same number of options. The prompt is kept
    for diagnostics only and is never part of a public projection.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    source: str = Field(
        ...,
        min_length=1,
        description="Provenance tag: provider name or 'fallback'",
    )

    generated_at: datetime = Field(
        ...,
        description="When the exam was assembled",
    )

    questions: tuple[Question, ...] = Field(
        ...,
        description="Ordered questions",
    )

    prompt: str | None = Field(
        default=None,
        description="Instruction text sent to the provider",
    )

    @model_validator(mode="after")
    def validate_uniform_options(self) -> "Exam":
        """Ensure every question has the same number of options."""
        lengths = {len(q.options) for q in self.questions}
        if len(lengths) > 1:
            raise ValueError(f"Questions have differing option counts: {sorted(lengths)}")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def question_count(self) -> int:
        """Return the number of questions."""
        return len(self.questions)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def options_per_question(self) -> int:
        """Return the shared option count, or 0 for an empty exam."""
        return len(self.questions[0].options) if self.questions else 0

    @property
    def is_fallback(self) -> bool:
        """Whether the questions came from the fallback bank."""
        return self.source == FALLBACK_SOURCE


class ExamRecord(BaseModel):
    """An exam as held by the session store."""

    model_config = ConfigDict(frozen=True, strict=True)

    exam_id: str = Field(
        ...,
        min_length=1,
        description="Opaque session identifier",
    )

    exam: Exam = Field(
        ...,
        description="The stored exam",
    )

    created_at: datetime = Field(
        ...,
        description="When the record was stored",
    )


# ==============================================================================
# Consumer-Facing Models
# ==============================================================================


class ApiModel(BaseModel):
    """Base for models handed to clients; serializes with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        strict=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump as a JSON-compatible dict with client-facing keys."""
        return self.model_dump(mode="json", by_alias=True)


class ScoreBand(ApiModel):
    """A score threshold with its letter grade."""

    label: str = Field(..., min_length=1)
    min_score: int = Field(..., ge=0)
    description: str = Field(default="")


class PublicQuestion(ApiModel):
    """A question as shown before grading, without answer or explanation."""

    id: int
    category: str
    difficulty: str
    question: str
    options: tuple[str, ...]


class CategoryCount(ApiModel):
    """Number of questions in one category."""

    category: str
    count: int = Field(..., ge=0)


class PublicExam(ApiModel):
    """A stored exam as exposed to clients."""

    exam_id: str
    total_questions: int = Field(..., ge=0)
    generated_at: datetime
    source: str
    questions: tuple[PublicQuestion, ...]


class GeneratedExam(PublicExam):
    """Response for a freshly generated exam."""

    categories: tuple[CategoryCount, ...]
    score_bands: tuple[ScoreBand, ...]


# ==============================================================================
# Grading Result Models
# ==============================================================================


class QuestionResult(ApiModel):
    """Per-question grading detail, including the correct option."""

    id: int
    question: str
    category: str
    difficulty: str
    correct: bool
    correct_option_index: int
    user_option_index: int | None = None
    explanation: str = ""


class CategoryAccuracy(ApiModel):
    category: str
    total: int = Field(..., ge=0)
    correct: int = Field(..., ge=0)
    accuracy: float = Field(..., ge=0.0, le=100.0)


class DifficultyAccuracy(ApiModel):
    difficulty: str
    total: int = Field(..., ge=0)
    correct: int = Field(..., ge=0)
    accuracy: float = Field(..., ge=0.0, le=100.0)


class Breakdown(ApiModel):
    """Aggregates grouped in order of first occurrence."""

    categories: tuple[CategoryAccuracy, ...]
    difficulties: tuple[DifficultyAccuracy, ...]


class GradeResult(ApiModel):
    """
    Complete grading result for a submission.

    Derived on demand and never stored.
    """

    total: int = Field(..., ge=0)
    score: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0.0, le=100.0)
    grade: str
    band: ScoreBand | None
    breakdown: Breakdown
    question_results: tuple[QuestionResult, ...]
    generated_at: datetime
    source: str

    @model_validator(mode="after")
    def validate_score_range(self) -> "GradeResult":
        """Ensure score does not exceed total."""
        if self.score > self.total:
            raise ValueError(f"Score ({self.score}) cannot exceed total ({self.total})")
        return self
