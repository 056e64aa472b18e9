"""
Question normalizer for parsed model output.

Maps the loosely shaped question objects a model returns onto the canonical
Question schema. Normalization is all-or-nothing: one malformed item or a
count shortfall rejects the whole payload.
"""

import math
from typing import Any

from pydantic import ValidationError

from skill_exam.generation.response_extractor import ResponseFormatError
from skill_exam.models import DEFAULT_QUESTION_COUNT, OPTIONS_PER_QUESTION, Question

DEFAULT_CATEGORY = "unclassified"
DEFAULT_DIFFICULTY = "intermediate"

# Fields that may carry the correct option index, in priority order
ANSWER_FIELDS: tuple[str, ...] = ("answer", "answerIndex", "correct", "correctOption")


class SchemaError(ResponseFormatError):
    """Raised when the payload or one of its items does not fit the question schema."""

    def __init__(self, message: str, item_index: int | None = None):
        self.item_index = item_index
        if item_index is not None:
            message = f"Question {item_index}: {message}"
        super().__init__(message)


class InsufficientCountError(ResponseFormatError):
    """Raised when fewer valid questions than requested were returned."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} questions but only {actual} were returned")


def as_index(value: Any) -> int | None:
    """Return value as an integer index if it is numeric, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


class QuestionNormalizer:
    """
    Normalizes raw question payloads.

    Accepts:
    1. `options` or `choices` for the option list
    2. `answer`, `answerIndex`, `correct` or `correctOption` for the answer index
    3. `question` or `prompt` for the question text
    4. `explanation` or `reason` for the explanation
    """

    def __init__(self, options_per_question: int = OPTIONS_PER_QUESTION):
        self.options_per_question = options_per_question

    def normalize(
        self, payload: Any, question_count: int = DEFAULT_QUESTION_COUNT
    ) -> list[Question]:
        """
        Normalize a parsed payload into exactly `question_count` questions.

        Args:
            payload: Parsed JSON from the model.
            question_count: Number of questions required.

        Returns:
            The first `question_count` normalized questions, in original order.

        Raises:
            SchemaError: If the payload or any item is malformed.
            InsufficientCountError: If too few items were returned.
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
            raise SchemaError("Payload has no 'questions' array")

        normalized = [
            self._normalize_item(item, position)
            for position, item in enumerate(payload["questions"], start=1)
        ]

        if len(normalized) < question_count:
            raise InsufficientCountError(question_count, len(normalized))

        return normalized[:question_count]

    def _normalize_item(self, item: Any, position: int) -> Question:
        """Normalize one raw item; `position` is 1-based."""
        if not isinstance(item, dict):
            raise SchemaError("must be an object", position)

        options = item.get("options")
        if options is None:
            options = item.get("choices")
        if not isinstance(options, list) or len(options) != self.options_per_question:
            raise SchemaError(
                f"option count does not match {self.options_per_question}", position
            )
        if not all(isinstance(option, str) for option in options):
            raise SchemaError("options must be strings", position)

        answer = self._resolve_answer(item, position)
        if answer is None:
            raise SchemaError("no numeric answer field", position)
        if not 0 <= answer < len(options):
            raise SchemaError(f"answer {answer} is out of range", position)

        raw_id = as_index(item.get("id"))

        try:
            return Question(
                id=raw_id if raw_id else position,
                category=self._text(item.get("category")) or DEFAULT_CATEGORY,
                difficulty=self._text(item.get("difficulty")) or DEFAULT_DIFFICULTY,
                question=self._text(item.get("question")) or self._text(item.get("prompt")),
                options=tuple(options),
                answer=answer,
                explanation=self._text(item.get("explanation")) or self._text(item.get("reason")),
            )
        except ValidationError as e:
            raise SchemaError(f"invalid question: {e.errors()[0]['msg']}", position) from e

    @staticmethod
    def _resolve_answer(item: dict[str, Any], position: int) -> int | None:
        """
        Return the first numeric answer field, in priority order.

        Raises:
            SchemaError: If that field is numeric but not an integer.
        """
        for field in ANSWER_FIELDS:
            value = item.get(field)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            index = as_index(value)
            if index is None:
                raise SchemaError(f"{field} {value} is not an integer index", position)
            return index
        return None

    @staticmethod
    def _text(value: Any) -> str:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else str(value)
