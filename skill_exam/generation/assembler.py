"""
Exam assembler - the generation orchestrator.

Runs prompt building, the completion call, extraction, normalization and a
final structural check. Whatever goes wrong along the way, the caller still
gets a valid exam: failures are logged and replaced by the fallback bank.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, NamedTuple

from skill_exam.config import Settings, get_settings
from skill_exam.gateways.base import CompletionGateway, GatewayError, ModelParams
from skill_exam.generation.fallback import build_fallback_exam
from skill_exam.generation.normalizer import QuestionNormalizer
from skill_exam.generation.prompt_builder import (
    DEFAULT_CATEGORIES,
    GenerationParams,
    PromptBuilder,
)
from skill_exam.generation.response_extractor import ResponseFormatError, extract_json
from skill_exam.models import OPTIONS_PER_QUESTION, Exam, Question, clamp_question_count

logger = logging.getLogger(__name__)


class ExamValidationError(ResponseFormatError):
    """Raised when normalized questions fail the final structural check."""


class ParseOutcome(NamedTuple):
    """Result of parsing one model response: questions on success, error otherwise."""

    questions: tuple[Question, ...] | None
    error: ResponseFormatError | None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_questions(questions: Sequence[Question], expected_count: int) -> None:
    """
    Final structural check on normalized questions.

    Raises:
        ExamValidationError: On a count mismatch or an incomplete question.
    """
    if len(questions) != expected_count:
        raise ExamValidationError(
            f"Question count {len(questions)} does not match required {expected_count}"
        )
    for i, q in enumerate(questions, start=1):
        if not q.question.strip() or not q.options:
            raise ExamValidationError(f"Question {i} is incomplete")


def parse_exam_response(
    text: Any,
    question_count: int,
    options_per_question: int = OPTIONS_PER_QUESTION,
) -> ParseOutcome:
    """
    Turn raw model output into validated questions.

    Never raises for malformed output; the failure is returned instead.

    Args:
        text: Raw completion text.
        question_count: Exact number of questions required.
        options_per_question: Required option count per question.

    Returns:
        ParseOutcome with either the questions or the reason they were rejected.
    """
    try:
        payload = extract_json(text)
        questions = QuestionNormalizer(options_per_question).normalize(payload, question_count)
        validate_questions(questions, question_count)
    except ResponseFormatError as e:
        return ParseOutcome(questions=None, error=e)
    return ParseOutcome(questions=tuple(questions), error=None)


class ExamAssembler:
    """
    Generates exams from a completion gateway.

    A single completion attempt is made per exam; retries, if any, belong to
    the gateway.
    """

    def __init__(self, gateway: CompletionGateway, settings: Settings | None = None):
        """
        Initialize the assembler.

        Args:
            gateway: The provider gateway selected at configuration time.
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()
        self._gateway = gateway
        self._prompt_builder = PromptBuilder()
        self._options_per_question = OPTIONS_PER_QUESTION

    @property
    def gateway(self) -> CompletionGateway:
        return self._gateway

    async def generate_exam(
        self,
        question_count: Any = None,
        categories: Sequence[str] | None = None,
    ) -> Exam:
        """
        Generate an exam, falling back to the curated bank on any failure.

        Args:
            question_count: Requested count; clamped to the published bounds.
            categories: Categories to cover. Defaults if empty or omitted.

        Returns:
            An Exam with exactly the resolved number of questions.
        """
        count = clamp_question_count(question_count)

        try:
            return await self._generate_live(count, categories)
        except GatewayError as e:
            logger.warning(
                "%s generation failed (%s), serving fallback exam: %s",
                self._gateway.provider_name,
                e.kind.value,
                e,
            )
        except ResponseFormatError as e:
            logger.warning(
                "%s returned an unusable exam, serving fallback exam: %s",
                self._gateway.provider_name,
                e,
            )
        except Exception:
            logger.exception(
                "Unexpected error during %s generation, serving fallback exam",
                self._gateway.provider_name,
            )

        return build_fallback_exam(count)

    async def _generate_live(self, count: int, categories: Sequence[str] | None) -> Exam:
        """
        Perform one live generation.

        Raises:
            GatewayError: If the completion call fails.
            ResponseFormatError: If the response cannot be turned into an exam.
        """
        params = GenerationParams(
            question_count=count,
            categories=tuple(categories) if categories else DEFAULT_CATEGORIES,
            options_per_question=self._options_per_question,
        )
        prompt = self._prompt_builder.build_exam_prompt(params)
        raw_response = await self._gateway.request_completion(
            PromptBuilder.build_messages(prompt),
            ModelParams(
                model=self._settings.resolved_model,
                temperature=self._settings.exam_ai_temperature,
                max_tokens=self._settings.exam_ai_max_tokens,
                json_mode=True,
            ),
        )

        outcome = parse_exam_response(
            raw_response, params.question_count, params.options_per_question
        )
        if not outcome.ok:
            raise outcome.error  # type: ignore[misc]

        logger.info(
            "Generated %d questions with %s", len(outcome.questions), self._gateway.provider_name
        )
        return Exam(
            source=self._gateway.provider_name,
            generated_at=datetime.now(timezone.utc),
            questions=outcome.questions,
            prompt=prompt,
        )
