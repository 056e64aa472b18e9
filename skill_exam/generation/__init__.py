"""
Exam Generation Module.

Prompt construction, response extraction, question normalization, the
fallback bank, and the assembler that ties them together.
"""

from skill_exam.generation.assembler import (
    ExamAssembler,
    ExamValidationError,
    ParseOutcome,
    parse_exam_response,
    validate_questions,
)
from skill_exam.generation.fallback import (
    FALLBACK_QUESTIONS,
    FallbackBankError,
    build_fallback_exam,
)
from skill_exam.generation.normalizer import (
    InsufficientCountError,
    QuestionNormalizer,
    SchemaError,
)
from skill_exam.generation.prompt_builder import (
    DEFAULT_CATEGORIES,
    DEFAULT_DIFFICULTY_PROFILE,
    GenerationParams,
    PromptBuilder,
)
from skill_exam.generation.response_extractor import (
    ExtractionError,
    ResponseFormatError,
    extract_json,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_DIFFICULTY_PROFILE",
    "FALLBACK_QUESTIONS",
    "ExamAssembler",
    "ExamValidationError",
    "ExtractionError",
    "FallbackBankError",
    "GenerationParams",
    "InsufficientCountError",
    "ParseOutcome",
    "PromptBuilder",
    "QuestionNormalizer",
    "ResponseFormatError",
    "SchemaError",
    "build_fallback_exam",
    "extract_json",
    "parse_exam_response",
    "validate_questions",
]
