"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import asyncio
import json
import tempfile
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, ClassVar, Generator

import pytest

from skill_exam.config import AIProvider, Settings
from skill_exam.gateways.base import CompletionGateway, Message, ModelParams
from skill_exam.generation.prompt_builder import DEFAULT_CATEGORIES
from skill_exam.models import Exam, Question


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Gateway Doubles
# ==============================================================================


class FakeGateway(CompletionGateway):
    """
    Scripted gateway that records every call.

    Returns `response`, raises `error`, or sleeps `delay` seconds first.
    """

    provider_name: ClassVar[str] = "openai"

    def __init__(
        self,
        response: Any = None,
        error: Exception | None = None,
        delay: float = 0.0,
        api_key: str | None = "test-api-key",
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        super().__init__(api_key, timeout=timeout, max_retries=max_retries)
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: list[tuple[list[Message], ModelParams]] = []

    async def _complete(self, messages: list[Message], params: ModelParams) -> str:
        self.calls.append((messages, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last_prompt(self) -> str:
        """User prompt of the most recent call."""
        messages, _ = self.calls[-1]
        return messages[-1]["content"]


@pytest.fixture
def fake_gateway() -> Callable[..., FakeGateway]:
    """Factory for scripted gateways."""
    return FakeGateway


# ==============================================================================
# Sample Question Fixtures
# ==============================================================================


def make_raw_questions(count: int, options_per_question: int = 3) -> list[dict[str, Any]]:
    """Build well-formed question objects as a model would return them."""
    return [
        {
            "id": i,
            "category": DEFAULT_CATEGORIES[(i - 1) % len(DEFAULT_CATEGORIES)],
            "difficulty": ("beginner", "intermediate", "advanced")[(i - 1) % 3],
            "question": f"Scenario question {i}?",
            "options": [f"Option {chr(65 + j)}" for j in range(options_per_question)],
            "answer": (i - 1) % options_per_question,
            "explanation": f"Option {chr(65 + (i - 1) % options_per_question)} is correct.",
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def raw_questions() -> Callable[..., list[dict[str, Any]]]:
    """Factory for raw model question objects."""
    return make_raw_questions


@pytest.fixture
def llm_response() -> Callable[[int], str]:
    """Factory for a valid JSON model response with `count` questions."""

    def _build(count: int) -> str:
        return json.dumps({"questions": make_raw_questions(count)})

    return _build


@pytest.fixture
def sample_questions() -> tuple[Question, ...]:
    """Five questions across two categories and three difficulties."""
    return (
        Question(
            id=1,
            category="Prompt Design",
            difficulty="beginner",
            question="What should a prompt state to limit verbose answers?",
            options=("A higher temperature", "An explicit length and format", "More training data"),
            answer=1,
            explanation="Length and format constraints control verbosity directly.",
        ),
        Question(
            id=2,
            category="Data Security",
            difficulty="beginner",
            question="What comes first before sending customer data to a cloud model?",
            options=("Anonymization", "Latency benchmarks", "Temperature tuning"),
            answer=0,
            explanation="Anonymize before data leaves your systems.",
        ),
        Question(
            id=3,
            category="Prompt Design",
            difficulty="intermediate",
            question="How do you get consistently structured output?",
            options=("Ask politely", "Provide a schema and an example", "Use a longer prompt"),
            answer=1,
            explanation="A schema with an example pins down the structure.",
        ),
        Question(
            id=4,
            category="Data Security",
            difficulty="advanced",
            question="Which control limits exposure of model logs?",
            options=("Public dashboards", "Shared passwords", "Role-based access"),
            answer=2,
            explanation="Role-based access restricts who can read logs.",
        ),
        Question(
            id=5,
            category="Prompt Design",
            difficulty="intermediate",
            question="What reduces hallucinated citations?",
            options=("Grounding on retrieved sources", "Shorter prompts", "Lower max tokens"),
            answer=0,
            explanation="Grounding gives the model real sources to cite.",
        ),
    )


@pytest.fixture
def sample_exam(sample_questions: tuple[Question, ...]) -> Exam:
    """An exam produced by a live provider."""
    return Exam(
        source="openai",
        generated_at=datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc),
        questions=sample_questions,
        prompt="Generate 5 questions",
    )


@pytest.fixture
def correct_answers(sample_questions: tuple[Question, ...]) -> list[int]:
    """The answer key of `sample_questions`."""
    return [q.answer for q in sample_questions]


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with mocked values."""
    return Settings(
        _env_file=None,
        exam_ai_provider=AIProvider.OPENAI,
        openai_api_key="test-api-key-for-testing",
        openai_base_url="https://test.api.local/",
        exam_ai_model="test-model",
        exam_ai_temperature=0.0,
        exam_ai_max_tokens=1500,
        exam_ai_timeout_seconds=5.0,
        session_ttl_seconds=60.0,
    )


@pytest.fixture
def offline_settings() -> Settings:
    """Settings with no provider key, so generation always falls back."""
    return Settings(
        _env_file=None,
        exam_ai_provider=AIProvider.OPENAI,
        openai_api_key=None,
        anthropic_api_key=None,
        google_api_key=None,
    )
