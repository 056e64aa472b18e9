"""
Exam service facade.

Wires the assembler, the session store and the grading engine together and
produces the client-facing projections. Answers and explanations never leave
the service before an exam has been graded.
"""

import logging
from collections.abc import Sequence
from typing import Any

from skill_exam.config import Settings, get_settings
from skill_exam.gateways import create_gateway
from skill_exam.generation import ExamAssembler
from skill_exam.grading import GradingEngine
from skill_exam.models import (
    CategoryCount,
    Exam,
    GeneratedExam,
    GradeResult,
    PublicExam,
    PublicQuestion,
)
from skill_exam.store import ExamSessionStore

logger = logging.getLogger(__name__)


def public_questions(exam: Exam) -> tuple[PublicQuestion, ...]:
    """Project questions for clients, dropping answers and explanations."""
    return tuple(
        PublicQuestion(
            id=q.id,
            category=q.category,
            difficulty=q.difficulty,
            question=q.question,
            options=q.options,
        )
        for q in exam.questions
    )


def summarize_categories(exam: Exam) -> tuple[CategoryCount, ...]:
    """Count questions per category, in order of first occurrence."""
    counts: dict[str, int] = {}
    for q in exam.questions:
        counts[q.category] = counts.get(q.category, 0) + 1
    return tuple(CategoryCount(category=c, count=n) for c, n in counts.items())


class ExamService:
    """Generates, serves and grades exam sessions."""

    def __init__(
        self,
        assembler: ExamAssembler,
        store: ExamSessionStore,
        grading_engine: GradingEngine | None = None,
    ):
        self._assembler = assembler
        self._store = store
        self._grading_engine = grading_engine or GradingEngine()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ExamService":
        """Build a service using the provider selected in settings."""
        settings = settings or get_settings()
        return cls(
            assembler=ExamAssembler(create_gateway(settings), settings),
            store=ExamSessionStore(ttl=settings.session_ttl),
        )

    @property
    def store(self) -> ExamSessionStore:
        return self._store

    @property
    def assembler(self) -> ExamAssembler:
        return self._assembler

    async def create_exam(
        self,
        question_count: Any = None,
        categories: Sequence[str] | None = None,
    ) -> GeneratedExam:
        """
        Generate and store a new exam.

        Returns:
            The public projection with a category summary and the band table.
        """
        exam = await self._assembler.generate_exam(question_count, categories)
        record = self._store.create(exam)
        logger.info(
            "Created exam %s (%d questions, source=%s)",
            record.exam_id,
            exam.question_count,
            exam.source,
        )
        return GeneratedExam(
            exam_id=record.exam_id,
            total_questions=exam.question_count,
            generated_at=exam.generated_at,
            source=exam.source,
            questions=public_questions(exam),
            categories=summarize_categories(exam),
            score_bands=self._grading_engine.bands,
        )

    def get_exam(self, exam_id: str) -> PublicExam:
        """
        Return the public projection of a stored exam.

        Raises:
            StoreNotFoundError: If the id is unknown or expired.
        """
        exam = self._store.get(exam_id).exam
        return PublicExam(
            exam_id=exam_id,
            total_questions=exam.question_count,
            generated_at=exam.generated_at,
            source=exam.source,
            questions=public_questions(exam),
        )

    def grade_exam(self, exam_id: str, answers: Any) -> GradeResult:
        """
        Grade answers against a stored exam.

        Raises:
            StoreNotFoundError: If the id is unknown or expired.
            GradingInputError: If the answers are malformed.
        """
        exam = self._store.get(exam_id).exam
        result = self._grading_engine.grade(exam, answers)
        logger.info(
            "Graded exam %s: %d/%d (%s)", exam_id, result.score, result.total, result.grade
        )
        return result

    def discard_exam(self, exam_id: str) -> None:
        self._store.delete(exam_id)
