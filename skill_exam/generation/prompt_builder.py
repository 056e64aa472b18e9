"""
Prompt builder for exam generation.

Constructs deterministic instructions that pin down:
- Exact question and option counts
- A strict JSON output schema
- Full coverage of the requested categories
- An approximate difficulty mix
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skill_exam.models import DEFAULT_QUESTION_COUNT, OPTIONS_PER_QUESTION

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Prompt Design & LLM Usage",
    "Data Security & Compliance",
    "Workflow Integration & Automation",
    "Business Value & ROI",
    "Risk Management & Quality Control",
)

DEFAULT_DIFFICULTY_PROFILE: dict[str, int] = {
    "beginner": 3,
    "intermediate": 5,
    "advanced": 2,
}


class GenerationParams(BaseModel):
    """Inputs to the exam prompt. Every field has a default."""

    model_config = ConfigDict(frozen=True)

    question_count: int = Field(default=DEFAULT_QUESTION_COUNT, ge=1)
    categories: tuple[str, ...] = Field(default=DEFAULT_CATEGORIES, min_length=1)
    options_per_question: int = Field(default=OPTIONS_PER_QUESTION, ge=2)
    difficulty_profile: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_DIFFICULTY_PROFILE),
        min_length=1,
    )

    @field_validator("difficulty_profile")
    @classmethod
    def validate_profile_weights(cls, v: dict[str, int]) -> dict[str, int]:
        """Weights must be non-negative with a positive sum."""
        if any(weight < 0 for weight in v.values()) or sum(v.values()) <= 0:
            raise ValueError("Difficulty weights must be non-negative with a positive total")
        return v


class PromptBuilder:
    """
    Builds exam generation prompts.

    The output is a pure function of GenerationParams, so the same request
    always yields the same instruction text.
    """

    SYSTEM_PROMPT = """You are an expert who writes multiple-choice exam questions for corporate skill assessments.
Respond with pure JSON only. Do not include explanations, prose, Markdown, or code fences."""

    @staticmethod
    def build_exam_prompt(params: GenerationParams | None = None) -> str:
        """
        Build the user prompt for exam generation.

        Args:
            params: Generation parameters. Defaults are used if omitted.

        Returns:
            The formatted user prompt.
        """
        params = params or GenerationParams()
        n = params.options_per_question
        difficulty_labels = "|".join(params.difficulty_profile)
        option_slots = ", ".join(["<string>"] * n)

        lines: list[str] = [
            "You are the lead designer of a corporate hiring exam.",
            "Write multiple-choice questions that assess practical skills in applying "
            "generative AI at work.",
            "Follow every requirement below exactly.",
            f"- Number of questions: {params.question_count}",
            f"- Options per question: {n}",
            "- Output JSON only, following this schema:",
            f'  {{ "questions": [ {{ "id": <number>, "category": <string>, '
            f'"difficulty": "{difficulty_labels}", "question": <string>, '
            f'"options": [{option_slots}], "answer": <number>, "explanation": <string> }} ] }}',
            f"- answer is the zero-based index of the correct option (0 to {n - 1})",
            "- explanation briefly states why the answer is correct and the practical takeaway",
            "- Cover every one of the following categories:",
        ]

        for i, category in enumerate(params.categories, start=1):
            lines.append(f"  {i}. {category}")

        lines.append(
            f"- Approximate difficulty mix: {PromptBuilder._format_difficulty_mix(params)} "
            "(roughly is fine)"
        )
        lines.append(
            "- Do not include Markdown or any extra text; output the raw JSON string only"
        )
        lines.append("- Every question must be unique and grounded in a realistic work scenario")

        return "\n".join(lines)

    @staticmethod
    def _format_difficulty_mix(params: GenerationParams) -> str:
        """Render the difficulty weights as rounded percentages."""
        total = sum(params.difficulty_profile.values())
        return ", ".join(
            f"{label} {int(weight * 100 / total + 0.5)}%"
            for label, weight in params.difficulty_profile.items()
        )

    @staticmethod
    def get_system_prompt() -> str:
        """Get the system prompt for exam generation."""
        return PromptBuilder.SYSTEM_PROMPT

    @staticmethod
    def build_messages(prompt: str) -> list[dict[str, str]]:
        """Pair the fixed system prompt with a user prompt."""
        return [
            {"role": "system", "content": PromptBuilder.SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
