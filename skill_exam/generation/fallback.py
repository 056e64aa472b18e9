"""
Fallback question bank.

A fixed, curated pool served whenever live generation fails. Entries are
interleaved by category so that any slice of at least MIN_QUESTION_COUNT
questions covers every default category. The bank is checked at import time;
a broken bank is a configuration defect, not a runtime condition.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from skill_exam.generation.prompt_builder import DEFAULT_CATEGORIES
from skill_exam.models import (
    DEFAULT_QUESTION_COUNT,
    FALLBACK_SOURCE,
    MAX_QUESTION_COUNT,
    MIN_QUESTION_COUNT,
    OPTIONS_PER_QUESTION,
    Exam,
    Question,
    clamp_question_count,
)

PROMPT, SECURITY, WORKFLOW, BUSINESS, RISK = DEFAULT_CATEGORIES


class FallbackBankError(Exception):
    """Raised at startup when the fallback bank cannot serve every valid request."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        message = "Fallback bank is invalid:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


def _q(
    category: str,
    difficulty: str,
    question: str,
    options: Sequence[str],
    answer: int,
    explanation: str,
) -> dict:
    return {
        "category": category,
        "difficulty": difficulty,
        "question": question,
        "options": tuple(options),
        "answer": answer,
        "explanation": explanation,
    }


_RAW_BANK: tuple[dict, ...] = (
    # Round 1
    _q(
        PROMPT, "beginner",
        "An LLM's answers are wordy and far too long. What prompt change should you try first?",
        [
            "Raise the temperature to increase variety",
            "State an explicit length limit and output format",
            "Swap out the model's training data",
        ],
        1,
        "Specifying length and format in the prompt is the most direct way to control verbosity.",
    ),
    _q(
        SECURITY, "beginner",
        "What must you do first before sending confidential customer data to a cloud LLM?",
        [
            "Anonymize personal and sensitive information",
            "Benchmark the response latency",
            "Tune the model temperature",
        ],
        0,
        "Anonymizing data before it leaves your systems reduces the risk of a confidentiality breach.",
    ),
    _q(
        WORKFLOW, "intermediate",
        "You are automating CRM summaries that get posted to Slack. What should you confirm first?",
        [
            "The permission scope of the API tokens you will use",
            "Which emoji the Slack messages use",
            "How the summaries phrase their endings",
        ],
        0,
        "Correctly scoped API tokens are a prerequisite for any integration.",
    ),
    _q(
        BUSINESS, "advanced",
        "AI cuts 200 monthly support hours by 50%, with tooling at $2,000 and training at $1,000. "
        "Which formula gives the ROI?",
        [
            "Cost / hours saved",
            "(Hours saved x hourly rate - cost) / cost",
            "Hours saved / cost",
        ],
        1,
        "ROI divides net gain by investment, so subtract costs from the value of the hours saved.",
    ),
    _q(
        RISK, "intermediate",
        "A generative AI tool produced an answer that violates compliance rules. What is the right first response?",
        [
            "Let users decide and keep it in service",
            "Shut off the affected path and start a root-cause investigation",
            "Reuse the answer in published material",
        ],
        1,
        "Stop the impact first, then investigate the cause and prevent recurrence.",
    ),
    # Round 2
    _q(
        PROMPT, "intermediate",
        "The same procedure is explained in a different tone every time. What is an effective fix?",
        [
            "Force all output into English",
            "Define the role and tone in the system message",
            "Set the temperature to its maximum",
        ],
        1,
        "Pinning the role and tone in the system message stabilizes the output style.",
    ),
    _q(
        SECURITY, "intermediate",
        "Which step is required when adopting an external LLM vendor?",
        [
            "Store the API keys on a shared drive",
            "Skip the internal approval process",
            "Confirm data protection obligations in a contract such as a DPA",
        ],
        2,
        "A data processing agreement defines the vendor's responsibilities and protection duties.",
    ),
    _q(
        WORKFLOW, "beginner",
        "What is the right baseline design for handling a failed automation run?",
        [
            "Delete the failure logs",
            "Leave it until someone happens to notice",
            "Build in retries and alert notifications",
        ],
        2,
        "Systematic retries and alerts keep a failure from silently disrupting the business.",
    ),
    _q(
        BUSINESS, "intermediate",
        "Which metric should be defined first when measuring the impact of a generative AI rollout?",
        [
            "The model version name",
            "A KPI tied to business outcomes",
            "Developer satisfaction alone",
        ],
        1,
        "Define outcome KPIs before measuring so the results can be judged against them.",
    ),
    _q(
        RISK, "beginner",
        "What is the basic way to detect hallucinations?",
        [
            "Trust whichever answer is longest",
            "Trust the model fully and skip verification",
            "Cross-check against the source data",
        ],
        2,
        "Verifying claims against external data or rules is the fundamental safeguard.",
    ),
    # Round 3
    _q(
        PROMPT, "intermediate",
        "You need an accurate explanation of a complex business process. Which instruction works best?",
        [
            "Keep the prompt as short as possible",
            "Raise the temperature for more creativity",
            "Break the process into steps and define each role",
        ],
        2,
        "Making steps and roles explicit lets the model lay out the process without gaps.",
    ),
    _q(
        SECURITY, "intermediate",
        "Several departments share one LLM application. Which control matters most?",
        [
            "Email every answer to all users",
            "Isolate access permissions per tenant",
            "Retrain the model every day",
        ],
        1,
        "Keeping access boundaries between departments prevents information leaks.",
    ),
    _q(
        WORKFLOW, "intermediate",
        "What is recommended when designing microservices that combine external APIs with an LLM?",
        [
            "Keep the interfaces loosely coupled",
            "Hand database credentials directly to the LLM",
            "Put all processing in one giant function",
        ],
        0,
        "Loose coupling produces a structure that tolerates change and failure.",
    ),
    _q(
        BUSINESS, "beginner",
        "Which perspective must a proof-of-concept evaluation always cover?",
        [
            "The balance of business value, feasibility and risk",
            "The character count of the prompts",
            "Personal taste in the model's tone",
        ],
        0,
        "Investment decisions need a combined view of value, feasibility and risk.",
    ),
    _q(
        RISK, "intermediate",
        "Which activity is essential to continuously monitoring quality?",
        [
            "Share review results verbally without recording them",
            "Make no improvements until a problem occurs",
            "Regularly collect and analyze human and automated review metrics",
        ],
        2,
        "Accumulating review metrics drives the improvement loop that sustains quality.",
    ),
    # Round 4
    _q(
        PROMPT, "advanced",
        "You want answers that follow the company's brand voice. Which approach is effective?",
        [
            "Shorten the response time limit",
            "Set the temperature to 0",
            "Attach the style guide and good examples to the prompt",
        ],
        2,
        "Providing a style guide and examples makes the brand voice easy to reproduce.",
    ),
    _q(
        SECURITY, "advanced",
        "Which logs must be retained at minimum for audit purposes?",
        [
            "Output character counts only",
            "The internal weight values used during inference",
            "Inputs, outputs, and the identity of the user who made each request",
        ],
        2,
        "Audits require a record of who entered what and what the system returned.",
    ),
    _q(
        WORKFLOW, "advanced",
        "How do you relieve the bottleneck when summarizing a large document set in a nightly batch?",
        [
            "Control concurrency and rate limits with a queue and workers",
            "Wait for a user action before starting",
            "Raise the temperature to lower inference precision",
        ],
        0,
        "Queue-based control balances throughput against API limits.",
    ),
    _q(
        BUSINESS, "intermediate",
        "Which is an appropriate metric for showing qualitative benefits of generative AI?",
        [
            "Fluctuations in GPU utilization",
            "Improvements in employee satisfaction or customer NPS",
            "Hidden parameters of the inference model",
        ],
        1,
        "Experience metrics such as satisfaction and NPS are important measures of impact.",
    ),
    _q(
        RISK, "advanced",
        "Regulations have just been updated. Which action takes priority?",
        [
            "Leave it to each user's judgment",
            "Keep operating under the old policy",
            "Identify the impact and update policies and prompts",
        ],
        2,
        "Administrators must update policies and configuration to match regulatory changes.",
    ),
    # Round 5
    _q(
        PROMPT, "advanced",
        "What should you do first to get stable, structured JSON output?",
        [
            "Switch to a smaller model",
            "Change the response language to English",
            "Spell out the expected JSON schema and required keys",
        ],
        2,
        "Specifying the expected JSON structure in the prompt keeps the output from drifting.",
    ),
    _q(
        SECURITY, "beginner",
        "How should API keys for internal LLM use be managed?",
        [
            "Hard-code them in source",
            "Keep them in a secrets manager and rotate them",
            "Share them over chat",
        ],
        1,
        "Secrets belong in a dedicated management service with regular rotation.",
    ),
    _q(
        WORKFLOW, "intermediate",
        "Which baseline metrics track the health of an automation pipeline?",
        [
            "The font color of generated text",
            "Volume processed, failure rate, and average processing time",
            "How long the development team is online",
        ],
        1,
        "Watching throughput and failure rate surfaces anomalies early.",
    ),
    _q(
        BUSINESS, "intermediate",
        "What is a realistic strategy for rolling out a generative AI assistant across the company?",
        [
            "Launch company-wide at once and sort things out later",
            "Leave cost ownership ambiguous",
            "Showcase pilot successes and expand in stages",
        ],
        2,
        "A staged rollout spreads adoption while keeping risk contained.",
    ),
    _q(
        RISK, "intermediate",
        "Which perspective should test case design include for quality assurance of an AI service?",
        [
            "The model's favorite color",
            "Users' hobbies",
            "Coverage of normal, error, and boundary conditions",
        ],
        2,
        "Covering a wide range of cases keeps quality risks in check.",
    ),
    # Round 6
    _q(
        PROMPT, "beginner",
        "How can you improve output quality when supplying long reference material?",
        [
            "Put the entire document in the system message",
            "Clearly separate the reference material from the instructions",
            "Ignore the material and send only a short instruction",
        ],
        1,
        "Separating instructions from material helps the model understand the context.",
    ),
    _q(
        SECURITY, "intermediate",
        "What does a chatbot that handles personal data require?",
        [
            "A stated purpose of use and least-privilege access",
            "Unlimited retention in favor of output quality",
            "Reusing model answers externally as-is",
        ],
        0,
        "Purpose limitation and least privilege are the basics of privacy protection.",
    ),
    _q(
        WORKFLOW, "beginner",
        "What should you confirm before integrating a generative AI workflow into production?",
        [
            "Fallbacks on error and manual handling procedures",
            "Using production data directly for testing",
            "Granting every user administrator rights",
        ],
        0,
        "Without fail-safes and a manual process, the risk of a business outage rises.",
    ),
    _q(
        BUSINESS, "beginner",
        "What is the right response when ROI falls short of the target?",
        [
            "Revisit assumptions and rework the scope or process",
            "Cancel immediately and hide the results",
            "Adjust the numbers so the target appears met",
        ],
        0,
        "Analyzing causes and improving the process uncovers additional value.",
    ),
    _q(
        RISK, "beginner",
        "Which signals should you watch when analyzing usage logs to catch risks early?",
        [
            "Users' favorite music",
            "The model's internal weights",
            "Spikes in error rate or unusual usage patterns",
        ],
        2,
        "Detecting anomalous patterns enables an early risk response.",
    ),
)

FALLBACK_QUESTIONS: tuple[Question, ...] = tuple(
    Question(id=position, **raw) for position, raw in enumerate(_RAW_BANK, start=1)
)


def validate_fallback_bank(
    questions: Sequence[Question] = FALLBACK_QUESTIONS,
    options_per_question: int = OPTIONS_PER_QUESTION,
    categories: Sequence[str] = DEFAULT_CATEGORIES,
) -> None:
    """
    Check that the bank can serve every request within the published bounds.

    Raises:
        FallbackBankError: Listing every problem found.
    """
    errors: list[str] = []

    if len(questions) < MAX_QUESTION_COUNT:
        errors.append(
            f"Bank holds {len(questions)} questions, at least {MAX_QUESTION_COUNT} required"
        )

    for i, q in enumerate(questions, start=1):
        if len(q.options) != options_per_question:
            errors.append(f"Question {i}: has {len(q.options)} options, expected {options_per_question}")
        if not q.question.strip() or not all(o.strip() for o in q.options):
            errors.append(f"Question {i}: empty question or option text")

    # The smallest valid slice must already span every category
    covered = {q.category for q in questions[:MIN_QUESTION_COUNT]}
    missing = [c for c in categories if c not in covered]
    if missing:
        errors.append(f"First {MIN_QUESTION_COUNT} questions miss categories: {missing}")

    if errors:
        raise FallbackBankError(errors)


def build_fallback_exam(question_count: int = DEFAULT_QUESTION_COUNT) -> Exam:
    """
    Build an exam from the fallback bank.

    Args:
        question_count: Requested count, clamped to the published bounds.

    Returns:
        A fresh Exam with `source="fallback"` and ids renumbered from 1.
    """
    count = clamp_question_count(question_count)
    questions = tuple(
        q.model_copy(update={"id": position})
        for position, q in enumerate(FALLBACK_QUESTIONS[:count], start=1)
    )
    return Exam(
        source=FALLBACK_SOURCE,
        generated_at=datetime.now(timezone.utc),
        questions=questions,
    )


validate_fallback_bank()
