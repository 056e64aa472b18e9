"""
Skill Exam - LLM-generated multiple-choice exams with deterministic grading.

This package builds short skill-assessment exams by asking an LLM provider
for questions, normalizing whatever comes back into a strict schema, and
falling back to a curated question bank whenever that fails. Submitted
answers are graded into a score, a letter band, and per-category and
per-difficulty breakdowns.
"""

__version__ = "1.0.0"
__author__ = "Skill Exam Team"
