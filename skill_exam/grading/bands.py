"""
Score bands and band selection.

Bands are matched against the raw score (number of correct answers), highest
threshold first. The table must have a zero floor so that every score lands
in some band.
"""

from collections.abc import Sequence

from skill_exam.models import ScoreBand

SCORE_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(
        label="S",
        min_score=9,
        description="Expert: leads generative AI strategy and drives complex initiatives independently.",
    ),
    ScoreBand(
        label="A",
        min_score=8,
        description="Practice lead: runs the key processes to a high standard.",
    ),
    ScoreBand(
        label="B",
        min_score=6,
        description="Practitioner: has the core skills to handle standard processes.",
    ),
    ScoreBand(
        label="C",
        min_score=5,
        description="Entry level: can contribute with support but needs further training.",
    ),
    ScoreBand(
        label="D",
        min_score=0,
        description="Needs development: the fundamentals must be strengthened.",
    ),
)


class BandTableError(Exception):
    """Raised when a band table cannot classify every score."""


def validate_bands(bands: Sequence[ScoreBand]) -> None:
    """
    Check a band table for completeness.

    Raises:
        BandTableError: If the table is empty, lacks a zero floor, or repeats a label.
    """
    if not bands:
        raise BandTableError("Band table is empty")
    if min(b.min_score for b in bands) != 0:
        raise BandTableError("Lowest band must start at 0")
    labels = [b.label for b in bands]
    if len(labels) != len(set(labels)):
        raise BandTableError(f"Duplicate band labels: {labels}")


def select_band(score: int, bands: Sequence[ScoreBand] = SCORE_BANDS) -> ScoreBand | None:
    """
    Select the band for a score.

    Returns:
        The band with the highest threshold not above `score`, or None.
    """
    for band in sorted(bands, key=lambda b: b.min_score, reverse=True):
        if band.min_score <= score:
            return band
    return None


validate_bands(SCORE_BANDS)
