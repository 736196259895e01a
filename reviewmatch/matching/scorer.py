"""
Scoring Logic for Review Matching.

Responsibilities:
- Combine name, text and date signals into one weighted score.
- Classify the score into a confidence tier.

Non-Responsibilities:
- No candidate selection.
- No persistence.
- No decision on what to do with a near-miss.

Invariant:
Given identical inputs, this module must always return the same result.
Downstream threshold comparisons operate on the rounded score.
"""

import math

from ..config import (
    DATE_WEIGHT,
    DATE_WINDOW_DAYS,
    HIGH_CONFIDENCE_THRESHOLD,
    MEDIUM_CONFIDENCE_THRESHOLD,
    NAME_WEIGHT,
    NEAR_MISS_THRESHOLD,
    TEXT_WEIGHT,
)
from .dates import in_range
from .models import Confidence, MatchDetails, MatchInput, MatchResult
from .names import name_similarity
from .text import text_similarity


def round_score(value: float) -> float:
    """Round half-up to two decimals (0.845 -> 0.85, not banker's rounding)."""
    return math.floor(value * 100 + 0.5) / 100


def classify_confidence(score: float) -> Confidence:
    if score >= HIGH_CONFIDENCE_THRESHOLD:
        return Confidence.HIGH
    if score >= MEDIUM_CONFIDENCE_THRESHOLD:
        return Confidence.MEDIUM
    return Confidence.LOW


def is_near_miss(result: MatchResult) -> bool:
    """True for a plausible candidate that stays below the match bar.

    The result itself is an ordinary non-match (is_match False, confidence
    low); only its score places it in the band worth showing to a human.
    """
    return not result.is_match and result.score >= NEAR_MISS_THRESHOLD


def score_match(match_input: MatchInput, max_days_apart: int = DATE_WINDOW_DAYS) -> MatchResult:
    name_score = name_similarity(
        match_input.submitted_reviewer_name, match_input.external_reviewer_name
    )
    text_score = text_similarity(
        match_input.submitted_review_text, match_input.external_review_text
    )
    date_in_range = in_range(
        match_input.submitted_date, match_input.external_posted_date, max_days_apart
    )

    overall = (
        NAME_WEIGHT * name_score
        + TEXT_WEIGHT * text_score
        + DATE_WEIGHT * (1 if date_in_range else 0)
    )
    score = round_score(overall)
    confidence = classify_confidence(score)

    return MatchResult(
        is_match=confidence in (Confidence.HIGH, Confidence.MEDIUM),
        score=score,
        confidence=confidence,
        details=MatchDetails(
            name_score=round_score(name_score),
            text_score=round_score(text_score),
            date_in_range=date_in_range,
        ),
    )
