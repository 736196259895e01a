"""Matching engine for externally observed reviews.

Pure functions only: no I/O and no shared state.
"""

from .dates import in_range
from .models import (
    BestMatch,
    Confidence,
    ExternalReview,
    MatchDetails,
    MatchInput,
    MatchResult,
    SubmittedReview,
)
from .names import name_similarity
from .scorer import classify_confidence, is_near_miss, round_score, score_match
from .selector import find_best_match, score_candidates, select_best
from .similarity import similarity
from .text import text_similarity

__all__ = [
    "BestMatch",
    "Confidence",
    "ExternalReview",
    "MatchDetails",
    "MatchInput",
    "MatchResult",
    "SubmittedReview",
    "classify_confidence",
    "find_best_match",
    "in_range",
    "is_near_miss",
    "name_similarity",
    "round_score",
    "score_candidates",
    "score_match",
    "select_best",
    "similarity",
    "text_similarity",
]
