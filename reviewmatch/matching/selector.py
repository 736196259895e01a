"""
Best Match Selection.

Responsibilities:
- Score every candidate in a point-in-time snapshot.
- Pick the single best qualifying candidate.

Non-Responsibilities:
- No fetching of candidates.
- No verification state changes.

Invariant:
Ties on the best score go to the candidate that appears first in the input.
"""

from typing import Iterable, List, Optional, Tuple

from ..config import DATE_WINDOW_DAYS
from .models import BestMatch, ExternalReview, MatchInput, MatchResult, SubmittedReview
from .scorer import score_match


def score_candidates(
    submitted: SubmittedReview,
    candidates: Iterable[ExternalReview],
    max_days_apart: int = DATE_WINDOW_DAYS,
) -> List[Tuple[ExternalReview, MatchResult]]:
    """Return (candidate, result) pairs in input order."""
    return [
        (candidate, score_match(MatchInput.from_reviews(submitted, candidate), max_days_apart))
        for candidate in candidates
    ]


def select_best(scored: Iterable[Tuple[ExternalReview, MatchResult]]) -> Optional[BestMatch]:
    best: Optional[Tuple[ExternalReview, MatchResult]] = None
    for candidate, result in scored:
        if not result.is_match:
            continue
        # Strictly greater: an equal later score never displaces the earlier one
        if best is None or result.score > best[1].score:
            best = (candidate, result)

    if best is None:
        return None
    candidate, result = best
    return BestMatch(
        external_review_id=candidate.id,
        result=result,
        star_rating=candidate.star_rating,
    )


def find_best_match(
    submitted: SubmittedReview,
    candidates: Iterable[ExternalReview],
    max_days_apart: int = DATE_WINDOW_DAYS,
) -> Optional[BestMatch]:
    """Best qualifying candidate for a submitted review, or None.

    None is the normal "no candidate met the match bar" outcome.
    """
    return select_best(score_candidates(submitted, candidates, max_days_apart))
