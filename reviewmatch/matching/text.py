"""
Review body comparison.

Platforms sometimes trim or lightly edit a posted review. The opening of a
review is the part least likely to change, so it gets its own weighted term
next to the whole-text similarity.
"""

from ..config import PREFIX_WEIGHT, TEXT_PREFIX_LENGTH, WHOLE_TEXT_WEIGHT
from ..normalize import normalize_review_text
from .similarity import similarity


def text_similarity(text1: str | None, text2: str | None) -> float:
    norm1 = normalize_review_text(text1)
    norm2 = normalize_review_text(text2)

    if norm1 == norm2:
        return 1.0

    whole = similarity(norm1, norm2)
    prefix = similarity(norm1[:TEXT_PREFIX_LENGTH], norm2[:TEXT_PREFIX_LENGTH])

    return WHOLE_TEXT_WEIGHT * whole + PREFIX_WEIGHT * prefix
