"""
Reviewer name comparison.

Responsibilities:
- Score two display names, tolerating the abbreviations review platforms
  apply ("John S.", "J. Smith").

Non-Responsibilities:
- No weighting against the other signals.

Invariant:
Returns one of the fixed bands (1.0, 0.95, 0.7) or a plain string
similarity; never anything outside [0, 1].
"""

from ..config import BOTH_NAMES_MATCH_SCORE, FIRST_NAME_ONLY_SCORE, TOKEN_MATCH_THRESHOLD
from ..normalize import normalize_name
from .similarity import similarity


def _last_names_match(last1: str, last2: str) -> bool:
    if similarity(last1, last2) > TOKEN_MATCH_THRESHOLD:
        return True
    # Truncated surname ("Johns" vs "Johnson")
    if last1.startswith(last2) or last2.startswith(last1):
        return True
    # Initial ("Smith" vs "S.")
    return last1[0] == last2[0]


def name_similarity(name1: str | None, name2: str | None) -> float:
    n1 = normalize_name(name1)
    n2 = normalize_name(name2)

    if n1 == n2:
        return 1.0

    tokens1 = n1.split()
    tokens2 = n2.split()

    first_name_match = bool(
        tokens1 and tokens2 and similarity(tokens1[0], tokens2[0]) > TOKEN_MATCH_THRESHOLD
    )

    last_name_match = False
    if len(tokens1) > 1 and len(tokens2) > 1:
        last_name_match = _last_names_match(tokens1[-1], tokens2[-1])

    if first_name_match and last_name_match:
        return BOTH_NAMES_MATCH_SCORE
    if first_name_match:
        return FIRST_NAME_ONLY_SCORE
    return similarity(n1, n2)
