"""
Normalized edit-distance similarity.

Responsibilities:
- Map two strings to a similarity in [0, 1] from their Levenshtein distance.

Non-Responsibilities:
- No tokenisation.
- No punctuation handling (callers normalise first).

Invariant:
similarity(a, a) == 1 and the result never leaves [0, 1].
"""

from rapidfuzz.distance import Levenshtein


def similarity(a: str | None, b: str | None) -> float:
    """Return (L - d) / L for the trimmed, lowercased strings.

    d is the Levenshtein distance and L the length of the longer string.
    Two empty strings are identical; one empty string matches nothing.
    """
    s1 = (a or "").strip().lower()
    s2 = (b or "").strip().lower()

    if not s1 and not s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    longest = max(len(s1), len(s2))
    distance = Levenshtein.distance(s1, s2)
    return (longest - distance) / longest
