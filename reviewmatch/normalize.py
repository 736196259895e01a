import re
from datetime import datetime, timezone
from typing import Any

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

STAR_RATINGS = {"ONE": 1, "TWO": 2, "THREE": 3, "FOUR": 4, "FIVE": 5}

DEFAULT_REVIEWER_NAME = "Google User"


def normalize_name(name: str | None) -> str:
    return (name or "").strip().lower()


def normalize_review_text(text: str | None) -> str:
    # Punctuation is dropped outright, so "great!" and "great" compare equal
    s = _NON_WORD.sub("", (text or "").lower())
    return _WHITESPACE.sub(" ", s).strip()


def full_reviewer_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()


def map_star_rating(raw: Any) -> int:
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        return STAR_RATINGS.get(raw.strip().upper(), 0)
    return 0


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 / RFC 3339 timestamp into an aware UTC datetime.

    Returns None for anything unparsable. Naive inputs are taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    """SQLite DateTime columns store naive values; keep them in UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
