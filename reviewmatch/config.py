"""Configuration for review verification.

Matching thresholds and weights are product behaviour: changing any of them
changes which reviews get verified automatically.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Token-level name comparison
TOKEN_MATCH_THRESHOLD = 0.8
BOTH_NAMES_MATCH_SCORE = 0.95
FIRST_NAME_ONLY_SCORE = 0.7

# Text comparison
TEXT_PREFIX_LENGTH = 50
WHOLE_TEXT_WEIGHT = 0.7
PREFIX_WEIGHT = 0.3

# Date window (days between submission and external post)
DATE_WINDOW_DAYS = 7

# Signal weights for the overall score
NAME_WEIGHT = 0.3
TEXT_WEIGHT = 0.5
DATE_WEIGHT = 0.2

# Confidence bands (inclusive lower bounds)
HIGH_CONFIDENCE_THRESHOLD = 0.85
MEDIUM_CONFIDENCE_THRESHOLD = 0.70
# Range 0.60-0.70 = plausible candidate, not a match, worth a human look
NEAR_MISS_THRESHOLD = 0.60

# Verification status values
STATUS_PENDING = "pending"
STATUS_VERIFIED = "verified"
STATUS_MANUAL_REVIEW = "manual_review"
STATUS_REJECTED = "rejected"

# Submissions stop being retried after this many unmatched runs
MAX_VERIFICATION_ATTEMPTS = 5

DEFAULT_DB_PATH = "data/reviews.db"
DEFAULT_FEED_BASE_URL = "https://mybusiness.googleapis.com"


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    db_path: Path
    feed_base_url: str
    feed_token: str | None
    max_attempts: int
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=Path(os.getenv("REVIEWMATCH_DB", DEFAULT_DB_PATH)),
            feed_base_url=os.getenv("REVIEW_FEED_BASE_URL", DEFAULT_FEED_BASE_URL).rstrip("/"),
            feed_token=os.getenv("REVIEW_FEED_TOKEN") or None,
            max_attempts=int(os.getenv("REVIEWMATCH_MAX_ATTEMPTS", MAX_VERIFICATION_ATTEMPTS)),
            log_level=os.getenv("REVIEWMATCH_LOG_LEVEL", "INFO"),
        )
