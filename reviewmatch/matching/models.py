"""
Value types for review matching.

Responsibilities:
- Describe the inputs (submitted and external reviews) and outputs
  (per-candidate results, best match) of the matching engine.

Non-Responsibilities:
- No scoring.
- No persistence.

Invariant:
Every type here is immutable; the engine never mutates its inputs.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class SubmittedReview:
    """A review a customer submitted through our own collection flow."""

    reviewer_name: str
    review_text: str
    submitted_date: Optional[datetime]


@dataclass(frozen=True)
class ExternalReview:
    """A review observed on the third-party listing feed."""

    id: str
    reviewer_display_name: str
    comment_text: str
    posted_timestamp: Optional[datetime]
    star_rating: int = 0


@dataclass(frozen=True)
class MatchInput:
    submitted_reviewer_name: str
    submitted_review_text: str
    submitted_date: Optional[datetime]
    external_reviewer_name: str
    external_review_text: str
    external_posted_date: Optional[datetime]

    @classmethod
    def from_reviews(cls, submitted: SubmittedReview, external: ExternalReview) -> "MatchInput":
        return cls(
            submitted_reviewer_name=submitted.reviewer_name,
            submitted_review_text=submitted.review_text,
            submitted_date=submitted.submitted_date,
            external_reviewer_name=external.reviewer_display_name,
            external_review_text=external.comment_text,
            external_posted_date=external.posted_timestamp,
        )


@dataclass(frozen=True)
class MatchDetails:
    name_score: float
    text_score: float
    date_in_range: bool


@dataclass(frozen=True)
class MatchResult:
    is_match: bool
    score: float
    confidence: Confidence
    details: MatchDetails

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_match": self.is_match,
            "score": self.score,
            "confidence": self.confidence.value,
            "details": {
                "name_score": self.details.name_score,
                "text_score": self.details.text_score,
                "date_in_range": self.details.date_in_range,
            },
        }


@dataclass(frozen=True)
class BestMatch:
    """The winning candidate for a submitted review."""

    external_review_id: str
    result: MatchResult
    star_rating: int = 0

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def confidence(self) -> Confidence:
        return self.result.confidence

    @property
    def is_match(self) -> bool:
        return self.result.is_match

    def to_dict(self) -> Dict[str, Any]:
        return {
            "external_review_id": self.external_review_id,
            "star_rating": self.star_rating,
            **self.result.to_dict(),
        }
