"""
Submission Repository.

Responsibilities:
- Read pending work and write verification outcomes.
- Guard every state transition with a conditional update.

Non-Responsibilities:
- No scoring.
- No feed access.

Invariant:
An automated write only ever moves a submission out of 'pending'. A status
set by a human reviewer or by a concurrent run is never overwritten.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import (
    MAX_VERIFICATION_ATTEMPTS,
    STATUS_MANUAL_REVIEW,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUS_VERIFIED,
)
from .database import ReviewSubmission
from .matching.models import BestMatch
from .normalize import parse_timestamp, to_naive_utc


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_submission(session: Session, record: Dict[str, Any]) -> ReviewSubmission:
    """Stage a validated submission record (see schema.validate_submission)."""
    submitted_at = parse_timestamp(record["submitted_at"])
    submission = ReviewSubmission(
        id=record["id"],
        account_id=record["account_id"],
        location_id=record["location_id"],
        first_name=record.get("first_name"),
        last_name=record.get("last_name"),
        review_text=record["review_text"],
        submitted_at=to_naive_utc(submitted_at),
        verification_status=STATUS_PENDING,
        verification_attempts=0,
    )
    session.add(submission)
    return submission


def get_submission(session: Session, submission_id: str) -> Optional[ReviewSubmission]:
    return session.get(ReviewSubmission, submission_id)


def _pending_query(session: Session, max_attempts: int):
    return (
        session.query(ReviewSubmission)
        .filter(ReviewSubmission.verification_status == STATUS_PENDING)
        .filter(ReviewSubmission.verification_attempts < max_attempts)
        .filter(func.trim(ReviewSubmission.review_text) != "")
    )


def load_pending_submissions(
    session: Session,
    account_id: str,
    location_id: str,
    max_attempts: int = MAX_VERIFICATION_ATTEMPTS,
) -> List[ReviewSubmission]:
    return (
        _pending_query(session, max_attempts)
        .filter(ReviewSubmission.account_id == account_id)
        .filter(ReviewSubmission.location_id == location_id)
        .order_by(ReviewSubmission.submitted_at, ReviewSubmission.id)
        .all()
    )


def pending_locations(
    session: Session, max_attempts: int = MAX_VERIFICATION_ATTEMPTS
) -> List[Tuple[str, str]]:
    """Distinct (account_id, location_id) pairs that still have pending work."""
    rows = (
        _pending_query(session, max_attempts)
        .with_entities(ReviewSubmission.account_id, ReviewSubmission.location_id)
        .distinct()
        .order_by(ReviewSubmission.account_id, ReviewSubmission.location_id)
        .all()
    )
    return [(account_id, location_id) for account_id, location_id in rows]


def _transition(session: Session, submission_id: str, from_status: str, values: Dict[str, Any]) -> bool:
    changed = (
        session.query(ReviewSubmission)
        .filter(ReviewSubmission.id == submission_id)
        .filter(ReviewSubmission.verification_status == from_status)
        .update(values, synchronize_session=False)
    )
    return changed == 1


def mark_verified(
    session: Session, submission_id: str, best_match: BestMatch, now: Optional[datetime] = None
) -> bool:
    """Move a pending submission to verified. Returns False if it was no longer pending."""
    now = now or utcnow()
    return _transition(
        session,
        submission_id,
        STATUS_PENDING,
        {
            ReviewSubmission.verification_status: STATUS_VERIFIED,
            ReviewSubmission.external_review_id: best_match.external_review_id,
            ReviewSubmission.match_score: best_match.score,
            ReviewSubmission.match_confidence: best_match.confidence.value,
            ReviewSubmission.star_rating: best_match.star_rating,
            ReviewSubmission.verified_at: now,
            ReviewSubmission.last_verification_attempt_at: now,
            ReviewSubmission.verification_attempts: ReviewSubmission.verification_attempts + 1,
            ReviewSubmission.updated_at: now,
        },
    )


def record_failed_attempt(
    session: Session, submission_id: str, best_score: Optional[float], now: Optional[datetime] = None
) -> bool:
    now = now or utcnow()
    return _transition(
        session,
        submission_id,
        STATUS_PENDING,
        {
            ReviewSubmission.verification_attempts: ReviewSubmission.verification_attempts + 1,
            ReviewSubmission.match_score: best_score,
            ReviewSubmission.last_verification_attempt_at: now,
            ReviewSubmission.updated_at: now,
        },
    )


def flag_for_manual_review(
    session: Session,
    submission_id: str,
    best_score: float,
    external_review_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Queue a near-miss for a human, keeping the candidate it nearly matched."""
    now = now or utcnow()
    return _transition(
        session,
        submission_id,
        STATUS_PENDING,
        {
            ReviewSubmission.verification_status: STATUS_MANUAL_REVIEW,
            ReviewSubmission.verification_attempts: ReviewSubmission.verification_attempts + 1,
            ReviewSubmission.match_score: best_score,
            ReviewSubmission.external_review_id: external_review_id,
            ReviewSubmission.last_verification_attempt_at: now,
            ReviewSubmission.updated_at: now,
        },
    )


def resolve_manual_review(
    session: Session,
    submission_id: str,
    verified: bool,
    external_review_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Record a human decision on a queued submission."""
    now = now or utcnow()
    values: Dict[str, Any] = {ReviewSubmission.updated_at: now}
    if verified:
        values[ReviewSubmission.verification_status] = STATUS_VERIFIED
        values[ReviewSubmission.verified_at] = now
        if external_review_id:
            values[ReviewSubmission.external_review_id] = external_review_id
    else:
        values[ReviewSubmission.verification_status] = STATUS_REJECTED
    return _transition(session, submission_id, STATUS_MANUAL_REVIEW, values)


def list_manual_review(session: Session) -> List[ReviewSubmission]:
    return (
        session.query(ReviewSubmission)
        .filter(ReviewSubmission.verification_status == STATUS_MANUAL_REVIEW)
        .order_by(ReviewSubmission.submitted_at, ReviewSubmission.id)
        .all()
    )
