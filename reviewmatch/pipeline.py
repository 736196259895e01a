"""
Verification Pipeline.

Responsibilities:
- Fetch a candidate snapshot per location from the review feed.
- Run the matching engine for every pending submission of that location.
- Persist each outcome with a conditional write.

Non-Responsibilities:
- No scoring logic (see reviewmatch.matching).
- No scheduling; one call is one run.

Invariant:
Each submission's outcome is committed on its own. A failure leaves that
submission pending for the next run and never half-written.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import MAX_VERIFICATION_ATTEMPTS
from .feed import FeedError, ReviewFeedClient
from .logger import get_logger
from .matching import ExternalReview, is_near_miss, score_candidates, select_best
from .storage import (
    flag_for_manual_review,
    load_pending_submissions,
    mark_verified,
    pending_locations,
    record_failed_attempt,
    utcnow,
)

logger = get_logger()


@dataclass
class LocationOutcome:
    account_id: str
    location_id: str
    checked: int = 0
    verified: int = 0
    near_misses: int = 0
    unmatched: int = 0
    skipped: int = 0
    conflicts: int = 0
    errors: int = 0


@dataclass
class RunSummary:
    locations: List[LocationOutcome] = field(default_factory=list)
    failed_locations: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def verified(self) -> int:
        return sum(o.verified for o in self.locations)

    @property
    def near_misses(self) -> int:
        return sum(o.near_misses for o in self.locations)


def verify_location(
    session: Session,
    account_id: str,
    location_id: str,
    candidates: Sequence[ExternalReview],
    max_attempts: int = MAX_VERIFICATION_ATTEMPTS,
    now: Optional[datetime] = None,
) -> LocationOutcome:
    """Match every pending submission of a location against one snapshot."""
    outcome = LocationOutcome(account_id=account_id, location_id=location_id)
    if not candidates:
        # Nothing to match against; don't burn attempts
        return outcome

    now = now or utcnow()
    for submission in load_pending_submissions(session, account_id, location_id, max_attempts):
        submitted = submission.to_submitted_review()
        if not submitted.reviewer_name or not submitted.review_text.strip():
            outcome.skipped += 1
            logger.record_outcome("skipped")
            continue

        outcome.checked += 1
        try:
            scored = score_candidates(submitted, candidates)
            best = select_best(scored)
            if best is not None:
                status = "verified" if mark_verified(session, submission.id, best, now) else "conflict"
            else:
                top_candidate, top_result = max(scored, key=lambda pair: pair[1].score)
                if is_near_miss(top_result):
                    written = flag_for_manual_review(
                        session, submission.id, top_result.score, top_candidate.id, now
                    )
                    status = "near_miss" if written else "conflict"
                else:
                    written = record_failed_attempt(session, submission.id, top_result.score, now)
                    status = "unmatched" if written else "conflict"
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            outcome.errors += 1
            logger.record_error(type(e).__name__)
            logger.error(
                "Failed to persist verification outcome",
                submission_id=submission.id,
                error=str(e),
            )
            continue
        except Exception as e:
            # Unscorable input; leave the submission pending
            session.rollback()
            outcome.errors += 1
            logger.record_error(type(e).__name__)
            logger.error(
                "Failed to score submission",
                submission_id=submission.id,
                error=str(e),
            )
            continue

        if status == "verified":
            outcome.verified += 1
            logger.info(
                "Submission matched",
                submission_id=submission.id,
                external_review_id=best.external_review_id,
                score=best.score,
                confidence=best.confidence.value,
            )
        elif status == "near_miss":
            outcome.near_misses += 1
        elif status == "unmatched":
            outcome.unmatched += 1
        else:
            outcome.conflicts += 1
            logger.warning("Submission left pending state before write", submission_id=submission.id)
        logger.record_outcome(status)

    return outcome


def run_verification(
    session: Session,
    client: ReviewFeedClient,
    locations: Optional[Iterable[Tuple[str, str]]] = None,
    max_attempts: int = MAX_VERIFICATION_ATTEMPTS,
) -> RunSummary:
    """One scheduled run: fetch, match and persist for each location.

    A location whose feed fails after retries is skipped for this run.
    """
    summary = RunSummary()
    if locations is None:
        locations = pending_locations(session, max_attempts)

    for account_id, location_id in locations:
        logger.record_location_attempt()
        try:
            candidates = client.list_reviews(account_id, location_id)
        except FeedError as e:
            logger.record_location_failure(type(e).__name__)
            logger.error(
                "Skipping location for this run",
                account_id=account_id,
                location_id=location_id,
                error=str(e),
            )
            summary.failed_locations.append((account_id, location_id))
            continue

        outcome = verify_location(session, account_id, location_id, candidates, max_attempts)
        logger.record_location_success()
        logger.info(
            "Location verified",
            account_id=account_id,
            location_id=location_id,
            candidates=len(candidates),
            checked=outcome.checked,
            verified=outcome.verified,
            near_misses=outcome.near_misses,
        )
        summary.locations.append(outcome)

    return summary
