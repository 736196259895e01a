"""
Tests for the verification pipeline (feed -> engine -> persistence).
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from reviewmatch import pipeline
from reviewmatch.config import STATUS_MANUAL_REVIEW, STATUS_PENDING, STATUS_VERIFIED
from reviewmatch.feed import FeedError
from reviewmatch.matching import ExternalReview
from reviewmatch.pipeline import run_verification, verify_location
from reviewmatch.storage import add_submission, get_submission

from helpers import BASE_DATE, SARAH_TEXT

NOW = datetime(2024, 1, 12, 9, 0)


def external(review_id, name, text=SARAH_TEXT, days=2, stars=5):
    return ExternalReview(
        id=review_id,
        reviewer_display_name=name,
        comment_text=text,
        posted_timestamp=BASE_DATE + timedelta(days=days),
        star_rating=stars,
    )


class StubFeedClient:
    """Returns canned snapshots per location; a FeedError instance fails it."""

    def __init__(self, snapshots):
        self.snapshots = snapshots
        self.calls = []

    def list_reviews(self, account_id, location_id):
        self.calls.append((account_id, location_id))
        snapshot = self.snapshots[(account_id, location_id)]
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot


@pytest.fixture
def seeded(db_session, submission_record):
    """Two pending submissions at acct-1/loc-1 and one at loc-2."""
    add_submission(db_session, submission_record)
    add_submission(db_session, {
        **submission_record,
        "id": "sub-other",
        "first_name": "Priya",
        "last_name": "Patel",
        "review_text": "Quick turnaround on our kitchen remodel, tidy crew.",
    })
    add_submission(db_session, {**submission_record, "id": "sub-loc2", "location_id": "loc-2"})
    db_session.commit()
    return db_session


class TestVerifyLocation:
    def test_routes_each_outcome(self, seeded, submission_record):
        add_submission(seeded, {**submission_record, "id": "sub-jon", "first_name": "Jon", "last_name": None})
        seeded.commit()
        candidates = [
            external("ext-sarah", "Sarah J.", SARAH_TEXT + " Highly recommend."),
            external("ext-jane", "Jane", days=30),
            external("ext-bob", "Bob Lee", "Great place.", days=0),
        ]

        outcome = verify_location(seeded, "acct-1", "loc-1", candidates, now=NOW)

        assert outcome.checked == 3
        assert outcome.verified == 1
        assert outcome.near_misses == 1
        assert outcome.unmatched == 1
        assert outcome.conflicts == 0

        seeded.expire_all()
        sarah = get_submission(seeded, "sub-1")
        assert sarah.verification_status == STATUS_VERIFIED
        assert sarah.external_review_id == "ext-sarah"
        assert sarah.match_confidence == "high"
        assert sarah.star_rating == 5

        # 0.3 * 1/8 + 0.5 * 0.86 + 0.2: close, but below the match bar
        jon = get_submission(seeded, "sub-jon")
        assert jon.verification_status == STATUS_MANUAL_REVIEW
        assert jon.match_score == 0.67
        assert jon.external_review_id == "ext-sarah"

        other = get_submission(seeded, "sub-other")
        assert other.verification_status == STATUS_PENDING
        assert other.verification_attempts == 1

        # Other locations untouched
        assert get_submission(seeded, "sub-loc2").verification_status == STATUS_PENDING

    def test_empty_snapshot_does_not_count_attempts(self, seeded):
        outcome = verify_location(seeded, "acct-1", "loc-1", [], now=NOW)

        assert outcome.checked == 0
        seeded.expire_all()
        assert get_submission(seeded, "sub-1").verification_attempts == 0

    def test_rerun_is_idempotent(self, seeded):
        candidates = [external("ext-sarah", "Sarah Johnson")]

        first = verify_location(seeded, "acct-1", "loc-1", candidates, now=NOW)
        second = verify_location(seeded, "acct-1", "loc-1", candidates, now=NOW)

        assert first.verified == 1
        assert second.verified == 0
        seeded.expire_all()
        assert get_submission(seeded, "sub-1").verification_attempts == 1

    def test_skips_submission_without_name(self, db_session, submission_record):
        add_submission(db_session, {**submission_record, "first_name": " ", "last_name": None})
        db_session.commit()

        outcome = verify_location(db_session, "acct-1", "loc-1", [external("ext-1", "Sarah J.")], now=NOW)

        assert outcome.skipped == 1
        assert outcome.checked == 0

    def test_write_conflict_counted(self, seeded, monkeypatch):
        """A row that left pending between read and write is not overwritten."""
        messages = []
        monkeypatch.setattr(pipeline, "mark_verified", lambda *args, **kwargs: False)
        monkeypatch.setattr(pipeline.logger, "info", lambda message, **kwargs: messages.append(message))

        outcome = verify_location(seeded, "acct-1", "loc-1", [external("ext-sarah", "Sarah Johnson")], now=NOW)

        assert outcome.verified == 0
        assert outcome.conflicts == 1
        assert outcome.unmatched == 1
        assert "Submission matched" not in messages

    def test_match_logged_when_written(self, seeded, monkeypatch):
        messages = []
        monkeypatch.setattr(pipeline.logger, "info", lambda message, **kwargs: messages.append(message))

        verify_location(seeded, "acct-1", "loc-1", [external("ext-sarah", "Sarah Johnson")], now=NOW)

        assert messages.count("Submission matched") == 1

    def test_unscorable_candidate_leaves_submissions_pending(self, seeded):
        bad = external("ext-bad", 123)

        outcome = verify_location(seeded, "acct-1", "loc-1", [bad], now=NOW)

        assert outcome.errors == 2
        assert outcome.verified == 0
        seeded.expire_all()
        saved = get_submission(seeded, "sub-1")
        assert saved.verification_status == STATUS_PENDING
        assert saved.verification_attempts == 0

    def test_database_error_leaves_submission_pending(self, seeded, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("UPDATE", {}, Exception("database is locked"))

        monkeypatch.setattr(pipeline, "mark_verified", broken)

        outcome = verify_location(seeded, "acct-1", "loc-1", [external("ext-sarah", "Sarah Johnson")], now=NOW)

        assert outcome.errors == 1
        seeded.expire_all()
        assert get_submission(seeded, "sub-1").verification_status == STATUS_PENDING


class TestRunVerification:
    def test_processes_all_pending_locations(self, seeded):
        client = StubFeedClient({
            ("acct-1", "loc-1"): [external("ext-sarah", "Sarah J.")],
            ("acct-1", "loc-2"): [external("ext-sarah-2", "Sarah Johnson")],
        })

        summary = run_verification(seeded, client)

        assert client.calls == [("acct-1", "loc-1"), ("acct-1", "loc-2")]
        assert summary.failed_locations == []
        assert summary.verified == 2

    def test_feed_failure_skips_location(self, seeded):
        client = StubFeedClient({
            ("acct-1", "loc-1"): FeedError("Review feed unavailable"),
            ("acct-1", "loc-2"): [external("ext-sarah-2", "Sarah Johnson")],
        })

        summary = run_verification(seeded, client)

        assert summary.failed_locations == [("acct-1", "loc-1")]
        assert [o.location_id for o in summary.locations] == ["loc-2"]
        seeded.expire_all()
        assert get_submission(seeded, "sub-1").verification_status == STATUS_PENDING
        assert get_submission(seeded, "sub-1").verification_attempts == 0
        assert get_submission(seeded, "sub-loc2").verification_status == STATUS_VERIFIED

    def test_unscorable_location_does_not_stop_run(self, seeded):
        client = StubFeedClient({
            ("acct-1", "loc-1"): [external("ext-bad", 123)],
            ("acct-1", "loc-2"): [external("ext-sarah-2", "Sarah Johnson")],
        })

        summary = run_verification(seeded, client)

        assert [o.location_id for o in summary.locations] == ["loc-1", "loc-2"]
        assert summary.locations[0].errors == 2
        assert summary.verified == 1

    def test_explicit_locations(self, seeded):
        client = StubFeedClient({("acct-1", "loc-2"): []})

        summary = run_verification(seeded, client, locations=[("acct-1", "loc-2")])

        assert client.calls == [("acct-1", "loc-2")]
        assert summary.verified == 0

    def test_nothing_pending(self, db_session):
        client = StubFeedClient({})
        summary = run_verification(db_session, client)
        assert summary.locations == []
        assert client.calls == []
