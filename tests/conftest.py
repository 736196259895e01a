"""
Pytest configuration and shared fixtures.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List

import pytest

from reviewmatch.logger import get_logger, reset_logger

# Modules bind the global logger at import time; keep test runs quiet
reset_logger()
get_logger(enable_file=False, enable_console=False)

from reviewmatch.database import init_database, get_session  # noqa: E402
from reviewmatch.matching import ExternalReview, SubmittedReview  # noqa: E402

from helpers import BASE_DATE, SARAH_TEXT  # noqa: E402


@pytest.fixture
def sarah_submission() -> SubmittedReview:
    return SubmittedReview(
        reviewer_name="Sarah Johnson",
        review_text=SARAH_TEXT,
        submitted_date=BASE_DATE,
    )


@pytest.fixture
def sarah_candidates() -> List[ExternalReview]:
    return [
        ExternalReview(
            id="ext-1",
            reviewer_display_name="Sarah J.",
            comment_text=SARAH_TEXT + " Highly recommend.",
            posted_timestamp=BASE_DATE + timedelta(days=2),
            star_rating=5,
        ),
        ExternalReview(
            id="ext-2",
            reviewer_display_name="Bob Lee",
            comment_text="Great place.",
            posted_timestamp=BASE_DATE,
            star_rating=4,
        ),
    ]


@pytest.fixture
def submission_record() -> Dict[str, Any]:
    """Valid submission record as accepted by the import command."""
    return {
        "id": "sub-1",
        "account_id": "acct-1",
        "location_id": "loc-1",
        "first_name": "Sarah",
        "last_name": "Johnson",
        "review_text": SARAH_TEXT,
        "submitted_at": "2024-01-10T12:00:00Z",
    }


@pytest.fixture
def db_path(tmp_path) -> Path:
    path = tmp_path / "reviews.db"
    init_database(path)
    return path


@pytest.fixture
def db_session(db_path):
    """Create a temporary database and return a session."""
    session = get_session(db_path)
    yield session
    session.close()
