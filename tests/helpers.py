"""
Shared test data and HTTP fakes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

import requests

BASE_DATE = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

SARAH_TEXT = "Exceptional service! The team went above and beyond our expectations."


class FakeResponse:
    """Stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Replays queued responses (or raises queued exceptions) for each GET."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": headers, "timeout": timeout})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def feed_item(
    review_id: str,
    name: Any,
    comment: str,
    posted: datetime,
    star_rating: Any = "FIVE",
) -> Dict[str, Any]:
    return {
        "reviewId": review_id,
        "reviewer": {"displayName": name},
        "comment": comment,
        "createTime": posted.isoformat().replace("+00:00", "Z"),
        "starRating": star_rating,
    }
