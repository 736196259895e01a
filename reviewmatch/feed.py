"""Client for the external business-listing review feed."""

from typing import Any, Dict, List, Optional

import requests

from .logger import get_logger
from .matching.models import ExternalReview
from .normalize import DEFAULT_REVIEWER_NAME, map_star_rating, parse_timestamp
from .retry import RetryError, exponential_backoff, is_transient_error
from .schema import validate_review_payload

logger = get_logger()


class FeedError(Exception):
    """The feed could not deliver a complete review snapshot."""


class TransientFeedError(FeedError):
    """A failure worth retrying (timeout, connection drop, 429/5xx)."""


def parse_review(item: Dict[str, Any]) -> ExternalReview:
    """Convert one feed item into an ExternalReview.

    Callers validate first; see schema.validate_review_payload.
    """
    reviewer = item.get("reviewer") or {}
    return ExternalReview(
        id=item["reviewId"],
        reviewer_display_name=reviewer.get("displayName") or DEFAULT_REVIEWER_NAME,
        comment_text=item.get("comment") or "",
        posted_timestamp=parse_timestamp(item.get("createTime")),
        star_rating=map_star_rating(item.get("starRating")),
    )


class ReviewFeedClient:
    """Fetches point-in-time review snapshots for a business location."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 15,
        page_size: int = 50,
        max_retries: int = 3,
        base_delay: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.page_size = page_size
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.session = session or requests.Session()

    def reviews_url(self, account_id: str, location_id: str) -> str:
        return f"{self.base_url}/v4/accounts/{account_id}/locations/{location_id}/reviews"

    def _get_page(self, url: str, page_token: Optional[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {"pageSize": self.page_size}
        if page_token:
            params["pageToken"] = page_token

        logger.record_feed_call()
        try:
            resp = self.session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            if is_transient_error(e):
                logger.warning("Review feed request failed, will retry", url=url, error=str(e))
                raise TransientFeedError(str(e)) from e
            status = e.response.status_code if e.response is not None else type(e).__name__
            logger.error("Review feed request failed", url=url, status=status)
            raise FeedError(f"Review feed request failed ({status}): {url}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise FeedError(f"Review feed returned invalid JSON: {url}") from e

        if not isinstance(payload, dict):
            raise FeedError(f"Review feed returned a non-object payload: {url}")
        reviews = payload.get("reviews")
        if reviews is not None and not isinstance(reviews, list):
            raise FeedError(f"Review feed returned a non-list 'reviews' field: {url}")
        return payload

    def _fetch_page(self, url: str, page_token: Optional[str]) -> Dict[str, Any]:
        fetch = exponential_backoff(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            exceptions=(TransientFeedError,),
        )(self._get_page)
        try:
            return fetch(url, page_token)
        except RetryError as e:
            raise FeedError(f"Review feed unavailable: {e}") from e

    def list_reviews(self, account_id: str, location_id: str) -> List[ExternalReview]:
        """Return every review for a location, following pagination.

        Malformed items are logged and left out of the snapshot; a failed
        page fails the whole call so no partial snapshot is ever returned.
        """
        url = self.reviews_url(account_id, location_id)
        reviews: List[ExternalReview] = []
        page_token: Optional[str] = None

        while True:
            payload = self._fetch_page(url, page_token)
            for item in payload.get("reviews") or []:
                errors = validate_review_payload(item)
                if errors:
                    logger.warning(
                        "Skipping malformed review payload",
                        location_id=location_id,
                        errors=errors,
                    )
                    logger.record_error("MalformedReview")
                    continue
                reviews.append(parse_review(item))

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.debug(
            "Fetched review snapshot",
            account_id=account_id,
            location_id=location_id,
            count=len(reviews),
        )
        return reviews
