from typing import Any, Dict, List

from .normalize import parse_timestamp

SUBMISSION_REQUIRED_STR_FIELDS = ["id", "account_id", "location_id", "review_text"]
SUBMISSION_OPTIONAL_STR_FIELDS = ["first_name", "last_name"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_submission(data: Dict[str, Any]) -> List[str]:
    """
    Validate a submitted-review record before it is imported.
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(data, dict):
        return ["Submission must be a JSON object"]

    errors: List[str] = []

    for f in SUBMISSION_REQUIRED_STR_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in SUBMISSION_OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    if not (_is_non_empty_str(data.get("first_name")) or _is_non_empty_str(data.get("last_name"))):
        errors.append("At least one of 'first_name' or 'last_name' is required")

    if "submitted_at" not in data:
        errors.append("Missing required field: submitted_at")
    elif parse_timestamp(data["submitted_at"]) is None:
        errors.append("Field 'submitted_at' must be an ISO-8601 timestamp")

    return errors


def validate_review_payload(data: Any) -> List[str]:
    """
    Validate one review item as returned by the external feed.

    Only what the matcher cannot absorb is checked: a review without an id
    cannot be written back, and one without a creation time cannot be
    placed in the date window. Missing names and comments are tolerated.
    """
    if not isinstance(data, dict):
        return ["Review payload must be a JSON object"]

    errors: List[str] = []

    if not _is_non_empty_str(data.get("reviewId")):
        errors.append("Field 'reviewId' must be a non-empty string")

    reviewer = data.get("reviewer")
    if reviewer is not None and not isinstance(reviewer, dict):
        errors.append("Field 'reviewer' must be an object if provided")
    elif reviewer is not None:
        display_name = reviewer.get("displayName")
        if display_name is not None and not isinstance(display_name, str):
            errors.append("Field 'reviewer.displayName' must be a string if provided")

    comment = data.get("comment")
    if comment is not None and not isinstance(comment, str):
        errors.append("Field 'comment' must be a string if provided")

    if parse_timestamp(data.get("createTime")) is None:
        errors.append("Field 'createTime' must be an RFC 3339 timestamp")

    return errors
