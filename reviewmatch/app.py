import argparse
import json
from pathlib import Path
from typing import Any, List

from sqlalchemy.exc import IntegrityError

from . import __version__
from .config import Settings
from .database import init_database, get_session
from .env import load_env
from .feed import ReviewFeedClient, parse_review
from .logger import get_logger
from .matching import SubmittedReview, score_candidates, select_best
from .normalize import parse_timestamp
from .pipeline import run_verification
from .schema import validate_review_payload, validate_submission
from .storage import add_submission, get_submission, list_manual_review, resolve_manual_review


def _load_json(path_str: str) -> Any:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _print_errors(label: str, errors: List[str]) -> None:
    print(f"Invalid {label}:")
    for e in errors:
        print(f" - {e}")


def cmd_match(args: argparse.Namespace) -> None:
    data = _load_json(args.submitted)
    if not isinstance(data, dict):
        raise SystemExit("Submitted review must be a JSON object")
    submitted = SubmittedReview(
        reviewer_name=data.get("reviewer_name") or "",
        review_text=data.get("review_text") or "",
        submitted_date=parse_timestamp(data.get("submitted_date")),
    )

    payload = _load_json(args.candidates)
    items = payload.get("reviews", []) if isinstance(payload, dict) else payload
    candidates = []
    for item in items:
        errors = validate_review_payload(item)
        if errors:
            _print_errors("candidate", errors)
            raise SystemExit(2)
        candidates.append(parse_review(item))

    scored = score_candidates(submitted, candidates, args.max_days)
    best = select_best(scored)

    output: dict = {"best_match": best.to_dict() if best else None}
    if args.all:
        output["candidates"] = [
            {"external_review_id": candidate.id, **result.to_dict()}
            for candidate, result in scored
        ]
    print(json.dumps(output, indent=2))


def cmd_import(args: argparse.Namespace) -> None:
    records = _load_json(args.input)
    if isinstance(records, dict):
        records = [records]

    db_path = Path(args.db)
    init_database(db_path)
    session = get_session(db_path)
    imported = invalid = duplicate = 0
    try:
        for record in records:
            errors = validate_submission(record)
            if errors:
                _print_errors(f"submission {record.get('id') if isinstance(record, dict) else record!r}", errors)
                invalid += 1
                continue
            if get_submission(session, record["id"]) is not None:
                print(f"[duplicate] {record['id']}")
                duplicate += 1
                continue
            add_submission(session, record)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                print(f"[duplicate] {record['id']}")
                duplicate += 1
                continue
            imported += 1
    finally:
        session.close()
    print(f"Done. imported={imported} duplicate={duplicate} invalid={invalid}")
    if invalid:
        raise SystemExit(2)


def cmd_verify(args: argparse.Namespace) -> None:
    settings = Settings.from_env()
    token = args.token or settings.feed_token
    if not token:
        raise SystemExit("REVIEW_FEED_TOKEN not set. Set env var or pass --token.")
    db_path = Path(args.db) if args.db else settings.db_path
    max_attempts = args.max_attempts or settings.max_attempts

    logger = get_logger()
    logger.set_level(settings.log_level)
    client = ReviewFeedClient(args.base_url or settings.feed_base_url, token)

    init_database(db_path)
    session = get_session(db_path)
    try:
        summary = run_verification(session, client, max_attempts=max_attempts)
    finally:
        session.close()

    logger.log_metrics_summary()
    print(
        f"Done. locations={len(summary.locations)} failed={len(summary.failed_locations)} "
        f"verified={summary.verified} near_misses={summary.near_misses}"
    )


def cmd_queue(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        return
    session = get_session(db_path)
    try:
        queued = list_manual_review(session)
        if not queued:
            print("Manual review queue is empty.")
            return
        print(f"Found {len(queued)} submissions awaiting review:\n")
        for s in queued:
            print(f"ID: {s.id}")
            print(f"  Reviewer: {s.reviewer_name}")
            print(f"  Location: {s.account_id}/{s.location_id}")
            print(f"  Submitted: {s.submitted_at.isoformat()}")
            print(f"  Best score: {s.match_score}")
            print(f"  Closest external review: {s.external_review_id}")
            print()
    finally:
        session.close()


def cmd_resolve(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}")
    session = get_session(db_path)
    try:
        changed = resolve_manual_review(
            session, args.id, verified=args.verified, external_review_id=args.external_id
        )
        session.commit()
    finally:
        session.close()
    if not changed:
        raise SystemExit(f"Submission {args.id} is not awaiting manual review")
    print(f"Resolved {args.id}: {'verified' if args.verified else 'rejected'}")


def main(argv=None):
    # Load .env if present (REVIEW_FEED_TOKEN, REVIEWMATCH_DB, etc.)
    load_env()
    parser = argparse.ArgumentParser(
        prog="reviewmatch",
        description="Verify collected reviews against an external review feed",
    )
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    mat = subparsers.add_parser("match", help="Score one submitted review against candidate reviews")
    mat.add_argument("--submitted", required=True, help="JSON file: reviewer_name, review_text, submitted_date")
    mat.add_argument("--candidates", required=True, help="JSON file: feed response or list of feed review items")
    mat.add_argument("--max-days", type=int, default=7, help="Date window in days (default: 7)")
    mat.add_argument("--all", action="store_true", help="Also print every candidate's score")
    mat.set_defaults(func=cmd_match)

    imp = subparsers.add_parser("import", help="Import submitted reviews from a JSON file")
    imp.add_argument("--input", required=True, help="JSON list of submission records")
    imp.add_argument("--db", default="data/reviews.db", help="Path to SQLite database (default: data/reviews.db)")
    imp.set_defaults(func=cmd_import)

    ver = subparsers.add_parser("verify", help="Run one verification pass over all pending submissions")
    ver.add_argument("--db", help="Path to SQLite database (or set REVIEWMATCH_DB)")
    ver.add_argument("--base-url", help="Review feed base URL (or set REVIEW_FEED_BASE_URL)")
    ver.add_argument("--token", help="Review feed access token (or set REVIEW_FEED_TOKEN)")
    ver.add_argument("--max-attempts", type=int, help="Stop retrying a submission after this many runs")
    ver.set_defaults(func=cmd_verify)

    que = subparsers.add_parser("queue", help="List submissions awaiting manual review")
    que.add_argument("--db", default="data/reviews.db", help="Path to SQLite database (default: data/reviews.db)")
    que.set_defaults(func=cmd_queue)

    res = subparsers.add_parser("resolve", help="Record a manual review decision")
    res.add_argument("--db", default="data/reviews.db", help="Path to SQLite database (default: data/reviews.db)")
    res.add_argument("--id", required=True, help="Submission id")
    decision = res.add_mutually_exclusive_group(required=True)
    decision.add_argument("--verified", dest="verified", action="store_true", help="Confirm the review as posted")
    decision.add_argument("--rejected", dest="verified", action="store_false", help="Reject the review")
    res.add_argument("--external-id", help="External review id confirmed by the reviewer")
    res.set_defaults(func=cmd_resolve)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
