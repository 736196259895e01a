"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for submitted reviews and their verification state.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import STATUS_PENDING
from .matching.models import SubmittedReview
from .normalize import full_reviewer_name

Base = declarative_base()


class ReviewSubmission(Base):
    """A review collected through our own flow, awaiting or past verification."""

    __tablename__ = "review_submissions"

    id = Column(String, primary_key=True)
    account_id = Column(String, nullable=False, index=True)
    location_id = Column(String, nullable=False, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    review_text = Column(Text, nullable=False)
    submitted_at = Column(DateTime, nullable=False)  # naive UTC

    verification_status = Column(String, nullable=False, default=STATUS_PENDING, index=True)
    verification_attempts = Column(Integer, nullable=False, default=0)
    external_review_id = Column(String, nullable=True)
    match_score = Column(Float, nullable=True)  # best raw score seen, matched or not
    match_confidence = Column(String, nullable=True)
    star_rating = Column(Integer, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    last_verification_attempt_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    @property
    def reviewer_name(self) -> str:
        return full_reviewer_name(self.first_name, self.last_name)

    def to_submitted_review(self) -> SubmittedReview:
        return SubmittedReview(
            reviewer_name=self.reviewer_name,
            review_text=self.review_text or "",
            submitted_date=self.submitted_at,
        )


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
