"""Derive which finalized reviews are not (or no longer) published.

A publication is stale when the review behind it was finalized after the
publication's ``published_at``. ``submitted_at`` survives a revert to draft,
so a later resubmit always moves the finalize time forward and re-surfaces
the application.
"""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import joinedload

from ..errors import NotFound
from ..extensions import db
from ..models.application import Application
from ..models.program import Program
from ..models.review import ReviewRecord
from .reviews import resolve_decision


@dataclass
class PublishQueueEntry:
    application_id: int
    program_name: str
    applicant_name: str
    decision: Optional[str]
    score: Optional[float]
    comments: Optional[str]
    already_published: bool
    review_finalized_at: Optional[datetime]

    def to_dict(self):
        d = asdict(self)
        if self.review_finalized_at is not None:
            d["review_finalized_at"] = self.review_finalized_at.isoformat()
        return d


def finalized_at(review):
    """When the review was last finalized: submitted_at, else updated_at."""
    return review.submitted_at or review.updated_at


def is_already_published(review, publication) -> bool:
    if publication is None or publication.published_at is None:
        return False
    finalized = finalized_at(review)
    if finalized is None:
        return False
    return finalized <= publication.published_at


def _recency_key(review):
    # submitted_at desc nulls last, then updated_at desc
    return (
        review.submitted_at is not None,
        review.submitted_at or datetime.min,
        review.updated_at or datetime.min,
    )


def latest_submitted_reviews(program_id):
    """Map application id -> its most recently finalized submitted review."""
    rows = (
        ReviewRecord.query
        .join(Application, Application.id == ReviewRecord.application_id)
        .filter(Application.program_id == program_id)
        .filter(ReviewRecord.status == "submitted")
        .all()
    )
    latest = {}
    for review in rows:
        current = latest.get(review.application_id)
        if current is None or _recency_key(review) > _recency_key(current):
            latest[review.application_id] = review
    return latest


def finalized_rows(program_id):
    """``(application, review, publication)`` for every application with a submitted review."""
    latest = latest_submitted_reviews(program_id)
    if not latest:
        return []
    apps = (
        Application.query
        .options(joinedload(Application.current_publication))
        .filter(Application.id.in_(list(latest.keys())))
        .all()
    )
    return [(a, latest[a.id], a.current_publication) for a in apps]


def get_publish_queue(program_id) -> List[PublishQueueEntry]:
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFound(f"Program {program_id} not found")

    entries = []
    for application, review, publication in finalized_rows(program_id):
        entries.append((
            finalized_at(review),
            PublishQueueEntry(
                application_id=application.id,
                program_name=program.name,
                applicant_name=application.applicant_name,
                decision=resolve_decision(review),
                score=review.score,
                comments=review.comments,
                already_published=is_already_published(review, publication),
                review_finalized_at=finalized_at(review),
            ),
        ))

    entries.sort(key=lambda e: (e[0] or datetime.min, e[1].application_id), reverse=True)
    return [entry for _, entry in entries]


def latest_submitted_review(application_id):
    rows = ReviewRecord.query.filter_by(application_id=application_id, status="submitted").all()
    return max(rows, key=_recency_key) if rows else None
