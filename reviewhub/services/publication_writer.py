"""Writes publication rows and repoints each application's current publication.

Writers only flush; the caller owns the transaction.
"""
from typing import List, Protocol

from sqlalchemy import update

from ..errors import NotFound
from ..extensions import db
from ..models.application import Application
from ..models.notification import Notification
from ..models.program import Program
from ..models.publication import Publication, PublicationEvent
from ..utils import clock
from .reviews import resolve_decision
from .staleness import latest_submitted_review

ACCEPTANCE_MARKERS = ("accept", "approve")


class PublicationWriter(Protocol):
    def write(self, application_ids, visibility, acceptance_tag, claim_deadline, published_by) -> List[Publication]:
        ...


def is_acceptance_decision(decision) -> bool:
    if not decision:
        return False
    value = str(decision).strip().lower()
    return any(marker in value for marker in ACCEPTANCE_MARKERS)


def _take_spot(program_id):
    # conditional decrement; never drops below zero
    db.session.execute(
        update(Program)
        .where(Program.id == program_id, Program.spots_mode == "exact", Program.spots_count > 0)
        .values(spots_count=Program.spots_count - 1)
    )


class SqlPublicationWriter:
    """Default writer: one new publication version per application."""

    def write(self, application_ids, visibility, acceptance_tag=None, claim_deadline=None, published_by=None):
        now = clock.utcnow()
        written = []
        for app_id in application_ids:
            application = db.session.get(Application, app_id)
            if application is None:
                raise NotFound(f"Application {app_id} not found")

            review = latest_submitted_review(app_id)
            decision = resolve_decision(review)
            payload = {
                "decision": decision,
                "score": review.score if review else None,
                "comments": review.comments if review else None,
            }
            version = Publication.query.filter_by(application_id=app_id).count() + 1

            pub = Publication(
                org_id=application.org_id,
                application_id=app_id,
                published_by=published_by,
                published_at=now,
                version=version,
                visibility=dict(visibility),
                payload=payload,
                acceptance_tag=acceptance_tag,
                claim_deadline=claim_deadline,
            )
            db.session.add(pub)
            db.session.flush()
            application.current_publication_id = pub.id

            db.session.add(PublicationEvent(
                publication_id=pub.id, event_type="publish", actor_id=published_by, note="batch publish",
                created_at=now,
            ))

            candidate = application.candidate
            db.session.add(Notification(
                org_id=application.org_id,
                application_id=app_id,
                user_id=candidate.user_id if candidate else None,
                type="results_published",
                title="Your results are available",
                message="A decision has been published for your application.",
                data={"application_id": app_id, "publication_id": pub.id},
            ))

            if acceptance_tag and is_acceptance_decision(decision):
                _take_spot(application.program_id)
            written.append(pub)

        db.session.flush()
        return written
