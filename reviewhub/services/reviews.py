"""Per-reviewer evaluation records.

One row per (application, reviewer). Writes go through a single
``INSERT ... ON CONFLICT DO UPDATE`` so two first saves racing for the same
key still end up as one row.
"""
from collections.abc import Mapping
from numbers import Real

from flask import current_app
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, NotAuthenticated, NotFound, ValidationError
from ..extensions import db
from ..models.application import Application
from ..models.review import LEGACY_DECISION_KEY, REVIEW_STATUSES, ReviewRecord
from ..utils import clock
from .authz import Reviewer, authorize_scope, program_coalition_id, resolve_program_org

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def resolve_decision(review):
    """Dedicated decision field first, then the legacy ratings key."""
    if review is None:
        return None
    if review.decision:
        return review.decision
    ratings = review.ratings or {}
    legacy = ratings.get(LEGACY_DECISION_KEY) if isinstance(ratings, Mapping) else None
    return legacy or None


def authorize_review_access(principal, application_id):
    """Return the application if the principal reviews its program or administers it."""
    application = db.session.get(Application, application_id)
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    program, org_id = resolve_program_org(application.program_id)
    if Reviewer(program.id) not in principal.roles:
        authorize_scope(principal, org_id, program_coalition_id(program, org_id))
    return application


def _validate(status, ratings, score):
    errors = {}
    if status not in REVIEW_STATUSES:
        errors["status"] = [f"must be one of {', '.join(REVIEW_STATUSES)}"]
    if not isinstance(ratings, Mapping):
        errors["ratings"] = ["must be an object"]
    if score is not None and (isinstance(score, bool) or not isinstance(score, Real)):
        errors["score"] = ["must be a number or null"]
    if errors:
        raise ValidationError("Invalid review", errors=errors)


def _upsert_statement(values):
    bind = db.session.get_bind()
    insert = _UPSERT_INSERTS.get(bind.dialect.name)
    if insert is None:
        raise RuntimeError(f"review upsert is not supported on {bind.dialect.name}")

    table = ReviewRecord.__table__
    stmt = insert(table).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[table.c.application_id, table.c.reviewer_id],
        set_={
            "ratings": stmt.excluded.ratings,
            "comments": stmt.excluded.comments,
            "score": stmt.excluded.score,
            "status": stmt.excluded.status,
            # an omitted decision keeps the stored one, including a legacy ratings-only value
            "decision": func.coalesce(
                stmt.excluded.decision,
                table.c.decision,
                func.nullif(table.c.ratings[LEGACY_DECISION_KEY].as_string(), ""),
            ),
            # only a submit carries a new timestamp; drafts keep the old one
            "submitted_at": func.coalesce(stmt.excluded.submitted_at, table.c.submitted_at),
            "updated_at": stmt.excluded.updated_at,
        },
    )


def upsert_review(application_id, reviewer_id, ratings, comments, score, status=None, decision=None):
    """Create or update the reviewer's record for an application and return it."""
    if reviewer_id is None:
        raise NotAuthenticated()
    status = status or "draft"
    ratings = {} if ratings is None else ratings
    _validate(status, ratings, score)

    if db.session.get(Application, application_id) is None:
        raise NotFound(f"Application {application_id} not found")

    merged = dict(ratings)
    if decision is not None:
        merged[LEGACY_DECISION_KEY] = decision

    now = clock.utcnow()
    stmt = _upsert_statement({
        "application_id": application_id,
        "reviewer_id": reviewer_id,
        "ratings": merged,
        "comments": comments,
        "score": score,
        "status": status,
        "decision": decision,
        "submitted_at": now if status == "submitted" else None,
        "created_at": now,
        "updated_at": now,
    })

    try:
        db.session.execute(stmt)
        review = (
            ReviewRecord.query
            .filter_by(application_id=application_id, reviewer_id=reviewer_id)
            .populate_existing()
            .one()
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception(
            'Review upsert hit an integrity error for application=%s reviewer=%s', application_id, reviewer_id
        )
        raise Conflict("Concurrent review write detected")
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        'Review saved application=%s reviewer=%s status=%s', application_id, reviewer_id, status
    )
    return review


def get_review(application_id, reviewer_id):
    if reviewer_id is None:
        raise NotAuthenticated()
    return ReviewRecord.query.filter_by(application_id=application_id, reviewer_id=reviewer_id).first()


def list_reviews(application_id):
    """Every reviewer's record for the application, latest edit first."""
    if db.session.get(Application, application_id) is None:
        raise NotFound(f"Application {application_id} not found")
    return (
        ReviewRecord.query
        .filter_by(application_id=application_id)
        .order_by(ReviewRecord.updated_at.desc(), ReviewRecord.id.desc())
        .all()
    )
