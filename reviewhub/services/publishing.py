"""Bulk publication of finalized reviews.

Eligibility uses the same staleness test as the publish queue, so a second
``only_unpublished`` call right after a successful one finds nothing to do.
Each request is one transaction: either every candidate gets a publication
or none does.
"""
from flask import current_app

from ..errors import NotFound, ServiceError, ValidationError
from ..extensions import db
from ..models.application import Application
from ..models.publication import Publication
from .authz import authorize_scope, resolve_program_org
from .publication_writer import SqlPublicationWriter
from .staleness import finalized_rows, is_already_published, latest_submitted_review

VISIBILITY_FLAGS = ("decision", "score", "comments")
VISIBILITY_KEYS = VISIBILITY_FLAGS + ("customMessage",)


def validate_visibility(visibility):
    """Return a clean visibility dict or raise ValidationError."""
    if visibility is None:
        visibility = current_app.config["PUBLISH_DEFAULT_VISIBILITY"]
    if not isinstance(visibility, dict):
        raise ValidationError("Invalid visibility", errors={"visibility": ["must be an object"]})

    errors = {}
    for key in VISIBILITY_FLAGS:
        if key not in visibility:
            errors[key] = ["is required"]
        elif not isinstance(visibility[key], bool):
            errors[key] = ["must be a boolean"]
    message = visibility.get("customMessage")
    if message is not None and not isinstance(message, str):
        errors["customMessage"] = ["must be a string or null"]
    for key in set(visibility) - set(VISIBILITY_KEYS):
        errors[key] = ["unknown visibility key"]
    if errors:
        raise ValidationError("Invalid visibility", errors=errors)

    clean = {key: visibility[key] for key in VISIBILITY_FLAGS}
    clean["customMessage"] = message
    return clean


def eligible_application_ids(program_id, only_unpublished=True):
    rows = finalized_rows(program_id)
    if only_unpublished:
        rows = [r for r in rows if not is_already_published(r[1], r[2])]
    return sorted(app.id for app, _, _ in rows)


def _write(principal, application_ids, visibility, acceptance_tag, claim_deadline, writer):
    writer = writer or SqlPublicationWriter()
    try:
        publications = writer.write(
            application_ids,
            visibility,
            acceptance_tag=acceptance_tag,
            claim_deadline=claim_deadline,
            published_by=principal.user_id,
        )
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Publishing %d applications failed, rolled back', len(application_ids))
        raise
    return publications


def publish_all_finalized(principal, program_id, visibility=None, only_unpublished=True,
                          acceptance_tag=None, claim_deadline=None, writer=None):
    """Publish every finalized (and, by default, not yet published) result of a program."""
    program, org_id = resolve_program_org(program_id)
    authorize_scope(principal, org_id, allow_coalition=False)
    visibility = validate_visibility(visibility)

    app_ids = eligible_application_ids(program.id, only_unpublished)
    if not app_ids:
        current_app.logger.info('Nothing to publish for program %s', program.id)
        return []

    publications = _write(principal, app_ids, visibility, acceptance_tag, claim_deadline, writer)
    current_app.logger.info(
        'Published %d applications for program %s by user %s', len(publications), program.id, principal.user_id
    )
    return publications


def publish_applications(principal, application_ids, visibility=None, acceptance_tag=None,
                         claim_deadline=None, writer=None, program_id=None):
    """Publish an explicit selection of applications, optionally all from one program."""
    if program_id is not None:
        _, program_org_id = resolve_program_org(program_id)
        authorize_scope(principal, program_org_id, allow_coalition=False)

    ids = list(dict.fromkeys(application_ids or []))
    if not ids:
        return []

    org_ids = set()
    for app_id in ids:
        application = db.session.get(Application, app_id)
        if application is None:
            raise NotFound(f"Application {app_id} not found")
        if program_id is not None and application.program_id != program_id:
            raise ValidationError(
                "Application outside program",
                errors={"application_ids": [f"{app_id} does not belong to program {program_id}"]},
            )
        _, org_id = resolve_program_org(application.program_id)
        org_ids.add(org_id)
    for org_id in sorted(org_ids):
        authorize_scope(principal, org_id, allow_coalition=False)
    visibility = validate_visibility(visibility)

    missing = [app_id for app_id in ids if latest_submitted_review(app_id) is None]
    if missing:
        raise ValidationError(
            "Applications without a submitted review",
            errors={"application_ids": [str(a) for a in missing]},
        )

    publications = _write(principal, ids, visibility, acceptance_tag, claim_deadline, writer)
    current_app.logger.info('Published %d selected applications by user %s', len(publications), principal.user_id)
    return publications


def list_publications(principal, program_id):
    """Publication history of a program, newest first."""
    program, org_id = resolve_program_org(program_id)
    authorize_scope(principal, org_id, allow_coalition=False)
    return (
        Publication.query
        .join(Application, Application.id == Publication.application_id)
        .filter(Application.program_id == program.id)
        .order_by(Publication.published_at.desc(), Publication.id.desc())
        .all()
    )
