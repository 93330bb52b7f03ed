"""Review/publication status of a program.

Transitions are a lookup in ``TRANSITIONS``; anything missing from the table
is rejected. Who may trigger an action is checked before the table so a
forbidden caller learns nothing about the program's state.
"""
from flask import current_app

from ..errors import Forbidden, ValidationError
from ..extensions import db
from ..models.program import ProgramStatus as S
from .authz import authorize_scope, program_coalition_id, resolve_program_org

SUBMIT = "submit"
PROPOSE_CHANGES = "propose_changes"
APPROVE = "approve"
REQUEST_CHANGES = "request_changes"
UNPUBLISH = "unpublish"

ACTIONS = (SUBMIT, PROPOSE_CHANGES, APPROVE, REQUEST_CHANGES, UNPUBLISH)

TRANSITIONS = {
    (S.DRAFT, SUBMIT): S.SUBMITTED,
    (S.CHANGES_REQUESTED, SUBMIT): S.SUBMITTED,
    (S.UNPUBLISHED, SUBMIT): S.SUBMITTED,
    # resubmitting while changes are pending only replaces the note
    (S.PENDING_CHANGES, SUBMIT): S.PENDING_CHANGES,
    (S.PUBLISHED, PROPOSE_CHANGES): S.PENDING_CHANGES,
    (S.SUBMITTED, REQUEST_CHANGES): S.CHANGES_REQUESTED,
    (S.SUBMITTED, APPROVE): S.PUBLISHED,
    (S.PENDING_CHANGES, REQUEST_CHANGES): S.CHANGES_REQUESTED,
    (S.PENDING_CHANGES, APPROVE): S.PUBLISHED,
    (S.PUBLISHED, UNPUBLISH): S.UNPUBLISHED,
}


def next_status(current, action):
    """Look up the transition or raise ValidationError."""
    try:
        return TRANSITIONS[(S(current), action)]
    except (KeyError, ValueError):
        raise ValidationError(
            f"Cannot {action} a program in status {getattr(current, 'value', current)}",
            errors={"action": [f"not allowed from {getattr(current, 'value', current)}"]},
        )


def _authorize(principal, program, org_id, action):
    if action in (APPROVE, REQUEST_CHANGES):
        if not principal.is_superadmin:
            raise Forbidden("Only a super admin can review programs")
        return
    if action == UNPUBLISH:
        if principal.is_superadmin:
            return
        if program.org_can_unpublish and principal.is_org_admin(org_id):
            return
        raise Forbidden("Not allowed to unpublish this program")
    authorize_scope(principal, org_id, program_coalition_id(program, org_id))


def transition_program(principal, program_id, action, note=None):
    """Apply ``action`` to the program and return it."""
    if action not in ACTIONS:
        raise ValidationError("Unknown action", errors={"action": [f"must be one of {', '.join(ACTIONS)}"]})

    program, org_id = resolve_program_org(program_id)
    _authorize(principal, program, org_id, action)

    previous = program.review_status
    program.review_status = next_status(previous, action)
    if note is not None or action == SUBMIT:
        program.review_note = note or ""
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Program %s transition %s failed', program_id, action)
        raise

    if program.review_status == previous:
        current_app.logger.info('Program %s note updated while %s', program.id, previous.value)
    else:
        current_app.logger.info(
            'Program %s %s -> %s by user %s', program.id, previous.value, program.review_status.value, principal.user_id
        )
    return program
