from datetime import datetime, timezone

from flask import g, jsonify, request
from . import bp
from ..forms import json_formdata
from .forms import PublishForm, StatusForm
from ...errors import ValidationError
from ...services.authz import authorize_scope, program_coalition_id, resolve_program_org
from ...services.program_status import transition_program
from ...services.publishing import list_publications, publish_all_finalized, publish_applications
from ...services.staleness import get_publish_queue
from ...utils.decorators import principal_required


# Helpers: coerce JSON values the forms cannot express
def _coerce_bool(val, default):
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    if isinstance(val, str) and val.strip().lower() in ("true", "1", "yes"):
        return True
    if isinstance(val, str) and val.strip().lower() in ("false", "0", "no"):
        return False
    raise ValidationError("Invalid flag", errors={"only_unpublished": ["must be a boolean"]})


def _parse_datetime(val):
    """ISO-8601 -> naive UTC datetime (None passes through)."""
    if not val:
        return None
    try:
        dt = datetime.fromisoformat(val.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("Invalid date", errors={"claim_deadline": ["must be an ISO-8601 timestamp"]})
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _publish_options(payload):
    form = PublishForm(formdata=json_formdata(payload))
    if not form.validate():
        raise ValidationError("Invalid publish request", errors=form.errors)
    return {
        "visibility": payload.get("visibility"),
        "acceptance_tag": form.acceptance_tag.data or None,
        "claim_deadline": _parse_datetime(form.claim_deadline.data),
    }


@bp.get("/<int:program_id>")
@principal_required
def program_detail(program_id):
    program, org_id = resolve_program_org(program_id)
    authorize_scope(g.principal, org_id, program_coalition_id(program, org_id))
    return jsonify(program.to_dict())


@bp.post("/<int:program_id>/status")
@principal_required
def program_status(program_id):
    payload = request.get_json(silent=True) or {}
    form = StatusForm(formdata=json_formdata(payload))
    if not form.validate():
        raise ValidationError("Invalid status change", errors=form.errors)
    program = transition_program(g.principal, program_id, form.action.data, note=form.note.data)
    return jsonify(program.to_dict())


@bp.get("/<int:program_id>/publish-queue")
@principal_required
def publish_queue(program_id):
    _, org_id = resolve_program_org(program_id)
    authorize_scope(g.principal, org_id, allow_coalition=False)
    return jsonify([entry.to_dict() for entry in get_publish_queue(program_id)])


@bp.post("/<int:program_id>/publish")
@principal_required
def publish_all(program_id):
    payload = request.get_json(silent=True) or {}
    publications = publish_all_finalized(
        g.principal,
        program_id,
        only_unpublished=_coerce_bool(payload.get("only_unpublished"), True),
        **_publish_options(payload),
    )
    return jsonify([p.to_dict() for p in publications])


@bp.post("/<int:program_id>/publish/selected")
@principal_required
def publish_selected(program_id):
    payload = request.get_json(silent=True) or {}
    ids = payload.get("application_ids")
    if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        raise ValidationError("Invalid selection", errors={"application_ids": ["must be a list of ids"]})
    publications = publish_applications(g.principal, ids, program_id=program_id, **_publish_options(payload))
    return jsonify([p.to_dict() for p in publications])


@bp.get("/<int:program_id>/publications")
@principal_required
def publications(program_id):
    return jsonify([p.to_dict() for p in list_publications(g.principal, program_id)])
