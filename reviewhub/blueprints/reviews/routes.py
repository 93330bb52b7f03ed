from flask import g, jsonify, request
from . import bp
from ..forms import json_formdata
from .forms import ReviewForm
from ...errors import ValidationError
from ...services.reviews import authorize_review_access, get_review, list_reviews, upsert_review
from ...utils.decorators import principal_required


@bp.put("/<int:application_id>")
@principal_required
def save_review(application_id):
    authorize_review_access(g.principal, application_id)
    payload = request.get_json(silent=True) or {}
    form = ReviewForm(formdata=json_formdata(payload))
    if not form.validate():
        raise ValidationError("Invalid review", errors=form.errors)

    review = upsert_review(
        application_id,
        g.principal.user_id,
        payload.get("ratings"),
        form.comments.data,
        form.score.data,
        status=form.status.data,
        # empty string means "not supplied"; the stored decision is kept
        decision=form.decision.data or None,
    )
    return jsonify(review.to_dict())


@bp.get("/<int:application_id>/mine")
@principal_required
def my_review(application_id):
    review = get_review(application_id, g.principal.user_id)
    return jsonify(review.to_dict() if review else None)


@bp.get("/<int:application_id>")
@principal_required
def application_reviews(application_id):
    authorize_review_access(g.principal, application_id)
    return jsonify([r.to_dict() for r in list_reviews(application_id)])
