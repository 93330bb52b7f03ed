from ..extensions import db
from .base import OrgScopedMixin
from ..utils import clock


class Publication(db.Model, OrgScopedMixin):
    __tablename__ = "application_publications"

    id = db.Column(db.Integer, primary_key=True)
    # OrgScopedMixin: org_id
    application_id = db.Column(db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True)
    published_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    published_at = db.Column(db.DateTime, nullable=False)
    unpublished_at = db.Column(db.DateTime)
    version = db.Column(db.Integer, nullable=False, default=1)

    # {"decision": bool, "score": bool, "comments": bool, "customMessage": str|None}
    visibility = db.Column(db.JSON, nullable=False)
    # snapshot of the latest submitted review: {"decision", "score", "comments"}
    payload = db.Column(db.JSON)
    acceptance_tag = db.Column(db.String(80))
    claim_deadline = db.Column(db.DateTime)

    def to_dict(self):
        return {
            "id": self.id,
            "application_id": self.application_id,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "unpublished_at": self.unpublished_at.isoformat() if self.unpublished_at else None,
            "version": self.version,
            "visibility": self.visibility,
            "payload": self.payload,
            "acceptance_tag": self.acceptance_tag,
            "claim_deadline": self.claim_deadline.isoformat() if self.claim_deadline else None,
        }

    def __repr__(self) -> str:
        return f"<Publication id={self.id} application_id={self.application_id} v{self.version}>"


class PublicationEvent(db.Model):
    """Append-only audit trail of publish/unpublish actions."""
    __tablename__ = "application_publication_events"

    id = db.Column(db.Integer, primary_key=True)
    publication_id = db.Column(db.Integer, db.ForeignKey("application_publications.id"), nullable=False, index=True)
    event_type = db.Column(db.String(30), nullable=False)  # publish/unpublish
    actor_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: clock.utcnow())
