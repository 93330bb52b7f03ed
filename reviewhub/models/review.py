from ..extensions import db
from .base import TimestampMixin

REVIEW_STATUSES = ("draft", "submitted")
# deprecated: older clients stored the decision inside ratings
LEGACY_DECISION_KEY = "decision"


class ReviewRecord(db.Model, TimestampMixin):
    __tablename__ = "application_reviews"
    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    ratings = db.Column(db.JSON, nullable=False, default=dict)
    comments = db.Column(db.Text)
    score = db.Column(db.Float)
    status = db.Column(db.String(20), nullable=False, default="draft")
    decision = db.Column(db.String(50))
    # kept when a reviewer reverts to draft; see services.staleness
    submitted_at = db.Column(db.DateTime)

    __table_args__ = (
        db.UniqueConstraint("application_id", "reviewer_id", name="uq_application_reviews_application_reviewer"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "application_id": self.application_id,
            "reviewer_id": self.reviewer_id,
            "ratings": self.ratings or {},
            "comments": self.comments,
            "score": self.score,
            "status": self.status,
            "decision": self.decision,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<ReviewRecord application_id={self.application_id} reviewer_id={self.reviewer_id} status={self.status}>"
