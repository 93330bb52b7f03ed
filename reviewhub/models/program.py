import enum

from ..extensions import db
from .base import TimestampMixin


class ProgramStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING_CHANGES = "pending_changes"
    CHANGES_REQUESTED = "changes_requested"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


class Program(db.Model, TimestampMixin):
    __tablename__ = "programs"
    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    coalition_id = db.Column(db.Integer, db.ForeignKey("coalitions.id"), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    review_status = db.Column(
        db.Enum(
            ProgramStatus,
            name="program_review_status",
            native_enum=False,
            validate_strings=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ProgramStatus.DRAFT,
    )
    review_note = db.Column(db.Text)
    # lets an org admin (not only a super admin) take the program offline
    org_can_unpublish = db.Column(db.Boolean, nullable=False, default=False)
    # exact/unlimited/tbd; only "exact" counts down, one spot per published acceptance
    spots_mode = db.Column(db.String(20))
    spots_count = db.Column(db.Integer)

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "coalition_id": self.coalition_id,
            "name": self.name,
            "review_status": self.review_status.value if self.review_status else None,
            "review_note": self.review_note,
            "org_can_unpublish": bool(self.org_can_unpublish),
            "spots_mode": self.spots_mode,
            "spots_count": self.spots_count,
        }

    def __repr__(self) -> str:
        return f"<Program id={self.id} status={self.review_status}>"
