from ..extensions import db
from .base import OrgScopedMixin, TimestampMixin

class Candidate(db.Model, OrgScopedMixin, TimestampMixin):
    """The applicant behind one or more applications."""
    __tablename__ = "candidates"

    id = db.Column(db.Integer, primary_key=True)
    # OrgScopedMixin: org_id
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(254), index=True)

    def __repr__(self) -> str:
        return f"<Candidate id={self.id} name={self.name!r}>"
