from ..extensions import db
from .base import TimestampMixin

GRANT_ACTIVE = "active"
GRANT_STATUSES = ("active", "revoked", "inactive")


class AdminGrant(db.Model, TimestampMixin):
    """A scoped role. Revoking flips ``status``; rows are never deleted."""
    __tablename__ = "admin_grants"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role = db.Column(db.String(30), nullable=False, default="admin")  # admin/manager/reviewer
    scope_type = db.Column(db.String(20), nullable=False)  # org/coalition/program
    scope_id = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=GRANT_ACTIVE)

    __table_args__ = (
        db.UniqueConstraint("scope_type", "scope_id", "user_id", name="uq_admin_grants_scope_user"),
    )

    def __repr__(self):
        return f"<AdminGrant user_id={self.user_id} {self.scope_type}:{self.scope_id} status={self.status}>"
