from ..extensions import db
from .base import OrgScopedMixin, TimestampMixin

class Notification(db.Model, OrgScopedMixin, TimestampMixin):
    __tablename__ = "notifications"
    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, db.ForeignKey("applications.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    type = db.Column(db.String(50))
    title = db.Column(db.String(255))
    message = db.Column(db.Text)
    data = db.Column(db.JSON)
    read_at = db.Column(db.DateTime)
