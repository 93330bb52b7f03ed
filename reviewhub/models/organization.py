from ..extensions import db
from .base import TimestampMixin

class Coalition(db.Model, TimestampMixin):
    __tablename__ = "coalitions"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)


class Organization(db.Model, TimestampMixin):
    __tablename__ = "organizations"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    coalition_id = db.Column(db.Integer, db.ForeignKey("coalitions.id"), nullable=True, index=True)
