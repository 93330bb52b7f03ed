from ..extensions import db
from .base import OrgScopedMixin, TimestampMixin

class Application(db.Model, OrgScopedMixin, TimestampMixin):
    __tablename__ = "applications"
    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True)
    candidate_id = db.Column(db.Integer, db.ForeignKey("candidates.id"), nullable=True)
    status = db.Column(db.String(50), default="submitted")
    # repointed by the publication writer only
    current_publication_id = db.Column(
        db.Integer,
        db.ForeignKey("application_publications.id", use_alter=True, name="fk_applications_current_publication"),
        nullable=True,
    )

    program = db.relationship("Program", lazy="joined")
    candidate = db.relationship("Candidate", lazy="joined")
    current_publication = db.relationship("Publication", foreign_keys=[current_publication_id])

    @property
    def applicant_name(self):
        if self.candidate is not None and self.candidate.name:
            return self.candidate.name
        return "Unknown"
