from datetime import datetime
from extensions import db


class Assessment(db.Model):
    __tablename__ = "assessment"

    __table_args__ = (
        db.CheckConstraint("max_score > 0", name="ck_assessment_max_score_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)

    section_id = db.Column(
        db.Integer,
        db.ForeignKey("section.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(120), nullable=False)
    max_score = db.Column(db.Float, nullable=False)
    assessment_type = db.Column(db.String(32), nullable=True)  # for example "Exam", "Quiz", "Project"

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    section = db.relationship("Section", back_populates="assessments", lazy=True)

    scores = db.relationship(
        "AssessmentScore",
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Assessment {self.name} max={self.max_score}>"


class AssessmentScore(db.Model):
    __tablename__ = "assessment_score"

    __table_args__ = (
        db.UniqueConstraint("registration_id", "assessment_id", name="uq_score_registration_assessment"),
    )

    id = db.Column(db.Integer, primary_key=True)

    registration_id = db.Column(
        db.Integer,
        db.ForeignKey("registration.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assessment_id = db.Column(
        db.Integer,
        db.ForeignKey("assessment.id", ondelete="CASCADE"),
        nullable=False,
    )

    # null means retracted / not graded; the row itself is kept
    score_achieved = db.Column(db.Float, nullable=True)
    graded_at = db.Column(db.DateTime, nullable=True)

    registration = db.relationship("Registration", back_populates="scores", lazy=True)
    assessment = db.relationship("Assessment", back_populates="scores", lazy=True)

    def __repr__(self) -> str:
        return f"<AssessmentScore reg={self.registration_id} assessment={self.assessment_id} score={self.score_achieved}>"
