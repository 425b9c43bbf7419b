from datetime import datetime
from extensions import db

REGISTERED = "Registered"
DROPPED = "Dropped"
COMPLETED = "Completed"

REGISTRATION_STATUSES = (REGISTERED, DROPPED, COMPLETED)


class Registration(db.Model):
    __tablename__ = "registration"

    __table_args__ = (
        # At most one row per student per section; history lives in status
        db.UniqueConstraint("student_id", "section_id", name="uq_registration_student_section"),
        db.CheckConstraint(
            "overall_percentage IS NULL OR (overall_percentage >= 0 AND overall_percentage <= 100)",
            name="ck_registration_percentage_range",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    section_id = db.Column(
        db.Integer,
        db.ForeignKey("section.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    status = db.Column(db.String(16), nullable=False, default=REGISTERED)
    registration_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # written by the grade aggregator
    overall_percentage = db.Column(db.Float, nullable=True)
    final_letter_grade = db.Column(db.String(2), nullable=True)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship("User", back_populates="registrations", lazy=True)
    section = db.relationship("Section", back_populates="registrations", lazy=True)

    scores = db.relationship(
        "AssessmentScore",
        back_populates="registration",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "section_id": self.section_id,
            "status": self.status,
            "registration_date": self.registration_date.isoformat() if self.registration_date else None,
            "overall_percentage": self.overall_percentage,
            "final_letter_grade": self.final_letter_grade,
        }

    def __repr__(self) -> str:
        return f"<Registration student={self.student_id} section={self.section_id} {self.status}>"
