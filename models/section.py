from datetime import datetime
from extensions import db


# One scheduled offering of a Course in a Semester
class Section(db.Model):
    __tablename__ = "section"

    __table_args__ = (
        db.UniqueConstraint("course_id", "semester_id", "section_number", name="uq_section_course_sem_number"),
        db.CheckConstraint("max_capacity > 0", name="ck_section_capacity_positive"),
        db.CheckConstraint(
            "current_enrollment >= 0 AND current_enrollment <= max_capacity",
            name="ck_section_enrollment_bounds",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)

    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="RESTRICT"),
        nullable=False,
    )
    semester_id = db.Column(
        db.Integer,
        db.ForeignKey("semester.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    teacher_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )

    section_number = db.Column(db.String(10), nullable=False)
    max_capacity = db.Column(db.Integer, nullable=False)

    # Denormalized count of Registered rows, only touched by the enrollment ledger
    current_enrollment = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship("Course", back_populates="sections", lazy=True)
    semester = db.relationship("Semester", back_populates="sections", lazy=True)
    teacher = db.relationship("User", back_populates="taught_sections", lazy=True)

    registrations = db.relationship("Registration", back_populates="section", lazy=True)

    assessments = db.relationship(
        "Assessment",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="Assessment.name",
        lazy=True,
    )

    @property
    def seats_left(self) -> int:
        return max(self.max_capacity - self.current_enrollment, 0)

    def __repr__(self) -> str:
        return f"<Section {self.id} course={self.course_id} sem={self.semester_id} {self.section_number}>"
