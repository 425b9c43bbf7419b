from extensions import db


# Course X requires course Y to be completed before registering
class Prerequisite(db.Model):
    __tablename__ = "prerequisite"

    __table_args__ = (
        # Prevent duplicate prereq edges
        db.UniqueConstraint(
            "course_id",
            "prereq_course_id",
            name="uq_prereq_course_prereq",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)

    # the course that HAS the prerequisite (X)
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    # the prerequisite course (Y)
    prereq_course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    course = db.relationship(
        "Course",
        foreign_keys=[course_id],
        back_populates="prereq_edges",
        lazy=True,
    )

    prereq_course = db.relationship(
        "Course",
        foreign_keys=[prereq_course_id],
        back_populates="prereq_for",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Prereq {self.prereq_course_id} -> {self.course_id}>"
