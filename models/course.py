from extensions import db


class Course(db.Model):
    __tablename__ = "course"

    __table_args__ = (
        db.CheckConstraint("credits > 0", name="ck_course_credits_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # Catalog identifier shown to students, for example "CS101"
    code = db.Column(db.String(20), unique=True, index=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    credits = db.Column(db.Integer, nullable=False)

    department_id = db.Column(
        db.Integer,
        db.ForeignKey("department.id", ondelete="RESTRICT"),
        nullable=True,
    )

    department = db.relationship("Department", back_populates="courses", lazy=True)

    sections = db.relationship("Section", back_populates="course", lazy=True)

    # Prereq edges where THIS course is the dependent course (X requires Y)
    prereq_edges = db.relationship(
        "Prerequisite",
        foreign_keys="Prerequisite.course_id",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    # Edges where THIS course is used as a prereq for others
    prereq_for = db.relationship(
        "Prerequisite",
        foreign_keys="Prerequisite.prereq_course_id",
        back_populates="prereq_course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Course {self.code}>"
