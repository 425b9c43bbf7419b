from extensions import db


class Semester(db.Model):
    __tablename__ = "semester"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    academic_year = db.Column(db.Integer, nullable=False)
    term = db.Column(db.String(16), nullable=False)  # "Fall" | "Spring" | "Summer" | "Winter"

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)

    # windows checked by the enrollment ledger
    registration_start_date = db.Column(db.DateTime, nullable=False)
    registration_end_date = db.Column(db.DateTime, nullable=False)
    add_drop_start_date = db.Column(db.DateTime, nullable=False)
    add_drop_end_date = db.Column(db.DateTime, nullable=False)

    sections = db.relationship("Section", back_populates="semester", lazy=True)

    def __repr__(self) -> str:
        return f"<Semester {self.name}>"
