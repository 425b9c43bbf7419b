from extensions import db


class Department(db.Model):
    __tablename__ = "department"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)

    courses = db.relationship("Course", back_populates="department", lazy=True)

    def __repr__(self) -> str:
        return f"<Department {self.name}>"
