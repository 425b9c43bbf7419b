from datetime import datetime, timedelta

from app import create_app
from extensions import db
from models.user import User, Role
from models.department import Department
from models.course import Course
from models.prerequisite import Prerequisite
from models.semester import Semester
from models.section import Section
from models.assessment import Assessment
from models.registration import Registration, COMPLETED

DEMO_PASSWORD = "password123"

app = create_app()


def _user(email, first, last, role):
    user = User(email=email, first_name=first, last_name=last, role=role)
    user.set_password(DEMO_PASSWORD)
    return user


def main():
    with app.app_context():
        db.create_all()
        if User.query.first() is not None:
            print("Database already has users, not seeding.")
            return

        now = datetime.utcnow()

# ----------------------------------------------------------------------------------------------------------------
#   PEOPLE - one staff member, two teachers, three students (all share DEMO_PASSWORD)
# ----------------------------------------------------------------------------------------------------------------

        staff = _user("registrar@example.edu", "Rita", "Registrar", Role.STAFF)
        t1 = _user("turing@example.edu", "Alan", "Turing", Role.TEACHER)
        t2 = _user("hopper@example.edu", "Grace", "Hopper", Role.TEACHER)
        s1 = _user("ada@example.edu", "Ada", "Lovelace", Role.STUDENT)
        s2 = _user("edsger@example.edu", "Edsger", "Dijkstra", Role.STUDENT)
        s3 = _user("barbara@example.edu", "Barbara", "Liskov", Role.STUDENT)
        db.session.add_all([staff, t1, t2, s1, s2, s3])

# ----------------------------------------------------------------------------------------------------------------
#   CATALOG - courses and prerequisite edges (CS201 requires CS101, CS301 requires CS201)
# ----------------------------------------------------------------------------------------------------------------

        cs = Department(name="Computer Science", description="School of Computing")
        db.session.add(cs)
        db.session.flush()

        cs101 = Course(code="CS101", title="Intro to Computer Science", credits=3, department_id=cs.id)
        cs201 = Course(code="CS201", title="Data Structures", credits=4, department_id=cs.id)
        cs301 = Course(code="CS301", title="Algorithms", credits=4, department_id=cs.id)
        db.session.add_all([cs101, cs201, cs301])
        db.session.flush()  # get IDs for prereqs/sections

        db.session.add_all([
            Prerequisite(course_id=cs201.id, prereq_course_id=cs101.id),
            Prerequisite(course_id=cs301.id, prereq_course_id=cs201.id),
        ])

# ----------------------------------------------------------------------------------------------------------------
#   SEMESTERS - a finished one and a current one with registration open
# ----------------------------------------------------------------------------------------------------------------

        fall = Semester(
            name="Fall 2025", academic_year=2025, term="Fall",
            start_date=now - timedelta(days=200), end_date=now - timedelta(days=90),
            registration_start_date=now - timedelta(days=230), registration_end_date=now - timedelta(days=200),
            add_drop_start_date=now - timedelta(days=200), add_drop_end_date=now - timedelta(days=186),
        )
        spring = Semester(
            name="Spring 2026", academic_year=2026, term="Spring",
            start_date=now + timedelta(days=14), end_date=now + timedelta(days=120),
            registration_start_date=now - timedelta(days=7), registration_end_date=now + timedelta(days=14),
            add_drop_start_date=now - timedelta(days=7), add_drop_end_date=now + timedelta(days=28),
        )
        db.session.add_all([fall, spring])
        db.session.flush()

# ----------------------------------------------------------------------------------------------------------------
#   SECTIONS + history - Ada completed CS101 last fall, so she may take CS201 now
# ----------------------------------------------------------------------------------------------------------------

        old101 = Section(course_id=cs101.id, semester_id=fall.id, teacher_id=t1.id,
                         section_number="A", max_capacity=30, current_enrollment=0)
        new101 = Section(course_id=cs101.id, semester_id=spring.id, teacher_id=t1.id,
                         section_number="A", max_capacity=30, current_enrollment=0)
        new201 = Section(course_id=cs201.id, semester_id=spring.id, teacher_id=t2.id,
                         section_number="A", max_capacity=2, current_enrollment=0)
        db.session.add_all([old101, new101, new201])
        db.session.flush()

        db.session.add(Registration(student_id=s1.id, section_id=old101.id, status=COMPLETED,
                                    overall_percentage=91.5, final_letter_grade="A"))

        db.session.add_all([
            Assessment(section_id=new201.id, name="Midterm", max_score=100, assessment_type="Exam"),
            Assessment(section_id=new201.id, name="Final", max_score=100, assessment_type="Exam"),
        ])

        db.session.commit()
        print(f"Seeded demo data. Log in as {s1.email} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
