from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app import create_app
from config import TestConfig
from extensions import db
import models  # noqa: F401
from models.assessment import Assessment
from models.course import Course
from models.prerequisite import Prerequisite
from models.registration import Registration, REGISTERED
from models.section import Section
from models.semester import Semester
from models.user import Role, User

PASSWORD = "secret-pass"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def client(app):
    return app.test_client()


class Factory:
    """Small builders for reference data; everything is committed right away."""

    def __init__(self, session):
        self.session = session
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def user(self, role=Role.STUDENT, first_name="Test", last_name=None, email=None):
        n = self._next()
        user = User(
            email=email or f"user{n}@example.edu",
            first_name=first_name,
            last_name=last_name or f"User{n:03d}",
            role=role,
        )
        user.set_password(PASSWORD)
        return self._save(user)

    def student(self, **kwargs):
        return self.user(Role.STUDENT, **kwargs)

    def teacher(self, **kwargs):
        return self.user(Role.TEACHER, **kwargs)

    def course(self, code=None, credits=3, requires=()):
        n = self._next()
        course = self._save(Course(code=code or f"C{n:03d}", title=f"Course {n}", credits=credits))
        for prereq in requires:
            self.session.add(Prerequisite(course_id=course.id, prereq_course_id=prereq.id))
        self.session.commit()
        return course

    def semester(self, registration_open=True, add_drop_open=True, start=None):
        now = datetime.utcnow()
        start = start or now
        reg_delta = timedelta(days=30) if registration_open else timedelta(days=-60)
        drop_delta = timedelta(days=30) if add_drop_open else timedelta(days=-60)
        n = self._next()
        return self._save(
            Semester(
                name=f"Term {n}",
                academic_year=start.year,
                term="Fall",
                start_date=start,
                end_date=start + timedelta(days=120),
                registration_start_date=now - timedelta(days=90),
                registration_end_date=now + reg_delta,
                add_drop_start_date=now - timedelta(days=90),
                add_drop_end_date=now + drop_delta,
            )
        )

    def section(self, course=None, semester=None, capacity=30, enrollment=0, teacher=None, number="A"):
        course = course or self.course()
        semester = semester or self.semester()
        return self._save(
            Section(
                course_id=course.id,
                semester_id=semester.id,
                teacher_id=teacher.id if teacher else None,
                section_number=number,
                max_capacity=capacity,
                current_enrollment=enrollment,
            )
        )

    def assessment(self, section, name="Midterm", max_score=100):
        return self._save(Assessment(section_id=section.id, name=name, max_score=max_score))

    def registration(self, student, section, status=REGISTERED, letter=None, percentage=None):
        return self._save(
            Registration(
                student_id=student.id,
                section_id=section.id,
                status=status,
                final_letter_grade=letter,
                overall_percentage=percentage,
            )
        )


@pytest.fixture
def factory(session):
    return Factory(session)


@pytest.fixture
def file_app(tmp_path):
    # two sessions need two real connections, which :memory: cannot give
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'registrar.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_session(file_app):
    return db.session


@pytest.fixture
def file_factory(file_session):
    return Factory(file_session)


@pytest.fixture
def other_session(file_app):
    """A second, independent session: another request on the same database."""
    other = Session(db.engine)
    yield other
    other.close()


def registered_count(session, section_id):
    return session.execute(
        select(func.count(Registration.id)).where(
            Registration.section_id == section_id,
            Registration.status == REGISTERED,
        )
    ).scalar_one()


def assert_counter_matches(session, section_id):
    section = session.get(Section, section_id)
    session.refresh(section)
    assert section.current_enrollment == registered_count(session, section_id)


def login(client, user, password=PASSWORD):
    resp = client.post("/auth/login", json={"email": user.email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp
