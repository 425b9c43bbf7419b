# services/enrollment.py
"""Enrollment ledger

- register / drop keep section.current_enrollment equal to the number of
  Registered rows for that section
- precondition checks run before the transaction opens; under the section
  lock the pair's row is re-read and its status checked again, and the
  capacity check is repeated by the conditional UPDATE
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from models.course import Course
from models.prerequisite import Prerequisite
from models.registration import Registration, REGISTERED, DROPPED, COMPLETED
from models.section import Section
from models.semester import Semester
from services.errors import (
    AlreadyCompleted,
    AlreadyRegistered,
    NotRegistered,
    PrerequisiteNotMet,
    RegistrationClosed,
    SectionFull,
    SectionNotFound,
    SemesterNotFound,
)
from services.unit_of_work import lock_registration, lock_section, transaction
from utils.semesters import add_drop_open, registration_open

logger = logging.getLogger(__name__)


def get_section(session: Session, section_id: int) -> Section:
    section = session.get(Section, section_id)
    if section is None:
        raise SectionNotFound(f"Section {section_id} does not exist.")
    return section


def find_registration(session: Session, student_id: int, section_id: int) -> Optional[Registration]:
    stmt = select(Registration).where(
        Registration.student_id == student_id,
        Registration.section_id == section_id,
    )
    return session.execute(stmt).scalar_one_or_none()


def completed_course_ids(session: Session, student_id: int) -> Set[int]:
    """Course ids the student has a Completed registration for (through its section)."""
    stmt = (
        select(Section.course_id)
        .join(Registration, Registration.section_id == Section.id)
        .where(
            Registration.student_id == student_id,
            Registration.status == COMPLETED,
        )
    )
    return set(session.execute(stmt).scalars())


def missing_prerequisites(session: Session, student_id: int, course: Course) -> List[str]:
    stmt = (
        select(Course)
        .join(Prerequisite, Prerequisite.prereq_course_id == Course.id)
        .where(Prerequisite.course_id == course.id)
    )
    required = session.execute(stmt).scalars().all()
    if not required:
        return []

    done = completed_course_ids(session, student_id)
    return sorted(c.code for c in required if c.id not in done)


def _increment_enrollment(session: Session, section_id: int) -> None:
    # Check-and-increment in one statement so two concurrent registrations
    # can never both take the last seat.
    result = session.execute(
        update(Section)
        .where(
            Section.id == section_id,
            Section.current_enrollment < Section.max_capacity,
        )
        .values(current_enrollment=Section.current_enrollment + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise SectionFull("This section is full.")


def _decrement_enrollment(session: Session, section_id: int, by: int = 1) -> None:
    # Floors at 0: a stale counter is never driven negative.
    session.execute(
        update(Section)
        .where(Section.id == section_id)
        .values(
            current_enrollment=case(
                (Section.current_enrollment >= by, Section.current_enrollment - by),
                else_=0,
            )
        )
        .execution_options(synchronize_session=False)
    )


def _refuse_active(registration: Optional[Registration]) -> None:
    if registration is None:
        return
    if registration.status == REGISTERED:
        raise AlreadyRegistered("Already registered for this course section.")
    if registration.status == COMPLETED:
        raise AlreadyCompleted("Already completed this course section.")


def register(session: Session, student_id: int, section_id: int, *, now: Optional[datetime] = None) -> Registration:
    """Register a student for a section.

    Checks, first failure wins: existing Registered/Completed row,
    prerequisites, capacity, registration window. A Dropped row for the same
    pair is reactivated (same id) instead of inserting a second row.
    """
    now = now or datetime.utcnow()
    section = get_section(session, section_id)

    _refuse_active(find_registration(session, student_id, section_id))

    missing = missing_prerequisites(session, student_id, section.course)
    if missing:
        logger.warning("Student %s refused for section %s: missing %s", student_id, section_id, missing)
        raise PrerequisiteNotMet(missing)

    if section.current_enrollment >= section.max_capacity:
        raise SectionFull("This section is full.")

    if not registration_open(section.semester, now):
        raise RegistrationClosed(f"Registration for {section.semester.name} is not open.")

    with transaction(session):
        lock_section(session, section_id)
        # another request may have registered or reactivated this pair since the checks above
        existing = lock_registration(session, student_id, section_id)
        _refuse_active(existing)
        _increment_enrollment(session, section_id)

        if existing is None:
            registration = Registration(
                student_id=student_id,
                section_id=section_id,
                status=REGISTERED,
                registration_date=now,
            )
            session.add(registration)
        else:
            # Reactivate the dropped row; grades from the earlier attempt don't carry over.
            registration = existing
            registration.status = REGISTERED
            registration.registration_date = now
            registration.overall_percentage = None
            registration.final_letter_grade = None
            for score in registration.scores:
                score.score_achieved = None
                score.graded_at = None

        session.flush()

    logger.info("Student %s registered for section %s (registration %s)", student_id, section_id, registration.id)
    return registration


def drop(
    session: Session,
    student_id: int,
    section_id: int,
    *,
    now: Optional[datetime] = None,
    enforce_add_drop_window: bool = False,
) -> Registration:
    """Drop an active registration. Only status Registered can be dropped."""
    registration = find_registration(session, student_id, section_id)
    if registration is None or registration.status != REGISTERED:
        raise NotRegistered("Not currently registered for this course section.")

    if enforce_add_drop_window:
        now = now or datetime.utcnow()
        semester = registration.section.semester
        if not add_drop_open(semester, now):
            raise RegistrationClosed(f"The add/drop window for {semester.name} is closed.")

    with transaction(session):
        lock_section(session, section_id)
        registration = lock_registration(session, student_id, section_id)
        if registration is None or registration.status != REGISTERED:
            raise NotRegistered("Not currently registered for this course section.")
        _decrement_enrollment(session, section_id)
        registration.status = DROPPED

    logger.info("Student %s dropped section %s (registration %s)", student_id, section_id, registration.id)
    return registration


def release_seats(session: Session, section_id: int, count: int) -> None:
    """Give back seats for rows leaving the Registered state.

    Must be called inside an open transaction.
    """
    if count > 0:
        _decrement_enrollment(session, section_id, by=count)


def student_registrations(session: Session, student_id: int, semester_id: Optional[int] = None) -> List[Registration]:
    stmt = (
        select(Registration)
        .join(Section, Registration.section_id == Section.id)
        .join(Semester, Section.semester_id == Semester.id)
        .join(Course, Section.course_id == Course.id)
        .where(Registration.student_id == student_id)
        .order_by(Semester.start_date.desc(), Course.code)
    )
    if semester_id is not None:
        stmt = stmt.where(Section.semester_id == semester_id)
    return list(session.execute(stmt).scalars())


def open_sections(session: Session, semester_id: int, department_id: Optional[int] = None) -> List[Section]:
    """Sections offered in a semester, optionally limited to one department."""
    if session.get(Semester, semester_id) is None:
        raise SemesterNotFound(f"Semester {semester_id} does not exist.")

    stmt = (
        select(Section)
        .join(Course, Section.course_id == Course.id)
        .where(Section.semester_id == semester_id)
        .order_by(Course.code, Section.section_number)
    )
    if department_id is not None:
        stmt = stmt.where(Course.department_id == department_id)
    return list(session.execute(stmt).scalars())
