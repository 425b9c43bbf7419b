# services/admin.py
"""Administrative writes the ledger depends on (dependency-guarded)."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models.course import Course
from models.registration import Registration
from models.section import Section
from models.semester import Semester
from services.enrollment import get_section
from services.errors import DependencyConflict, NotFound, RegistrarError, SemesterNotFound
from services.unit_of_work import transaction

logger = logging.getLogger(__name__)


def create_section(
    session: Session,
    *,
    course_id: int,
    semester_id: int,
    section_number: str,
    max_capacity: int,
    teacher_id: Optional[int] = None,
) -> Section:
    if session.get(Course, course_id) is None:
        raise NotFound(f"Course {course_id} does not exist.", error_code="course_not_found")
    if session.get(Semester, semester_id) is None:
        raise SemesterNotFound(f"Semester {semester_id} does not exist.")

    section_number = (section_number or "").strip()
    if not section_number:
        raise RegistrarError("Section number is required.", error_code="invalid_section")

    try:
        capacity = int(max_capacity)
    except (TypeError, ValueError):
        raise RegistrarError("Max capacity must be a whole number.", error_code="invalid_section")
    if capacity <= 0:
        raise RegistrarError("Max capacity must be positive.", error_code="invalid_section")

    with transaction(session):
        section = Section(
            course_id=course_id,
            semester_id=semester_id,
            teacher_id=teacher_id,
            section_number=section_number,
            max_capacity=capacity,
            current_enrollment=0,
        )
        session.add(section)
        session.flush()

    logger.info("Created section %s (course %s, semester %s)", section.id, course_id, semester_id)
    return section


def delete_section(session: Session, section_id: int) -> None:
    """Delete a section that no registration (of any status) references."""
    section = get_section(session, section_id)

    count = session.execute(
        select(func.count(Registration.id)).where(Registration.section_id == section_id)
    ).scalar_one()
    if count > 0:
        raise DependencyConflict(
            "Cannot delete a section with existing student registrations. Please unenroll students first.",
            details={"registrations": count},
        )

    with transaction(session):
        session.delete(section)

    logger.info("Deleted section %s", section_id)


def delete_semester(session: Session, semester_id: int) -> None:
    semester = session.get(Semester, semester_id)
    if semester is None:
        raise SemesterNotFound(f"Semester {semester_id} does not exist.")

    count = session.execute(
        select(func.count(Section.id)).where(Section.semester_id == semester_id)
    ).scalar_one()
    if count > 0:
        raise DependencyConflict(
            "Cannot delete a semester with scheduled sections. Please remove or reassign them first.",
            details={"sections": count},
        )

    with transaction(session):
        session.delete(semester)

    logger.info("Deleted semester %s", semester_id)
