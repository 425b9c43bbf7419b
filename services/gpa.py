# services/gpa.py
"""Read-time GPA: nothing here writes or caches anything."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from models.registration import Registration, COMPLETED
from models.section import Section
from models.semester import Semester
from utils.semesters import format_semester_label

GRADE_POINTS = {
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
    "C-": 1.7,
    "D": 1.0,
    "F": 0.0,
}


@dataclass(frozen=True)
class GpaSummary:
    gpa: float
    credits: int
    quality_points: float


@dataclass
class TranscriptTerm:
    semester: Semester
    label: str
    registrations: List[Registration] = field(default_factory=list)
    summary: GpaSummary = GpaSummary(0.0, 0, 0.0)


@dataclass
class Transcript:
    student_id: int
    terms: List[TranscriptTerm]
    cumulative: GpaSummary


def grade_point_for(letter: Optional[str]) -> float:
    # Unknown or missing letters weigh nothing
    if not letter:
        return 0.0
    return GRADE_POINTS.get(letter, 0.0)


def summarize(registrations: Iterable[Registration]) -> GpaSummary:
    """sum(points x credits) / sum(credits) over Completed, lettered registrations."""
    quality_points = 0.0
    credits = 0

    for reg in registrations:
        if reg.status != COMPLETED or not reg.final_letter_grade:
            continue
        course_credits = reg.section.course.credits
        quality_points += grade_point_for(reg.final_letter_grade) * course_credits
        credits += course_credits

    gpa = round(quality_points / credits, 2) if credits > 0 else 0.0
    return GpaSummary(gpa=gpa, credits=credits, quality_points=quality_points)


def _completed_registrations(session: Session, student_id: int, semester_id: Optional[int] = None) -> List[Registration]:
    stmt = (
        select(Registration)
        .join(Section, Registration.section_id == Section.id)
        .join(Semester, Section.semester_id == Semester.id)
        .options(joinedload(Registration.section).joinedload(Section.course))
        .where(
            Registration.student_id == student_id,
            Registration.status == COMPLETED,
        )
        .order_by(Semester.start_date, Registration.id)
    )
    if semester_id is not None:
        stmt = stmt.where(Section.semester_id == semester_id)
    return list(session.execute(stmt).unique().scalars())


def semester_gpa(session: Session, student_id: int, semester_id: int) -> GpaSummary:
    return summarize(_completed_registrations(session, student_id, semester_id))


def cumulative_gpa(session: Session, student_id: int) -> GpaSummary:
    return summarize(_completed_registrations(session, student_id))


def transcript(session: Session, student_id: int) -> Transcript:
    registrations = _completed_registrations(session, student_id)

    terms: List[TranscriptTerm] = []
    by_semester = {}
    for reg in registrations:
        semester = reg.section.semester
        term = by_semester.get(semester.id)
        if term is None:
            term = TranscriptTerm(semester=semester, label=format_semester_label(semester))
            by_semester[semester.id] = term
            terms.append(term)
        term.registrations.append(reg)

    for term in terms:
        term.summary = summarize(term.registrations)

    return Transcript(student_id=student_id, terms=terms, cumulative=summarize(registrations))
