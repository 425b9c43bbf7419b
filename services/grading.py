# services/grading.py
"""Grade aggregator

- save_scores writes one grade sheet (scores + final grades) in a single transaction
- percentages are sum(score) / sum(max_score) over every assessment of the
  section, a missing or cleared score counts as 0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.assessment import Assessment, AssessmentScore
from models.registration import Registration, REGISTERED, COMPLETED
from models.user import User
from services.enrollment import get_section, release_seats
from services.errors import (
    AssessmentNotFound,
    InvalidAssessment,
    InvalidFinalGrade,
    RegistrationNotFound,
    ScoreOutOfRange,
)
from services.unit_of_work import lock_section, transaction
from services.validation import validate_final_grades, validate_max_score, validate_score_entries

logger = logging.getLogger(__name__)

# Highest matching cutoff wins; anything below the last one is an F.
LETTER_THRESHOLDS = (
    (90, "A"),
    (85, "A-"),
    (80, "B+"),
    (75, "B"),
    (70, "B-"),
    (65, "C+"),
    (60, "C"),
    (55, "C-"),
    (50, "D"),
)
LETTER_GRADES = tuple(letter for _, letter in LETTER_THRESHOLDS) + ("F",)

# Registrations that appear on a grade sheet
GRADED_STATUSES = (REGISTERED, COMPLETED)


@dataclass(frozen=True)
class ScoreEntry:
    registration_id: int
    assessment_id: int
    score: Optional[float]


@dataclass(frozen=True)
class FinalGradeEntry:
    registration_id: int
    overall_percentage: Optional[float]
    final_letter_grade: Optional[str]


@dataclass
class RosterRow:
    registration: Registration
    # assessment id -> stored score (None when cleared or never graded)
    scores: Dict[int, Optional[float]] = field(default_factory=dict)
    percentage: float = 0.0
    letter_grade: str = "F"


def letter_grade_for(percentage: float) -> str:
    for cutoff, letter in LETTER_THRESHOLDS:
        if percentage >= cutoff:
            return letter
    return "F"


def overall_percentage(assessments: Sequence[Assessment], scores_by_assessment: Dict[int, Optional[float]]) -> float:
    total_max = sum(a.max_score for a in assessments)
    if not assessments or total_max <= 0:
        return 0.0

    achieved = sum(scores_by_assessment.get(a.id) or 0.0 for a in assessments)
    return achieved * 100 / total_max


def _graded_registrations(session: Session, section_id: int) -> Dict[int, Registration]:
    stmt = select(Registration).where(
        Registration.section_id == section_id,
        Registration.status.in_(GRADED_STATUSES),
    )
    return {r.id: r for r in session.execute(stmt).scalars()}


def _stored_scores(session: Session, registration_ids: Iterable[int]) -> Dict[tuple, AssessmentScore]:
    ids = list(registration_ids)
    if not ids:
        return {}
    stmt = select(AssessmentScore).where(AssessmentScore.registration_id.in_(ids))
    return {(s.registration_id, s.assessment_id): s for s in session.execute(stmt).scalars()}


def _scores_for(registration_id: int, stored: Dict[tuple, AssessmentScore]) -> Dict[int, Optional[float]]:
    return {aid: row.score_achieved for (rid, aid), row in stored.items() if rid == registration_id}


def save_scores(
    session: Session,
    section_id: int,
    score_entries: Iterable[ScoreEntry],
    final_grade_entries: Iterable[FinalGradeEntry],
    *,
    rederive: bool = False,
) -> None:
    """Persist a section's grade sheet: all of it or none of it.

    Non-null scores are upserted per (registration, assessment); a null score
    clears the stored value but keeps the row. Final grades are written as
    given unless `rederive` is set, in which case percentage and letter are
    recomputed from the stored scores for every registration listed.
    """
    section = get_section(session, section_id)
    score_entries = list(score_entries)
    final_grade_entries = list(final_grade_entries)

    assessments = {a.id: a for a in section.assessments}
    registrations = _graded_registrations(session, section_id)

    for entry in score_entries:
        if entry.registration_id not in registrations:
            raise RegistrationNotFound(
                f"Registration {entry.registration_id} is not on the roster of section {section_id}."
            )
        if entry.assessment_id not in assessments:
            raise AssessmentNotFound(
                f"Assessment {entry.assessment_id} does not belong to section {section_id}."
            )
    for entry in final_grade_entries:
        if entry.registration_id not in registrations:
            raise RegistrationNotFound(
                f"Registration {entry.registration_id} is not on the roster of section {section_id}."
            )

    problems = validate_score_entries(score_entries, assessments)
    if problems:
        logger.warning("Grade sheet for section %s refused: %s", section_id, problems)
        raise ScoreOutOfRange(problems)

    if not rederive:
        grade_problems = validate_final_grades(final_grade_entries, LETTER_GRADES)
        if grade_problems:
            raise InvalidFinalGrade("; ".join(grade_problems), details={"problems": grade_problems})

    stored = _stored_scores(session, registrations.keys())
    now = datetime.utcnow()

    with transaction(session):
        for entry in score_entries:
            key = (entry.registration_id, entry.assessment_id)
            row = stored.get(key)

            if entry.score is None:
                if row is not None:
                    row.score_achieved = None
                    row.graded_at = None
                continue

            if row is None:
                row = AssessmentScore(
                    registration_id=entry.registration_id,
                    assessment_id=entry.assessment_id,
                )
                session.add(row)
                stored[key] = row

            row.score_achieved = float(entry.score)
            row.graded_at = now

        if rederive:
            ordered = list(assessments.values())
            final_grade_entries = [
                _derived_entry(entry.registration_id, ordered, stored) for entry in final_grade_entries
            ]

        for entry in final_grade_entries:
            registration = registrations[entry.registration_id]
            registration.overall_percentage = entry.overall_percentage
            registration.final_letter_grade = entry.final_letter_grade
            registration.updated_at = now

    logger.info(
        "Saved %d scores and %d final grades for section %s",
        len(score_entries),
        len(final_grade_entries),
        section_id,
    )


def _derived_entry(registration_id: int, assessments: Sequence[Assessment], stored: Dict[tuple, AssessmentScore]) -> FinalGradeEntry:
    pct = overall_percentage(assessments, _scores_for(registration_id, stored))
    return FinalGradeEntry(
        registration_id=registration_id,
        overall_percentage=pct,
        final_letter_grade=letter_grade_for(pct),
    )


def compute_final_grades(session: Session, section_id: int) -> List[FinalGradeEntry]:
    """Server-side percentage + letter for every graded registration of a section."""
    section = get_section(session, section_id)
    assessments = list(section.assessments)
    registrations = _graded_registrations(session, section_id)
    stored = _stored_scores(session, registrations.keys())

    return [_derived_entry(reg_id, assessments, stored) for reg_id in sorted(registrations)]


def section_roster(session: Session, section_id: int) -> List[RosterRow]:
    section = get_section(session, section_id)
    assessments = list(section.assessments)

    stmt = (
        select(Registration)
        .join(User, Registration.student_id == User.id)
        .where(
            Registration.section_id == section_id,
            Registration.status.in_(GRADED_STATUSES),
        )
        .order_by(User.last_name, User.first_name, Registration.id)
    )
    registrations = list(session.execute(stmt).scalars())
    stored = _stored_scores(session, [r.id for r in registrations])

    rows: List[RosterRow] = []
    for registration in registrations:
        scores = _scores_for(registration.id, stored)
        pct = overall_percentage(assessments, scores)
        rows.append(
            RosterRow(
                registration=registration,
                scores={a.id: scores.get(a.id) for a in assessments},
                percentage=pct,
                letter_grade=letter_grade_for(pct),
            )
        )
    return rows


def complete_section(session: Session, section_id: int) -> int:
    """Move every graded Registered row of a section to Completed.

    Rows without a final letter grade stay Registered. The section counter
    drops by the number completed so it keeps matching the Registered rows.
    """
    get_section(session, section_id)

    with transaction(session):
        lock_section(session, section_id)
        # statuses are read under the lock so a concurrent drop is not counted twice
        stmt = (
            select(Registration)
            .where(
                Registration.section_id == section_id,
                Registration.status == REGISTERED,
                Registration.final_letter_grade.is_not(None),
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        graded = list(session.execute(stmt).scalars())
        for registration in graded:
            registration.status = COMPLETED
        release_seats(session, section_id, len(graded))

    logger.info("Completed %d registrations in section %s", len(graded), section_id)
    return len(graded)


def create_assessment(
    session: Session,
    section_id: int,
    name: str,
    max_score: float,
    assessment_type: Optional[str] = None,
) -> Assessment:
    get_section(session, section_id)

    name = (name or "").strip()
    problems = validate_max_score(max_score)
    if not name:
        problems.insert(0, "Assessment name is required.")
    if problems:
        raise InvalidAssessment("; ".join(problems), details={"problems": problems})

    with transaction(session):
        assessment = Assessment(
            section_id=section_id,
            name=name,
            max_score=float(max_score),
            assessment_type=assessment_type or None,
        )
        session.add(assessment)
        session.flush()

    return assessment


def delete_assessment(session: Session, assessment_id: int) -> None:
    """Delete an assessment together with every score recorded against it."""
    assessment = session.get(Assessment, assessment_id)
    if assessment is None:
        raise AssessmentNotFound(f"Assessment {assessment_id} does not exist.")

    with transaction(session):
        for score in list(assessment.scores):
            session.delete(score)
        session.delete(assessment)

    logger.info("Deleted assessment %s", assessment_id)
