"""Request/response shaping shared by the JSON routes."""

from typing import Any, Dict, List

from flask import request

from services.errors import RegistrarError
from services.grading import FinalGradeEntry, ScoreEntry
from utils.semesters import format_semester_label


class InvalidPayload(RegistrarError):
    status_code = 400
    default_code = "invalid_payload"


def json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidPayload("Request body must be a JSON object.")
    return body


def _require_int(item: Dict[str, Any], key: str) -> int:
    try:
        return int(item[key])
    except (KeyError, TypeError, ValueError):
        raise InvalidPayload(f'"{key}" must be an integer.')


def parse_score_entries(items) -> List[ScoreEntry]:
    if not isinstance(items, list):
        raise InvalidPayload('"scores" must be a list.')

    entries = []
    for item in items:
        if not isinstance(item, dict):
            raise InvalidPayload("Each score must be an object.")
        entries.append(
            ScoreEntry(
                registration_id=_require_int(item, "registration_id"),
                assessment_id=_require_int(item, "assessment_id"),
                # range + type checks happen in the aggregator
                score=item.get("score"),
            )
        )
    return entries


def parse_final_grade_entries(items) -> List[FinalGradeEntry]:
    if not isinstance(items, list):
        raise InvalidPayload('"final_grades" must be a list.')

    entries = []
    for item in items:
        if not isinstance(item, dict):
            raise InvalidPayload("Each final grade must be an object.")
        entries.append(
            FinalGradeEntry(
                registration_id=_require_int(item, "registration_id"),
                overall_percentage=item.get("overall_percentage"),
                final_letter_grade=item.get("final_letter_grade"),
            )
        )
    return entries


def section_dict(section) -> Dict[str, Any]:
    course = section.course
    return {
        "id": section.id,
        "course_id": section.course_id,
        "course_code": course.code if course else None,
        "course_title": course.title if course else None,
        "credits": course.credits if course else None,
        "semester_id": section.semester_id,
        "semester": format_semester_label(section.semester),
        "section_number": section.section_number,
        "teacher_id": section.teacher_id,
        "max_capacity": section.max_capacity,
        "current_enrollment": section.current_enrollment,
        "seats_left": section.seats_left,
        "prerequisites": sorted(edge.prereq_course.code for edge in course.prereq_edges) if course else [],
    }


def summary_dict(summary) -> Dict[str, Any]:
    return {
        "gpa": summary.gpa,
        "credits": summary.credits,
        "quality_points": round(summary.quality_points, 2),
    }
