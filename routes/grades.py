"""Teacher endpoints: roster, grade sheet, completion, assessments."""

from flask import current_app, jsonify
from flask_login import current_user, login_required

from . import main_bp
from .payloads import InvalidPayload, json_body, parse_final_grade_entries, parse_score_entries
from extensions import db
from models.assessment import Assessment
from services.enrollment import get_section
from services.errors import AssessmentNotFound
from services.grading import (
    complete_section,
    compute_final_grades,
    create_assessment,
    delete_assessment,
    save_scores,
    section_roster,
)
from services.roles import Permission, require, require_section_teacher


@main_bp.get("/sections/<int:section_id>/roster")
@login_required
def roster(section_id: int):
    section = get_section(db.session, section_id)
    require_section_teacher(current_user, section)

    rows = section_roster(db.session, section_id)
    return jsonify(
        section_id=section_id,
        assessments=[
            {"id": a.id, "name": a.name, "max_score": a.max_score, "assessment_type": a.assessment_type}
            for a in section.assessments
        ],
        roster=[
            {
                "registration_id": row.registration.id,
                "student_id": row.registration.student_id,
                "student_name": row.registration.student.full_name,
                "status": row.registration.status,
                "scores": {str(aid): score for aid, score in row.scores.items()},
                "computed_percentage": round(row.percentage, 2),
                "computed_letter_grade": row.letter_grade,
                "overall_percentage": row.registration.overall_percentage,
                "final_letter_grade": row.registration.final_letter_grade,
            }
            for row in rows
        ],
    )


@main_bp.post("/sections/<int:section_id>/grades")
@login_required
def save_grades(section_id: int):
    """Save a grade sheet.

    Body: {"scores": [...], "final_grades": [...]}. When "final_grades" is
    left out, every roster row's percentage and letter are derived from the
    stored scores after the save.
    """
    section = get_section(db.session, section_id)
    require_section_teacher(current_user, section)

    body = json_body()
    scores = parse_score_entries(body.get("scores", []))

    rederive = current_app.config.get("REDERIVE_FINAL_GRADES", False)
    if "final_grades" in body:
        final_grades = parse_final_grade_entries(body["final_grades"])
    else:
        # recomputed from the stored scores once this sheet is applied
        final_grades = compute_final_grades(db.session, section_id)
        rederive = True

    save_scores(db.session, section_id, scores, final_grades, rederive=rederive)
    return roster(section_id)


@main_bp.post("/sections/<int:section_id>/complete")
@login_required
def complete(section_id: int):
    section = get_section(db.session, section_id)
    require_section_teacher(current_user, section)

    completed = complete_section(db.session, section_id)
    return jsonify(section_id=section_id, completed=completed)


@main_bp.post("/sections/<int:section_id>/assessments")
@login_required
def add_assessment(section_id: int):
    section = get_section(db.session, section_id)
    require(current_user, Permission.MANAGE_ASSESSMENTS)
    require_section_teacher(current_user, section)

    body = json_body()
    if "max_score" not in body:
        raise InvalidPayload('"max_score" is required.')

    assessment = create_assessment(
        db.session,
        section_id,
        body.get("name"),
        body["max_score"],
        body.get("assessment_type"),
    )
    return jsonify(
        assessment={
            "id": assessment.id,
            "name": assessment.name,
            "max_score": assessment.max_score,
            "assessment_type": assessment.assessment_type,
        }
    ), 201


@main_bp.delete("/assessments/<int:assessment_id>")
@login_required
def remove_assessment(assessment_id: int):
    assessment = db.session.get(Assessment, assessment_id)
    if assessment is None:
        raise AssessmentNotFound(f"Assessment {assessment_id} does not exist.")
    require(current_user, Permission.MANAGE_ASSESSMENTS)
    require_section_teacher(current_user, assessment.section)

    delete_assessment(db.session, assessment_id)
    return "", 204
