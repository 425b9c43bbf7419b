"""Student endpoints

- POST /sections/<id>/register and /drop go through the enrollment ledger
- GET  /me/transcript is computed on every request (no stored GPA)
"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from . import main_bp
from .payloads import section_dict, summary_dict
from extensions import db
from services.enrollment import drop, open_sections, register, student_registrations
from services.gpa import grade_point_for, transcript
from services.roles import Permission, require
from utils.semesters import format_semester_label


@main_bp.get("/semesters/<int:semester_id>/sections")
@login_required
def list_sections(semester_id: int):
    department_id = request.args.get("department_id", type=int)
    sections = open_sections(db.session, semester_id, department_id)
    return jsonify(sections=[section_dict(s) for s in sections])


@main_bp.post("/sections/<int:section_id>/register")
@login_required
def register_for_section(section_id: int):
    require(current_user, Permission.REGISTER)
    registration = register(db.session, current_user.id, section_id)
    return jsonify(registration=registration.to_dict()), 201


@main_bp.post("/sections/<int:section_id>/drop")
@login_required
def drop_section(section_id: int):
    require(current_user, Permission.DROP)
    registration = drop(
        db.session,
        current_user.id,
        section_id,
        enforce_add_drop_window=current_app.config.get("ENFORCE_ADD_DROP_WINDOW", False),
    )
    return jsonify(registration=registration.to_dict())


@main_bp.get("/me/registrations")
@login_required
def my_registrations():
    require(current_user, Permission.REGISTER)
    semester_id = request.args.get("semester_id", type=int)
    registrations = student_registrations(db.session, current_user.id, semester_id)

    out = []
    for reg in registrations:
        item = reg.to_dict()
        item["section"] = section_dict(reg.section)
        out.append(item)
    return jsonify(registrations=out)


@main_bp.get("/me/transcript")
@login_required
def my_transcript():
    require(current_user, Permission.VIEW_TRANSCRIPT)
    result = transcript(db.session, current_user.id)

    terms = []
    for term in result.terms:
        terms.append({
            "semester_id": term.semester.id,
            "label": format_semester_label(term.semester),
            "courses": [
                {
                    "course_code": reg.section.course.code,
                    "title": reg.section.course.title,
                    "credits": reg.section.course.credits,
                    "final_letter_grade": reg.final_letter_grade,
                    "grade_point": grade_point_for(reg.final_letter_grade),
                }
                for reg in term.registrations
            ],
            "sgpa": summary_dict(term.summary),
        })

    return jsonify(student_id=result.student_id, terms=terms, cgpa=summary_dict(result.cumulative))
