"""Staff endpoints for the reference data the ledger depends on."""

from flask import jsonify
from flask_login import current_user, login_required

from . import main_bp
from .payloads import json_body, section_dict
from extensions import db
from services.admin import create_section, delete_section, delete_semester
from services.roles import Permission, require


@main_bp.post("/sections")
@login_required
def add_section():
    require(current_user, Permission.MANAGE_SECTIONS)
    body = json_body()

    section = create_section(
        db.session,
        course_id=body.get("course_id"),
        semester_id=body.get("semester_id"),
        section_number=body.get("section_number"),
        max_capacity=body.get("max_capacity"),
        teacher_id=body.get("teacher_id"),
    )
    return jsonify(section=section_dict(section)), 201


@main_bp.delete("/sections/<int:section_id>")
@login_required
def remove_section(section_id: int):
    require(current_user, Permission.MANAGE_SECTIONS)
    delete_section(db.session, section_id)
    return "", 204


@main_bp.delete("/semesters/<int:semester_id>")
@login_required
def remove_semester(semester_id: int):
    require(current_user, Permission.MANAGE_SECTIONS)
    delete_semester(db.session, semester_id)
    return "", 204
