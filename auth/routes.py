from flask import Blueprint, jsonify
from flask_login import current_user, login_user, logout_user, login_required
from models.user import User
from routes.payloads import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.full_name,
        "role": user.role.value,
    }


@auth_bp.post("/login")
def login():
    body = json_body()
    email = (body.get("email") or "").strip()
    password = body.get("password") or ""

    user = User.query.filter_by(email=email).first()

    if user and user.check_password(password):
        login_user(user)
        return jsonify(user=_user_dict(user))

    return jsonify(error="invalid_credentials", message="Invalid email or password."), 401


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return "", 204


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user=_user_dict(current_user))
