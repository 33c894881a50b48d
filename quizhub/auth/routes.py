"""
Account endpoints: register, login, logout and the current user.

Sessions are cookie based (Flask-Login); quiz routes read the signed-in
user through ``quizhub.auth.identity``.
"""
from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import IntegrityError

from quizhub import db
from quizhub.auth import auth_bp
from quizhub.auth.models import User
from quizhub.auth.utils import (
    hash_password,
    normalize_email,
    validate_registration,
    verify_password,
)
from quizhub.common.decorators import handle_api_errors
from quizhub.security import SecurityLogger

DUPLICATE_EMAIL = "An account with this email already exists"


@auth_bp.route("/register", methods=["POST"])
@handle_api_errors
def register():
    """
    Create an account.

    Request body:
    {
        "email": "user@example.com",
        "password": "at least MIN_PASSWORD_LENGTH characters",
        "full_name": "Jane Doe"
    }
    """
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    full_name = (data.get("full_name") or "").strip() if isinstance(data.get("full_name"), str) else ""

    error = validate_registration(email, password, full_name)
    if error:
        return jsonify({"success": False, "error": error}), 400

    if db.session.execute(db.select(User.id).filter_by(email=email)).first():
        return jsonify({"success": False, "error": DUPLICATE_EMAIL}), 409

    user = User(email=email, password_hash=hash_password(password), full_name=full_name)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        db.session.rollback()
        return jsonify({"success": False, "error": DUPLICATE_EMAIL}), 409

    current_app.logger.info(f"Registered user {user.id} ({email})")
    return jsonify({"success": True, "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
@handle_api_errors
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    remember = bool(data.get("remember", False))

    if not email or not password or not isinstance(password, str):
        return jsonify({"success": False, "error": "Email and password are required"}), 400

    user = db.session.execute(db.select(User).filter_by(email=email)).scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        SecurityLogger.log_failed_login(email)
        return jsonify({"success": False, "error": "Invalid email or password"}), 401

    login_user(user, remember=remember)
    SecurityLogger.log_successful_login(user.id, user.email)

    return jsonify({"success": True, "user": user.to_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"success": True, "user": current_user.to_dict()}), 200
