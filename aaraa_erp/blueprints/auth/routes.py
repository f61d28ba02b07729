"""
Authentication Routes

Provides:
- POST /api/auth/login
- POST /api/auth/logout
- GET  /api/auth/me
- GET  /api/auth/csrf

Session lifecycle:
- Starts on successful login (permanent session, PERMANENT_SESSION_LIFETIME).
- Ends on explicit logout or when the session expires.
- The wizard draft and the notification feed are stored server-side per employee
  and reset at login and logout.

Known gap:
- The password is one shared placeholder (SHARED_LOGIN_PASSWORD), not a per-employee
  credential. Identity rests on the employee ID lookup alone.
"""

from flask import Blueprint, current_app, jsonify, request, session
from flask_login import login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ... import notifications
from ...errors import AuthenticationError
from ...security import current_employee, navigation_for
from ...services import discard_wizard_draft, find_employee

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

PASSWORD_MESSAGE = "Access Denied: Incorrect password."


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate an employee.

    Order of checks:
    - shared password
    - case-insensitive employee ID lookup
    """
    data = _payload()
    employee_id = (data.get("employee_id") or "").strip()
    password = data.get("password") or ""

    if password != current_app.config["SHARED_LOGIN_PASSWORD"]:
        current_app.logger.warning("Login rejected (password) for %s", employee_id or "<blank>")
        raise AuthenticationError(PASSWORD_MESSAGE)

    try:
        employee = find_employee(employee_id)
    except AuthenticationError:
        current_app.logger.warning("Login rejected (unknown id) for %s", employee_id or "<blank>")
        raise

    session.clear()
    session.permanent = True
    login_user(employee)
    discard_wizard_draft(employee.id)
    notifications.clear(employee.id)
    notifications.push(employee.id, "Welcome", f"Signed in as {employee.name} ({employee.designation}).", "SUCCESS")
    current_app.logger.info("Login: %s (%s)", employee.id, employee.role)

    return jsonify({"employee": employee.to_dict(), "navigation": navigation_for(employee)})


# ============================================================
# LOGOUT
# ============================================================

@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """End the session and everything held in it."""
    employee_id = current_employee().id
    discard_wizard_draft(employee_id)
    notifications.clear(employee_id)
    logout_user()
    current_app.logger.info("Logout: %s", employee_id)
    return jsonify({"ok": True})


# ============================================================
# SESSION INFO
# ============================================================

@auth_bp.route("/me")
@login_required
def me():
    employee = current_employee()
    return jsonify({"employee": employee.to_dict(), "navigation": navigation_for(employee)})


@auth_bp.route("/csrf")
def csrf_token():
    """Token for the SPA's X-CSRFToken header on mutating requests."""
    return jsonify({"csrf_token": generate_csrf()})
