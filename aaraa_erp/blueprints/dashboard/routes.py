"""
aaraa_erp/blueprints/dashboard/routes.py

Dashboard, navigation, notifications and the assistant widget.

- GET  /api/dashboard                      profile, counters, assistant insight
- GET  /api/navigation                     menu filtered by role
- GET  /api/notifications                  feed + unread count
- POST /api/notifications/<id>/read
- POST /api/notifications/read-all
- POST /api/assistant/chat                 {"message": ..., "history": [...]}
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from ... import notifications
from ...assistant import CHAT_UNAVAILABLE, AssistantError, chat, get_dashboard_insight
from ...errors import NotFound, ValidationError
from ...models import Project, Submission, SubmissionStatus
from ...security import MANAGERS, current_employee, feature_required, navigation_for
from ...services import count_pending_approvals

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")

INSIGHT_CONTEXT = "Overview of active projects and pending approvals"


@dashboard_bp.route("/dashboard")
@login_required
@feature_required("dashboard")
def dashboard():
    employee = current_employee()

    counters = {
        "my_submissions": Submission.query.filter_by(employee_id=employee.id).count(),
        "my_pending": Submission.query.filter_by(
            employee_id=employee.id, status=SubmissionStatus.PENDING.value
        ).count(),
    }
    if employee.has_role(MANAGERS):
        counters["pending_approvals"] = count_pending_approvals()
        counters["projects"] = Project.query.count()

    return jsonify({
        "employee": employee.to_dict(),
        "dashboard": employee.dashboard,
        "counters": counters,
        "insight": get_dashboard_insight(employee, INSIGHT_CONTEXT),
    })


@dashboard_bp.route("/navigation")
@login_required
def navigation():
    return jsonify({"items": navigation_for(current_employee())})


# ---------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------
@dashboard_bp.route("/notifications")
@login_required
def notification_feed():
    return jsonify(notifications.list_notifications(current_employee().id))


@dashboard_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
@login_required
def notification_read(notification_id: int):
    employee_id = current_employee().id
    if not notifications.mark_read(employee_id, notification_id):
        raise NotFound("Notification not found.")
    return jsonify(notifications.list_notifications(employee_id))


@dashboard_bp.route("/notifications/read-all", methods=["POST"])
@login_required
def notification_read_all():
    employee_id = current_employee().id
    notifications.mark_all_read(employee_id)
    return jsonify(notifications.list_notifications(employee_id))


# ---------------------------------------------------------------------
# Assistant
# ---------------------------------------------------------------------
@dashboard_bp.route("/assistant/chat", methods=["POST"])
@login_required
def assistant_chat():
    data = request.get_json(silent=True) or {}
    message = (data.get("message") or "").strip()
    if not message:
        raise ValidationError("Message is required.")

    history = data.get("history") or []
    if not isinstance(history, list):
        raise ValidationError("History must be a list of messages.")

    try:
        reply = chat(current_employee(), message, history)
    except AssistantError as exc:
        current_app.logger.warning("Assistant chat failed: %s", exc)
        return jsonify({"error": CHAT_UNAVAILABLE}), 503

    return jsonify({"reply": reply})
