"""
aaraa_erp/blueprints/approvals/routes.py

Approvals queue (ADMIN / SUPER_ADMIN).

- GET  /api/approvals                       pending + escalated queue
- POST /api/approvals/<id>/approve          reason optional
- POST /api/approvals/<id>/reject           reason REQUIRED
- POST /api/approvals/<id>/escalate         reason optional
- POST /api/approvals/batch-approve         {"ids": [...]}

Statuses only move forward; acting on a decided submission answers 409.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ... import notifications
from ...errors import ERPError, NotFound, ValidationError
from ...models import SubmissionStatus
from ...security import current_employee, feature_required
from ...services import decide_submission, pending_approvals

approvals_bp = Blueprint("approvals", __name__, url_prefix="/api/approvals")

ACTIONS = {
    "approve": SubmissionStatus.APPROVED,
    "reject": SubmissionStatus.REJECTED,
    "escalate": SubmissionStatus.ESCALATED,
}


@approvals_bp.route("")
@login_required
@feature_required("approvals")
def list_pending():
    department = (request.args.get("department") or "").strip() or None
    items = pending_approvals(department)
    return jsonify({"items": [s.to_dict() for s in items]})


@approvals_bp.route("/<submission_id>/<action>", methods=["POST"])
@login_required
@feature_required("approvals")
def act(submission_id: str, action: str):
    target = ACTIONS.get(action)
    if target is None:
        raise NotFound(f"Unknown approval action: {action}")

    data = request.get_json(silent=True) or request.form.to_dict()
    approver = current_employee()
    try:
        submission = decide_submission(submission_id, target, approver=approver, reason=data.get("reason"))
    except ValidationError as exc:
        notifications.push(approver.id, "Action blocked", exc.message, "WARNING")
        raise

    message = f"Submission {submission.id} {target.value.lower()} successfully."
    notifications.push(approver.id, "Approvals", message, "SUCCESS")
    return jsonify({"message": message, "submission": submission.to_dict()})


@approvals_bp.route("/batch-approve", methods=["POST"])
@login_required
@feature_required("approvals")
def batch_approve():
    """Approve each id independently; failures are reported per id."""
    data = request.get_json(silent=True) or {}
    ids = data.get("ids") or []
    if not isinstance(ids, list) or not ids:
        raise ValidationError("Select at least one submission.")

    approver = current_employee()
    approved, failed = [], {}
    for submission_id in ids:
        try:
            decide_submission(str(submission_id), SubmissionStatus.APPROVED, approver=approver)
            approved.append(str(submission_id))
        except ERPError as exc:
            failed[str(submission_id)] = exc.message

    if approved:
        notifications.push(approver.id, "Approvals", f"{len(approved)} submission(s) approved.", "SUCCESS")
    return jsonify({"approved": approved, "failed": failed})
