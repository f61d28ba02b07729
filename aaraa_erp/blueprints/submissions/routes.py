"""
aaraa_erp/blueprints/submissions/routes.py

Employee submissions and the media vault.

- GET  /api/submissions          own submissions, newest first
- POST /api/submissions          register a submission (manual entry, or the
                                 database step after a browser upload)
- GET  /api/vault                assets stored in the bucket

Registration after an upload is the second half of a non-atomic pair: if it fails,
the uploaded object stays in the bucket unreferenced (see `flask reconcile-bucket`).
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError

from ... import notifications
from ...extensions import db
from ...models import SubmissionStatus
from ...security import current_employee, feature_required
from ...services import record_submission, submissions_for, vault_assets

submissions_bp = Blueprint("submissions", __name__, url_prefix="/api")

_AUTO_APPROVED_SCOPES = {"vault", "system-tests"}


@submissions_bp.route("/submissions")
@login_required
@feature_required("submissions")
def list_submissions():
    employee = current_employee()
    items = submissions_for(employee_id=employee.id)
    return jsonify({"items": [s.to_dict() for s in items]})


@submissions_bp.route("/submissions", methods=["POST"])
@login_required
@feature_required("submissions")
def create_submission():
    """
    Body: type, title, amount?, url?, scope?

    Status is PENDING unless the upload went to the vault or a system test scope,
    which are recorded as APPROVED.
    """
    employee = current_employee()
    data = request.get_json(silent=True) or request.form.to_dict()

    scope = (data.get("scope") or "").strip()
    status = SubmissionStatus.APPROVED if scope in _AUTO_APPROVED_SCOPES else SubmissionStatus.PENDING
    department = "System/Test" if scope == "system-tests" else data.get("department") or employee.department

    submission = record_submission(
        employee=employee,
        url=(data.get("url") or "").strip() or None,
        type=data.get("type") or "SITE_PHOTO",
        title=data.get("title") or "",
        status=status,
        department=department,
        amount=data.get("amount"),
    )
    notifications.push(employee.id, "Submission recorded", f"{submission.title} is {submission.status}.", "SUCCESS")
    return jsonify({"submission": submission.to_dict()}), 201


@submissions_bp.route("/vault")
@login_required
@feature_required("media-vault")
def vault():
    bucket_name = current_app.config["GCS_BUCKET"]
    try:
        assets = vault_assets(bucket_name)
    except SQLAlchemyError as exc:
        # Asset sync is display-only: degrade to an empty list.
        db.session.rollback()
        current_app.logger.warning("Asset sync error: %s", exc)
        assets = []
    return jsonify({"bucket": bucket_name, "items": [a.to_dict() for a in assets]})
