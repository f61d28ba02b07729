"""
aaraa_erp/blueprints/uplink/routes.py

Upload endpoint and health check.

- POST /api/upload: multipart (file, path) -> bucket object -> {success, path, url}
- GET  /api/health: {status, bucket, environment}

Each request resolves to a single storage.UploadOutcome, answered exactly once.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from ...storage import UploadOutcome, default_object_path, write_object

uplink_bp = Blueprint("uplink", __name__, url_prefix="/api")


@uplink_bp.route("/health")
def health():
    return jsonify({
        "status": "ok",
        "bucket": current_app.config["GCS_BUCKET"],
        "environment": current_app.config.get("APP_ENV"),
    })


@uplink_bp.route("/upload", methods=["POST"])
@login_required
def upload():
    upload_file = request.files.get("file")
    if upload_file is None or not upload_file.filename:
        return jsonify({"error": "No file uploaded"}), 400

    bucket_name = current_app.config["GCS_BUCKET"]
    current_app.logger.info("Uplink Request: %s to %s", upload_file.filename, bucket_name)

    target_path = (request.form.get("path") or "").strip() or default_object_path(upload_file.filename)

    try:
        outcome = write_object(upload_file.read(), target_path, upload_file.mimetype)
    except Exception as exc:
        current_app.logger.exception("Internal Upload Error")
        outcome = UploadOutcome(500, {"error": str(exc)})

    return jsonify(outcome.body), outcome.status_code
