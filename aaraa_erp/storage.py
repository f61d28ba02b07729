"""
aaraa_erp/storage.py

Bucket writes for the upload endpoint, and bucket/ledger reconciliation.

write_object() resolves every path (missing bucket, access failure, write failure,
success) into exactly one UploadOutcome, so the endpoint answers each request once.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import List

from flask import current_app
from google.api_core import exceptions as gcs_exceptions
from google.auth.exceptions import GoogleAuthError

from .extensions import cloud_storage, db
from .models import Submission

PUBLIC_URL_ROOT = "https://storage.googleapis.com"

_WHITESPACE = re.compile(r"\s+")


@dataclass
class UploadOutcome:
    status_code: int
    body: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def public_url(bucket_name: str, object_name: str) -> str:
    return f"{PUBLIC_URL_ROOT}/{bucket_name}/{object_name}"


def default_object_path(filename: str, *, now_ms: int | None = None) -> str:
    """uploads/{epoch-millis}-{filename}, whitespace collapsed to underscores."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"uploads/{stamp}-{_WHITESPACE.sub('_', filename or 'file')}"


def write_object(data: bytes, object_path: str, content_type: str | None) -> UploadOutcome:
    """Write one object into the configured bucket."""
    bucket_name = current_app.config["GCS_BUCKET"]

    try:
        bucket = cloud_storage.bucket(bucket_name)
        exists = bucket.exists()
    except (gcs_exceptions.GoogleAPIError, GoogleAuthError) as exc:
        current_app.logger.error("Bucket Access Error: %s", exc)
        return UploadOutcome(500, {"error": "Cloud Storage Access Denied. Check IAM permissions."})

    if not exists:
        return UploadOutcome(404, {"error": f"Bucket '{bucket_name}' not found."})

    blob = bucket.blob(object_path)
    try:
        # Single-shot upload (no resumable session) bounded by the storage timeout.
        blob.upload_from_string(
            data,
            content_type=content_type or "application/octet-stream",
            timeout=current_app.config["STORAGE_WRITE_TIMEOUT"],
        )
    except (gcs_exceptions.GoogleAPIError, GoogleAuthError, OSError) as exc:
        current_app.logger.error("GCS Write Stream Error: %s", exc)
        return UploadOutcome(500, {"error": f"Cloud Write Failure: {exc}"})

    url = public_url(bucket_name, blob.name)
    current_app.logger.info("Uplink Success: %s", url)
    return UploadOutcome(
        200,
        {"success": True, "path": f"gs://{bucket_name}/{blob.name}", "url": url},
    )


def find_orphaned_objects(prefix: str | None = None) -> List[str]:
    """
    Object names in the bucket that no Submission references.

    Uploads and submission inserts are not atomic: an upload whose insert failed
    leaves its object here.
    """
    bucket_name = current_app.config["GCS_BUCKET"]
    referenced = {
        url
        for (url,) in db.session.query(Submission.url).filter(Submission.url.isnot(None)).all()
    }

    orphans = []
    for blob in cloud_storage.client.list_blobs(bucket_name, prefix=prefix):
        if public_url(bucket_name, blob.name) not in referenced:
            orphans.append(blob.name)
    return orphans
