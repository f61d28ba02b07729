"""
aaraa_erp/cli.py

Flask CLI commands.

    flask seed [--demo]
    flask uplink FILE --employee AI1003 [--scope vault] [--type BILL] [--title ...]
    flask uplink-test --employee AI1001
    flask reconcile-bucket [--prefix vault/]

uplink / uplink-test run the full pipeline against UPLOAD_ENDPOINT (a running
server): log in, upload, then record the Submission in this app's database.
"""

from __future__ import annotations

import io
import mimetypes
import time
from datetime import datetime
from pathlib import Path

import click
from flask import Flask, current_app
from PIL import Image, ImageDraw, ImageFont

from .errors import ERPError
from .models import SubmissionStatus, SubmissionType
from .seed import seed_all
from .services import find_employee, record_submission
from .storage import find_orphaned_objects
from .uplink import UplinkClient, UplinkError, UploadPipeline

SELF_TEST_TITLE = "GCS Integrator Test: Success"
BRAND_RED = (237, 47, 57)


def _progress_bar(value: int) -> None:
    click.echo(f"  [{value:>3}%]")


def _pipeline() -> UploadPipeline:
    client = UplinkClient(current_app.config["UPLOAD_ENDPOINT"], timeout=current_app.config["UPLOAD_TIMEOUT"])
    return UploadPipeline(client, record_submission, progress=_progress_bar)


def _login(pipeline: UploadPipeline, employee_id: str, password: str | None) -> None:
    pipeline.client.login(employee_id, password or current_app.config["SHARED_LOGIN_PASSWORD"])


def _report(result) -> None:
    if result.orphaned:
        raise click.ClickException(
            f"Uploaded to {result.url} but the submission was not recorded: {result.error}. "
            "The object is orphaned; run `flask reconcile-bucket` to list it."
        )
    click.echo(f"Submission {result.submission.id} ({result.submission.status}) -> {result.url}")


def render_test_card(employee_id: str, *, size: int = 400) -> bytes:
    """Small branded PNG used by the uplink self-test."""
    image = Image.new("RGB", (size, size), color=BRAND_RED)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    draw.text((40, 60), "AARAA", fill="white", font=font)
    draw.text((40, 100), "Cloud Uplink Test", fill="white", font=font)
    draw.text((40, 300), f"User: {employee_id}", fill="white", font=font)
    draw.text((40, 330), f"Time: {datetime.now():%H:%M:%S}", fill="white", font=font)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def register_cli(app: Flask) -> None:
    @app.cli.command("seed")
    @click.option("--demo", is_flag=True, help="Also seed the SUB501..SUB503 pending approvals.")
    def seed_command(demo: bool):
        """Seed employees and BOQ master data (idempotent)."""
        counts = seed_all(demo=demo)
        click.echo(", ".join(f"{key}: {value} new" for key, value in counts.items()))

    @app.cli.command("uplink")
    @click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    @click.option("--employee", "employee_id", required=True)
    @click.option("--password", default=None)
    @click.option("--scope", default=None, help="Path scope; 'vault' records the asset as APPROVED.")
    @click.option("--type", "submission_type", type=click.Choice([t.value for t in SubmissionType]),
                  default=SubmissionType.SITE_PHOTO.value)
    @click.option("--title", default=None)
    def uplink_command(file_path: Path, employee_id, password, scope, submission_type, title):
        """Upload a local file and register it as a submission."""
        try:
            employee = find_employee(employee_id)
            pipeline = _pipeline()
            _login(pipeline, employee.id, password)
            result = pipeline.run(
                employee,
                file_path.read_bytes(),
                file_path.name,
                content_type=mimetypes.guess_type(file_path.name)[0] or "application/octet-stream",
                scope=scope,
                submission_type=SubmissionType(submission_type),
                title=title or f"Site Photo: {file_path.name}",
                status=SubmissionStatus.APPROVED if scope == "vault" else SubmissionStatus.PENDING,
            )
        except (ERPError, UplinkError) as exc:
            raise click.ClickException(str(exc))
        _report(result)

    @app.cli.command("uplink-test")
    @click.option("--employee", "employee_id", required=True)
    @click.option("--password", default=None)
    def uplink_test_command(employee_id, password):
        """End-to-end check: generated PNG -> bucket -> APPROVED system-test submission."""
        try:
            employee = find_employee(employee_id)
            pipeline = _pipeline()
            _login(pipeline, employee.id, password)
            result = pipeline.run(
                employee,
                render_test_card(employee.id),
                f"gcs-test-{int(time.time() * 1000)}.png",
                content_type="image/png",
                scope="system-tests",
                submission_type=SubmissionType.SITE_PHOTO,
                title=SELF_TEST_TITLE,
                status=SubmissionStatus.APPROVED,
                department="System/Test",
            )
        except (ERPError, UplinkError) as exc:
            raise click.ClickException(str(exc))
        _report(result)
        click.echo("GCS Uplink Test: Connection Verified & Logged")

    @app.cli.command("reconcile-bucket")
    @click.option("--prefix", default=None)
    def reconcile_command(prefix):
        """List bucket objects that no submission references."""
        orphans = find_orphaned_objects(prefix)
        for name in orphans:
            click.echo(name)
        click.echo(f"{len(orphans)} orphaned object(s) in {current_app.config['GCS_BUCKET']}.")
