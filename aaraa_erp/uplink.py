"""
aaraa_erp/uplink.py

Client side of the upload pipeline.

- UplinkClient posts a file to the upload endpoint (multipart: file + path) under a
  deadline covering the whole exchange, and maps every failure onto an UplinkError
  subclass so callers can tell "timed out" (check connection) from other failures (retry).
- UploadPipeline uploads, then registers a Submission, reporting coarse progress
  milestones along the way.

Known gap: the bucket write and the Submission insert are not atomic. An insert
failure after a successful upload leaves an unreferenced object in the bucket; the
pipeline reports it (UploadResult.orphaned) and storage.find_orphaned_objects()
lists such objects.
"""

from __future__ import annotations

import json
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import requests

from .models import Profile, Submission, SubmissionStatus, SubmissionType

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_TIMEOUT = 45

TIMEOUT_MESSAGE = "Uplink Timed Out: The cloud cluster did not respond in time."

# Progress milestones (caller-side heuristics, not byte-accurate)
PROGRESS_START = 10
PROGRESS_SENDING = 50
PROGRESS_RESPONSE = 85
PROGRESS_DONE = 100

_WHITESPACE = re.compile(r"\s+")


class UplinkError(Exception):
    """Upload did not produce a public URL."""


class UplinkTimeout(UplinkError):
    def __init__(self, message: str = TIMEOUT_MESSAGE):
        super().__init__(message)


class UplinkTransportError(UplinkError):
    """Network failure before any response arrived."""


class UplinkHTTPError(UplinkError):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class UplinkRejected(UplinkError):
    """Response envelope parsed but reported success = false."""


def sanitize_filename(filename: str) -> str:
    name = (filename or "file").replace("/", "_").replace("\\", "_")
    return _WHITESPACE.sub("_", name.strip()) or "file"


def build_destination_path(scope: str, employee_id: str, filename: str, *, now_ms: int | None = None) -> str:
    """{scope}/{employeeId}/{epoch-millis}-{sanitizedFilename}"""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    scope = _WHITESPACE.sub("_", scope.strip().strip("/"))
    return f"{scope}/{employee_id}/{stamp}-{sanitize_filename(filename)}"


class UplinkClient:
    """HTTP client for POST /api/upload."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = DEFAULT_UPLOAD_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def _api_url(self, path: str) -> str:
        root = self.endpoint.rsplit("/api/", 1)[0]
        return f"{root}/api/{path}"

    def _refresh_csrf(self) -> None:
        response = self.session.get(self._api_url("auth/csrf"), timeout=self.timeout)
        response.raise_for_status()
        self.session.headers["X-CSRFToken"] = response.json()["csrf_token"]

    def login(self, employee_id: str, password: str) -> dict:
        """
        Open an authenticated session for the upload endpoint.

        Login rotates the session, so the CSRF token is fetched again afterwards.
        """
        try:
            self._refresh_csrf()
            response = self.session.post(
                self._api_url("auth/login"),
                json={"employee_id": employee_id, "password": password},
                timeout=self.timeout,
            )
            if not response.ok:
                raise UplinkHTTPError(_error_message(response.status_code, response.content), response.status_code)
            self._refresh_csrf()
        except requests.Timeout as exc:
            raise UplinkTimeout() from exc
        except requests.RequestException as exc:
            raise UplinkTransportError(f"Upload failed: {exc}") from exc
        return response.json()["employee"]

    def _transmit(self, files: dict, path: str, deadline: float) -> Tuple[bool, int, bytes]:
        """POST and read the whole body, giving up once the deadline has passed."""
        with self.session.post(
            self.endpoint,
            files=files,
            data={"path": path},
            timeout=self.timeout,
            stream=True,
        ) as response:
            body = bytearray()
            for chunk in response.iter_content(chunk_size=1024):
                if time.monotonic() > deadline:
                    raise UplinkTimeout()
                body.extend(chunk)
            return response.ok, response.status_code, bytes(body)

    def upload(self, data: bytes, path: str, *, filename: str, content_type: str = "application/octet-stream") -> str:
        """
        Transmit one file and return its public URL.

        self.timeout bounds the whole exchange (connect, send, response body),
        not just each socket operation.
        """
        files = {"file": (filename, data, content_type)}
        deadline = time.monotonic() + self.timeout

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._transmit, files, path, deadline)
        timed_out = False
        try:
            ok, status_code, body = future.result(timeout=max(deadline - time.monotonic(), 0))
        except FuturesTimeoutError as exc:
            timed_out = True
            future.cancel()
            logger.warning("Uplink aborted after %ss: %s", self.timeout, path)
            raise UplinkTimeout() from exc
        except requests.Timeout as exc:
            logger.warning("Uplink timed out after %ss: %s", self.timeout, path)
            raise UplinkTimeout() from exc
        except requests.RequestException as exc:
            logger.error("GCS Pipeline Failure: %s", exc)
            raise UplinkTransportError(f"Upload failed: {exc}") from exc
        finally:
            executor.shutdown(wait=not timed_out, cancel_futures=True)

        if not ok:
            raise UplinkHTTPError(_error_message(status_code, body), status_code)

        try:
            envelope = json.loads(body)
        except ValueError as exc:
            raise UplinkRejected("Uplink returned an unreadable response.") from exc

        if not isinstance(envelope, dict) or not envelope.get("success"):
            error = envelope.get("error") if isinstance(envelope, dict) else None
            raise UplinkRejected(error or "Uplink to GCS failed.")

        return envelope["url"]


def _error_message(status_code: int, body: bytes) -> str:
    try:
        parsed = json.loads(body)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    return f"HTTP status {status_code}"


@dataclass
class UploadResult:
    url: str
    submission: Optional[Submission] = None
    error: Optional[Exception] = None

    @property
    def orphaned(self) -> bool:
        """Object stored but no Submission references it."""
        return self.submission is None


Recorder = Callable[..., Submission]
ProgressCallback = Callable[[int], None]


class UploadPipeline:
    """
    Upload a file, then register it as a Submission.

    recorder(employee=..., url=..., type=..., title=..., status=..., department=...)
    inserts and returns the Submission; services.record_submission is the default
    wired by the CLI.
    """

    def __init__(self, client: UplinkClient, recorder: Recorder, *, progress: Optional[ProgressCallback] = None):
        self.client = client
        self.recorder = recorder
        self.progress = progress or (lambda value: None)

    def run(
        self,
        employee: Profile,
        data: bytes,
        filename: str,
        *,
        content_type: str = "application/octet-stream",
        scope: Optional[str] = None,
        submission_type: SubmissionType = SubmissionType.SITE_PHOTO,
        title: Optional[str] = None,
        status: SubmissionStatus = SubmissionStatus.PENDING,
        department: Optional[str] = None,
    ) -> UploadResult:
        self.progress(PROGRESS_START)
        path = build_destination_path(scope or employee.department or "uploads", employee.id, filename)

        self.progress(PROGRESS_SENDING)
        try:
            url = self.client.upload(data, path, filename=filename, content_type=content_type)
        except UplinkError:
            self.progress(0)
            raise
        self.progress(PROGRESS_RESPONSE)

        try:
            submission = self.recorder(
                employee=employee,
                url=url,
                type=submission_type,
                title=title or filename,
                status=status,
                department=department or employee.department or "General",
            )
        except Exception as exc:
            logger.error("Submission insert failed after upload, object orphaned at %s: %s", url, exc)
            self.progress(0)
            return UploadResult(url=url, submission=None, error=exc)

        self.progress(PROGRESS_DONE)
        return UploadResult(url=url, submission=submission)
