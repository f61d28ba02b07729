import pytest
from sqlalchemy.exc import OperationalError

from aaraa_erp.models import Submission, SubmissionStatus
from aaraa_erp.services import find_employee, record_submission
from aaraa_erp.uplink import UplinkTimeout, UploadPipeline


class FakeUplink:
    def __init__(self, url=None, error=None):
        self.url = url
        self.error = error
        self.paths = []

    def upload(self, data, path, *, filename, content_type="application/octet-stream"):
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.url or f"https://storage.googleapis.com/test-bucket/{path}"


def _failing_recorder(**kwargs):
    raise OperationalError("INSERT INTO submissions", {}, Exception("database is locked"))


def test_successful_run_records_submission(app):
    progress = []
    uplink = FakeUplink()
    employee = find_employee("AI1003")

    result = UploadPipeline(uplink, record_submission, progress=progress.append).run(
        employee, b"img", "tower 4.jpg", content_type="image/jpeg", title="Tower 4"
    )

    assert progress == [10, 50, 85, 100]
    assert not result.orphaned
    assert uplink.paths[0].startswith("Site/AI1003/")
    assert uplink.paths[0].endswith("-tower_4.jpg")

    stored = Submission.query.filter_by(url=result.url).one()
    assert stored.status == "PENDING"
    assert stored.department == "Site"
    assert stored.title == "Tower 4"


def test_vault_scope_is_recorded_as_approved(app):
    employee = find_employee("AI1008")
    result = UploadPipeline(FakeUplink(), record_submission).run(
        employee, b"pdf", "invoice.pdf", scope="vault", status=SubmissionStatus.APPROVED
    )
    assert result.submission.status == "APPROVED"
    assert "/vault/AI1008/" in result.url


def test_timeout_creates_no_submission(app):
    before = Submission.query.count()
    progress = []
    pipeline = UploadPipeline(FakeUplink(error=UplinkTimeout()), record_submission, progress=progress.append)

    with pytest.raises(UplinkTimeout):
        pipeline.run(find_employee("AI1003"), b"img", "x.jpg")

    assert Submission.query.count() == before
    assert progress == [10, 50, 0]


def test_insert_failure_is_reported_as_orphaned(app):
    before = Submission.query.count()
    result = UploadPipeline(FakeUplink(), _failing_recorder).run(find_employee("AI1003"), b"img", "x.jpg")

    assert result.orphaned
    assert result.url.startswith("https://storage.googleapis.com/test-bucket/Site/AI1003/")
    assert isinstance(result.error, OperationalError)
    assert Submission.query.count() == before
