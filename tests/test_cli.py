import io

import pytest
from PIL import Image

from aaraa_erp import cli
from aaraa_erp.models import Profile, Submission
from aaraa_erp.uplink import UplinkTimeout


class FakeUplinkClient:
    uploads = []
    error = None

    def __init__(self, endpoint, *, timeout):
        self.endpoint = endpoint
        self.timeout = timeout

    def login(self, employee_id, password):
        assert password == "123"
        return {"id": employee_id}

    def upload(self, data, path, *, filename, content_type):
        if self.error is not None:
            raise self.error
        self.uploads.append((path, content_type, data))
        return f"https://storage.googleapis.com/test-bucket/{path}"


@pytest.fixture
def fake_uplink(monkeypatch):
    FakeUplinkClient.uploads = []
    FakeUplinkClient.error = None
    monkeypatch.setattr(cli, "UplinkClient", FakeUplinkClient)
    return FakeUplinkClient


def test_seed_is_idempotent(app):
    result = app.test_cli_runner().invoke(args=["seed", "--demo"])
    assert result.exit_code == 0
    assert "employees: 0 new" in result.output
    assert Profile.query.count() == 13


def test_render_test_card_is_png():
    image = Image.open(io.BytesIO(cli.render_test_card("AI1001")))
    assert image.format == "PNG"
    assert image.size == (400, 400)


def test_uplink_test_records_approved_test_card(app, fake_uplink):
    result = app.test_cli_runner().invoke(args=["uplink-test", "--employee", "ai1001"])

    assert result.exit_code == 0, result.output
    assert "Connection Verified" in result.output
    [(path, content_type, _)] = fake_uplink.uploads
    assert path.startswith("system-tests/AI1001/")
    assert content_type == "image/png"

    test_card = Submission.query.filter_by(title="GCS Integrator Test: Success").one()
    assert test_card.status == "APPROVED"
    assert test_card.department == "System/Test"


def test_uplink_timeout_is_reported(app, fake_uplink, tmp_path):
    photo = tmp_path / "slab.jpg"
    photo.write_bytes(b"jpeg")
    fake_uplink.error = UplinkTimeout()
    before = Submission.query.count()

    result = app.test_cli_runner().invoke(args=["uplink", str(photo), "--employee", "AI1003"])

    assert result.exit_code != 0
    assert "Uplink Timed Out" in result.output
    assert Submission.query.count() == before


def test_uplink_vault_scope(app, fake_uplink, tmp_path):
    photo = tmp_path / "slab.jpg"
    photo.write_bytes(b"jpeg")

    result = app.test_cli_runner().invoke(args=["uplink", str(photo), "--employee", "AI1003", "--scope", "vault"])

    assert result.exit_code == 0, result.output
    [(path, content_type, _)] = fake_uplink.uploads
    assert path.startswith("vault/AI1003/")
    assert content_type == "image/jpeg"
    assert Submission.query.filter_by(title="Site Photo: slab.jpg").one().status == "APPROVED"
