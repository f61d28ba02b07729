import pytest

from aaraa_erp import create_app
from aaraa_erp.extensions import cloud_storage, db
from aaraa_erp.seed import seed_all


class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name

    def upload_from_string(self, data, content_type=None, timeout=None):
        if self.bucket.write_error is not None:
            raise self.bucket.write_error
        self.bucket.objects[self.name] = (data, content_type, timeout)


class FakeBucket:
    def __init__(self, name, *, exists=True, exists_error=None, write_error=None):
        self.name = name
        self._exists = exists
        self.exists_error = exists_error
        self.write_error = write_error
        self.objects = {}

    def exists(self):
        if self.exists_error is not None:
            raise self.exists_error
        return self._exists

    def blob(self, name):
        return FakeBlob(self, name)


class FakeStorageClient:
    def __init__(self, bucket):
        self._bucket = bucket

    def bucket(self, name):
        assert name == self._bucket.name
        return self._bucket

    def list_blobs(self, bucket_name, prefix=None):
        return [
            FakeBlob(self._bucket, name)
            for name in self._bucket.objects
            if prefix is None or name.startswith(prefix)
        ]


@pytest.fixture
def app():
    app = create_app("config.TestConfig")
    with app.app_context():
        db.create_all()
        seed_all(demo=True)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def bucket(app):
    fake = FakeBucket(app.config["GCS_BUCKET"])
    cloud_storage.use_client(FakeStorageClient(fake))
    return fake


@pytest.fixture
def login(client):
    def _login(employee_id, password="123"):
        return client.post("/api/auth/login", json={"employee_id": employee_id, "password": password})

    return _login
