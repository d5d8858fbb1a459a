"""
Global test fixtures for pytest.

Provides:
- An app on in-memory SQLite with the document slot provisioned
- An in-memory object store installed in place of MinIO
- JWT headers by role
"""
import json

import pytest
from flask_jwt_extended import create_access_token

from ebook_service import create_app
from ebook_service.application.ebook.draft_store import provision_draft
from ebook_service.extensions import db
from ebook_service.utils.storage import StorageError


class FakeStorage:
    """
    In-memory stand-in for ObjectStorage.

    `fail_on` maps an operation name ("put", "get", "delete", "exists") to
    a StorageError raised on every call of that operation.
    """

    def __init__(self, *, versions_bucket="versions", media_bucket="media", enabled=True):
        self.versions_bucket = versions_bucket
        self.media_bucket = media_bucket
        self._enabled = enabled
        self.objects = {}
        self.deleted = []
        self.fail_on = {}

    @property
    def enabled(self):
        return self._enabled

    def _check(self, operation):
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def _bucket(self, bucket):
        return bucket or self.versions_bucket

    def put_json(self, key, obj, *, bucket=None):
        self._check("put")
        self.objects[(self._bucket(bucket), key)] = json.loads(json.dumps(obj))
        return f"s3://{self._bucket(bucket)}/{key}"

    def get_json(self, key, *, bucket=None):
        self._check("get")
        try:
            return json.loads(json.dumps(self.objects[(self._bucket(bucket), key)]))
        except KeyError:
            raise StorageError("NoSuchKey: missing", key=key, code="NoSuchKey")

    def delete(self, key, *, bucket=None):
        self._check("delete")
        self.objects.pop((self._bucket(bucket), key), None)
        self.deleted.append((self._bucket(bucket), key))

    def exists(self, key, *, bucket=None):
        self._check("exists")
        return (self._bucket(bucket), key) in self.objects

    def list_keys(self, prefix, *, bucket=None):
        target = self._bucket(bucket)
        return sorted(k for (b, k) in self.objects if b == target and k.startswith(prefix))

    def add_media(self, key):
        self.objects[(self.media_bucket, key)] = "binary"

    def has_media(self, key):
        return (self.media_bucket, key) in self.objects


# ============================================================================
# Application
# ============================================================================

@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(storage):
    app = create_app("testing")
    app.extensions["ebook_storage"] = storage

    with app.app_context():
        db.create_all()
        provision_draft()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


# ============================================================================
# Auth
# ============================================================================

def _headers(role, identity="user-1"):
    token = create_access_token(identity=identity, additional_claims={"role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def author_headers(app):
    return _headers("author", identity="author-1")


@pytest.fixture
def admin_headers(app):
    return _headers("admin", identity="admin-1")


@pytest.fixture
def reader_headers(app):
    return _headers("reader", identity="reader-1")


# ============================================================================
# Row locks
# ============================================================================

@pytest.fixture
def lock_spy(monkeypatch):
    """
    Records every `SELECT ... FOR UPDATE` issued through the lock helpers
    as (table name, primary key), in call order.
    """
    from ebook_service.utils import ledger, pending, upsert

    calls = []
    original = upsert.lock_row

    def spy(model, pk_column, pk_value):
        calls.append((model.__tablename__, pk_value))
        return original(model, pk_column, pk_value)

    for module in (upsert, ledger, pending):
        monkeypatch.setattr(module, "lock_row", spy)
    return calls
