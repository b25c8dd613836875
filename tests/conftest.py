"""
Pytest fixtures and configuration for church site tests
"""
import copy
import os

import pytest
from unittest.mock import MagicMock

from churchsite.constants import DEFAULT_SETTINGS
from churchsite.content_store import TieredContentStore
from churchsite.exceptions import RemoteStoreException
from churchsite.jsonbin import DocumentCache, RemoteDocumentStore
from churchsite.local_store import LocalFileStore
from churchsite.locale_sync import LocalePairSynchronizer
from churchsite.settings import merge_settings


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeBin:
    """In-memory stand-in for JsonBinClient"""

    def __init__(self, record=None, configured=True, name="content"):
        self.record = record if record is not None else {}
        self.configured = configured
        self.name = name
        self.fail_reads = False
        self.fail_writes = False
        self.reads = 0
        self.writes = []

    def read_record(self):
        self.reads += 1
        if self.fail_reads:
            raise RemoteStoreException("JSONBin fetch error: connection refused")
        return copy.deepcopy(self.record)

    def write_record(self, document):
        if self.fail_writes:
            raise RemoteStoreException("JSONBin save error: 500")
        self.writes.append(copy.deepcopy(document))
        self.record = copy.deepcopy(document)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def content_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return str(path)


@pytest.fixture
def local_store(content_dir):
    return LocalFileStore(content_dir)


@pytest.fixture
def remote_bin():
    return FakeBin()


@pytest.fixture
def remote(remote_bin, clock):
    return RemoteDocumentStore(remote_bin, DocumentCache(ttl=30, clock=clock))


@pytest.fixture
def store(local_store, remote):
    return TieredContentStore(local_store, remote)


@pytest.fixture
def local_only_store(local_store):
    return TieredContentStore(local_store, RemoteDocumentStore(FakeBin(configured=False)))


@pytest.fixture
def sync(store):
    return LocalePairSynchronizer(store)


@pytest.fixture
def mock_response():
    """Successful JSONBin response wrapping a record"""
    def _make(record, status_code=200):
        resp = MagicMock()
        resp.status_code = status_code
        resp.json.return_value = {"record": record, "metadata": {"id": "bin123", "private": True}}
        return resp
    return _make


@pytest.fixture
def site_settings(tmp_path):
    return merge_settings(DEFAULT_SETTINGS, {
        "storage": {
            "content_dir": str(tmp_path / "data"),
            "upload_dir": str(tmp_path / "uploads"),
        },
    })


@pytest.fixture
def app(site_settings):
    from churchsite.app import create_app

    os.makedirs(site_settings["storage"]["content_dir"], exist_ok=True)
    app = create_app(
        test_config={"TESTING": True, "SECRET_KEY": "test-secret-key"},
        settings=site_settings,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed(app):
    """Write content straight into the local content files"""
    def _seed(key, value):
        app.content_store.local.write(key, value)
    return _seed


@pytest.fixture
def admin_client(client):
    response = client.post("/admin/login", data={"username": "admin", "password": "church123"})
    assert response.status_code == 302
    return client


@pytest.fixture
def make_bin():
    return FakeBin
