"""
Tests for the JSONBin client and the cached remote document
"""
import threading

import pytest
import requests
from unittest.mock import MagicMock, patch

from churchsite.exceptions import RemoteStoreException
from churchsite.jsonbin import DocumentCache, JsonBinClient, RemoteDocumentStore


class TestJsonBinClient:
    """Tests for raw GET/PUT against a bin"""

    def test_configured_requires_bin_and_secret(self):
        assert JsonBinClient("bin123", "key").configured
        assert not JsonBinClient("bin123", "").configured
        assert not JsonBinClient(None, "key").configured

    def test_read_record_unconfigured_raises(self):
        client = JsonBinClient("", "")
        with patch('churchsite.jsonbin.requests.get') as mock_get:
            with pytest.raises(RemoteStoreException):
                client.read_record()
            mock_get.assert_not_called()

    def test_read_record_returns_record(self, mock_response):
        client = JsonBinClient("bin123", "key")
        with patch('churchsite.jsonbin.requests.get', return_value=mock_response({"about": {"title": "Hi"}})) as mock_get:
            record = client.read_record()

        assert record == {"about": {"title": "Hi"}}
        mock_get.assert_called_once_with(
            "https://api.jsonbin.io/v3/b/bin123/latest",
            headers={"X-Master-Key": "key"},
            timeout=10,
        )

    def test_read_record_connection_error(self):
        client = JsonBinClient("bin123", "key")
        with patch('churchsite.jsonbin.requests.get', side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(RemoteStoreException, match="fetch error"):
                client.read_record()

    def test_read_record_http_error(self, mock_response):
        resp = mock_response({})
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError("401 Unauthorized")
        client = JsonBinClient("bin123", "wrong")
        with patch('churchsite.jsonbin.requests.get', return_value=resp):
            with pytest.raises(RemoteStoreException):
                client.read_record()

    def test_read_record_without_record_object(self):
        resp = MagicMock()
        resp.json.return_value = {"message": "Bin not found"}
        client = JsonBinClient("bin123", "key")
        with patch('churchsite.jsonbin.requests.get', return_value=resp):
            with pytest.raises(RemoteStoreException, match="no record"):
                client.read_record()

    def test_write_record_puts_whole_document(self):
        client = JsonBinClient("bin123", "key", api_url="https://example.test/v3/b/")
        document = {"events": [], "about": {"title": "Hi"}}
        with patch('churchsite.jsonbin.requests.put') as mock_put:
            client.write_record(document)

        mock_put.assert_called_once_with(
            "https://example.test/v3/b/bin123",
            json=document,
            headers={"X-Master-Key": "key", "Content-Type": "application/json"},
            timeout=10,
        )

    def test_write_record_failure_raises(self):
        client = JsonBinClient("bin123", "key")
        with patch('churchsite.jsonbin.requests.put', side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(RemoteStoreException, match="save error"):
                client.write_record({})


class TestDocumentCache:
    """Tests for snapshot freshness"""

    def test_fresh_within_ttl(self, clock):
        cache = DocumentCache(ttl=30, clock=clock)
        cache.store({"about": {}})
        clock.advance(29.9)
        assert cache.is_fresh()

    def test_stale_at_ttl(self, clock):
        cache = DocumentCache(ttl=30, clock=clock)
        cache.store({"about": {}})
        clock.advance(30)
        assert not cache.is_fresh()
        assert cache.age() == 30

    def test_empty_snapshot_never_fresh(self, clock):
        cache = DocumentCache(ttl=30, clock=clock)
        assert not cache.is_fresh()
        cache.store({})
        assert not cache.is_fresh()


class TestRemoteDocumentStore:
    """Tests for read-through caching of the remote document"""

    def test_second_read_within_ttl_uses_cache(self, remote, remote_bin, clock):
        remote_bin.record = {"events": [{"id": 1}]}
        remote.fetch_document()
        clock.advance(10)
        document = remote.fetch_document()

        assert document == {"events": [{"id": 1}]}
        assert remote_bin.reads == 1

    def test_read_after_ttl_refetches(self, remote, remote_bin, clock):
        remote_bin.record = {"events": []}
        remote.fetch_document()
        clock.advance(31)
        remote.fetch_document()
        assert remote_bin.reads == 2

    def test_force_bypasses_cache(self, remote, remote_bin):
        remote_bin.record = {"events": []}
        remote.fetch_document()
        remote.fetch_document(force=True)
        assert remote_bin.reads == 2

    def test_failed_fetch_keeps_stale_snapshot(self, remote, remote_bin, clock):
        remote_bin.record = {"about": {"title": "Old"}}
        remote.fetch_document()
        clock.advance(60)
        remote_bin.fail_reads = True

        assert remote.fetch_document() is None
        assert remote.stale_snapshot() == {"about": {"title": "Old"}}

    def test_unconfigured_never_fetches(self, make_bin):
        client = make_bin(configured=False)
        remote = RemoteDocumentStore(client)
        assert remote.fetch_document() is None
        assert client.reads == 0

    def test_replace_document_refreshes_cache(self, remote, remote_bin):
        assert remote.replace_document({"about": {"title": "New"}})
        assert remote.fetch_document() == {"about": {"title": "New"}}
        assert remote_bin.reads == 0

    def test_replace_document_failure(self, remote, remote_bin):
        remote_bin.fail_writes = True
        assert not remote.replace_document({"about": {}})
        assert remote.stale_snapshot() is None

    def test_stale_snapshot_is_a_copy(self, remote, remote_bin):
        remote_bin.record = {"events": [{"id": 1}]}
        remote.fetch_document()
        remote.stale_snapshot()["events"].append({"id": 2})
        assert remote.stale_snapshot() == {"events": [{"id": 1}]}

    def test_fresh_read_not_blocked_by_fetch_in_flight(self, make_bin, clock):
        started = threading.Event()
        release = threading.Event()
        finished = threading.Event()

        class BlockingBin(make_bin):
            block = False

            def read_record(self):
                if self.block:
                    started.set()
                    release.wait(timeout=5)
                    finished.set()
                return super().read_record()

        remote_bin = BlockingBin(record={"events": [{"id": 1}]})
        remote = RemoteDocumentStore(remote_bin, DocumentCache(ttl=30, clock=clock))
        remote.fetch_document()

        remote_bin.block = True
        worker = threading.Thread(target=remote.fetch_document, kwargs={"force": True})
        worker.start()
        assert started.wait(timeout=5)

        assert remote.fetch_document() == {"events": [{"id": 1}]}
        assert not finished.is_set()

        release.set()
        worker.join()
