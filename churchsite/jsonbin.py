"""
JSONBin Remote Document Store
Whole-document GET/PUT against a JSONBin v3 bin, with a time-boxed in-memory cache
"""

import copy
import threading
import time
from typing import Any, Callable, Dict, Optional

import requests
import structlog

from churchsite.constants import JSONBIN_API_URL, REMOTE_CACHE_TTL, REMOTE_TIMEOUT
from churchsite.exceptions import RemoteStoreException
from churchsite.metrics import remote_cache_hits_total, remote_requests_total

logger = structlog.get_logger('jsonbin')


class JsonBinClient:
    """Thin HTTP client for one bin. Raises RemoteStoreException on any failure."""

    def __init__(
        self,
        bin_id: Optional[str],
        secret: Optional[str],
        api_url: str = JSONBIN_API_URL,
        timeout: float = REMOTE_TIMEOUT,
        name: str = "content",
    ):
        self.bin_id = bin_id
        self.secret = secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.name = name

    @property
    def configured(self) -> bool:
        return bool(self.bin_id and self.secret)

    def _headers(self, json_body: bool = False) -> Dict[str, str]:
        headers = {"X-Master-Key": self.secret}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def read_record(self) -> Dict[str, Any]:
        """GET /b/{bin_id}/latest and return its ``record`` object"""
        if not self.configured:
            raise RemoteStoreException(f"Remote bin '{self.name}' is not configured")

        url = f"{self.api_url}/{self.bin_id}/latest"
        try:
            resp = requests.get(url, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            remote_requests_total.labels(bin=self.name, method="GET", status="error").inc()
            raise RemoteStoreException(f"JSONBin fetch error ({self.name}): {e}")

        record = payload.get("record") if isinstance(payload, dict) else None
        if not isinstance(record, dict):
            remote_requests_total.labels(bin=self.name, method="GET", status="invalid").inc()
            raise RemoteStoreException(f"JSONBin response for '{self.name}' has no record object")

        remote_requests_total.labels(bin=self.name, method="GET", status="ok").inc()
        return record

    def write_record(self, document: Dict[str, Any]) -> None:
        """PUT /b/{bin_id} replacing the whole document"""
        if not self.configured:
            raise RemoteStoreException(f"Remote bin '{self.name}' is not configured")

        url = f"{self.api_url}/{self.bin_id}"
        try:
            resp = requests.put(url, json=document, headers=self._headers(json_body=True), timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            remote_requests_total.labels(bin=self.name, method="PUT", status="error").inc()
            raise RemoteStoreException(f"JSONBin save error ({self.name}): {e}")

        remote_requests_total.labels(bin=self.name, method="PUT", status="ok").inc()


class DocumentCache:
    """Snapshot of one remote document plus the time it was fetched."""

    def __init__(self, ttl: float = REMOTE_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self.snapshot: Optional[Dict[str, Any]] = None
        self.fetched_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if not self.snapshot or self.fetched_at is None:
            return False
        return self.clock() - self.fetched_at < self.ttl

    def age(self) -> Optional[float]:
        if self.fetched_at is None:
            return None
        return self.clock() - self.fetched_at

    def store(self, document: Dict[str, Any]) -> None:
        self.snapshot = document
        self.fetched_at = self.clock()


class RemoteDocumentStore:
    """
    Remote document with read-through caching.

    fetch_document() returns None when the bin is unconfigured or unreachable;
    the previous snapshot is kept so it stays available via stale_snapshot().
    """

    def __init__(self, client: JsonBinClient, cache: Optional[DocumentCache] = None):
        self.client = client
        self.cache = cache or DocumentCache()
        self._fetch_lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return self.client.configured

    def fetch_document(self, force: bool = False) -> Optional[Dict[str, Any]]:
        if not self.client.configured:
            return None

        if not force and self.cache.is_fresh():
            remote_cache_hits_total.inc()
            logger.debug(f"Using cached remote document (age: {self.cache.age():.1f}s)")
            return self.cache.snapshot

        # Network I/O stays outside the lock
        try:
            document = self.client.read_record()
        except RemoteStoreException as e:
            logger.error(str(e))
            return None

        with self._fetch_lock:
            self.cache.store(document)
        return document

    def replace_document(self, document: Dict[str, Any]) -> bool:
        try:
            self.client.write_record(document)
        except RemoteStoreException as e:
            logger.error(str(e))
            return False

        with self._fetch_lock:
            self.cache.store(document)
        return True

    def stale_snapshot(self) -> Optional[Dict[str, Any]]:
        """Last successfully fetched document regardless of age"""
        if self.cache.snapshot is None:
            return None
        return copy.deepcopy(self.cache.snapshot)
