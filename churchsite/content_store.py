"""
Tiered Content Store
Resolves content keys across the remote document cache, the remote bin and local files
"""

import copy
import threading
from typing import Any, Optional

import structlog

from churchsite.exceptions import LocalStoreException, ValidationException
from churchsite.jsonbin import RemoteDocumentStore
from churchsite.local_store import LocalFileStore
from churchsite.metrics import content_local_fallbacks_total, content_saves_total

logger = structlog.get_logger('content_store')


class TieredContentStore:
    """
    get(key, default) / save(key, value) over three tiers.

    Reads: fresh cache -> remote fetch -> local file -> stale remote snapshot -> default.
    Writes: local file always, then a read-modify-write of the whole remote document.
    """

    def __init__(self, local: LocalFileStore, remote: Optional[RemoteDocumentStore] = None):
        self.local = local
        self.remote = remote
        # Serializes the remote read-modify-write so concurrent saves of
        # different keys cannot drop each other's changes.
        self._write_lock = threading.Lock()

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None and self.remote.configured

    def get(self, key: str, default: Any = None) -> Any:
        if self.remote_configured:
            document = self.remote.fetch_document()
            if document is not None and key in document:
                return copy.deepcopy(document[key])

        try:
            value = self.local.read(key)
            content_local_fallbacks_total.labels(key=key).inc()
            return value
        except (LocalStoreException, ValidationException) as e:
            logger.debug(f"Local fallback missed for {key}: {e.message}")

        if self.remote_configured:
            stale = self.remote.stale_snapshot()
            if stale is not None and key in stale:
                logger.info(f"Serving {key} from stale remote snapshot")
                return stale[key]

        return copy.deepcopy(default)

    def save(self, key: str, value: Any) -> bool:
        local_ok = True
        try:
            self.local.write(key, value)
        except (LocalStoreException, ValidationException) as e:
            local_ok = False
            logger.error(e.message)

        if not self.remote_configured:
            content_saves_total.labels(key=key, status="local" if local_ok else "error").inc()
            return local_ok

        remote_ok = self._save_remote(key, value)
        content_saves_total.labels(key=key, status="ok" if remote_ok else "error").inc()
        return local_ok and remote_ok

    def _save_remote(self, key: str, value: Any) -> bool:
        with self._write_lock:
            latest = self.remote.fetch_document(force=True)
            if latest is not None:
                document = copy.deepcopy(latest)
            else:
                document = self.remote.stale_snapshot()
                if document is None:
                    logger.error(f"Error saving {key} to JSONBin: current document could not be read")
                    return False
                logger.warning(f"Saving {key} on top of a stale remote snapshot")

            document[key] = copy.deepcopy(value)
            if not self.remote.replace_document(document):
                logger.error(f"Error saving {key} to JSONBin")
                return False

        logger.info(f"Saved {key} to JSONBin")
        return True
