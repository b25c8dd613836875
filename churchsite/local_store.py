"""
Local File Store - one JSON document per content key on local disk
"""
import json
import os
import re

import structlog

from churchsite.exceptions import LocalStoreException, ValidationException
from churchsite.utils import safe_write_json

logger = structlog.get_logger('local_store')

KEY_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


class LocalFileStore:
    """Durable per-key JSON files under ``content_dir``."""

    def __init__(self, content_dir: str):
        self.content_dir = content_dir

    def path_for(self, key: str) -> str:
        if not isinstance(key, str) or not KEY_PATTERN.match(key):
            raise ValidationException(f"Invalid content key: {key!r}")
        return os.path.join(self.content_dir, f"{key}.json")

    def exists(self, key: str) -> bool:
        return os.path.isfile(self.path_for(key))

    def read(self, key: str):
        path = self.path_for(key)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            raise LocalStoreException(f"No local content for {key}")
        except (OSError, ValueError) as e:
            raise LocalStoreException(f"Unreadable local content for {key}: {e}")

    def write(self, key: str, value) -> None:
        path = self.path_for(key)
        try:
            safe_write_json(path, value)
        except (OSError, TypeError, ValueError) as e:
            raise LocalStoreException(f"Error writing local file for {key}: {e}")
        logger.debug(f"Wrote local content file {path}")
