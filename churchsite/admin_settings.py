"""
Admin Settings Store
Credentials and site flags kept in their own JSONBin document, read and written directly
"""

import copy
from typing import Any, Dict

import structlog

from churchsite.constants import DEFAULT_ADMIN_SETTINGS
from churchsite.exceptions import RemoteStoreException
from churchsite.jsonbin import JsonBinClient
from churchsite.utils import sanitize_sensitive_data

logger = structlog.get_logger('admin_settings')


class AdminSettingsStore:
    """
    No cache and no local file: when the admin bin is unconfigured or down,
    get_settings() returns the built-in defaults (including default credentials).
    """

    def __init__(self, client: JsonBinClient):
        self.client = client

    def get_settings(self) -> Dict[str, Any]:
        settings = copy.deepcopy(DEFAULT_ADMIN_SETTINGS)
        if not self.client.configured:
            return settings

        try:
            record = self.client.read_record()
        except RemoteStoreException as e:
            logger.warning(f"Error fetching admin settings, using defaults: {e.message}")
            return settings

        settings.update(record)
        return settings

    def save_settings(self, settings: Dict[str, Any]) -> bool:
        if not self.client.configured:
            logger.warning("Admin settings bin not configured, settings not saved")
            return False

        try:
            self.client.write_record(settings)
        except RemoteStoreException as e:
            logger.error(f"Error saving admin settings: {e.message}")
            return False

        logger.info(f"Admin settings saved: {sanitize_sensitive_data(settings)}")
        return True

    def check_credentials(self, username: str, password: str) -> bool:
        settings = self.get_settings()
        return bool(username) and username == settings.get("username") and password == settings.get("password")
