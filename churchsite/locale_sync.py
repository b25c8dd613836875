"""
Locale-paired content

Every paired collection is stored twice: the canonical (English) list under
``key`` and its Tamil counterpart under ``key_ta``. Both lists hold records
with the same ids; text fields differ per locale, shared fields are identical.
"""

import copy
from typing import Any, Dict, List, NamedTuple, Optional

import structlog

from churchsite.constants import DEFAULT_LOCALE, SUPPORTED_LOCALES, TRANSLATED_LOCALE
from churchsite.content_store import TieredContentStore
from churchsite.exceptions import ValidationException

logger = structlog.get_logger('locale_sync')

ACTION_CREATE = 'create'
ACTION_UPDATE = 'update'
ACTION_DELETE = 'delete'
SYNC_ACTIONS = (ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE)


class LocaleKey(NamedTuple):
    base: str
    locale: str = DEFAULT_LOCALE

    @property
    def storage_key(self) -> str:
        if self.locale not in SUPPORTED_LOCALES:
            raise ValidationException(f"Unsupported locale: {self.locale!r}")
        if self.locale == DEFAULT_LOCALE:
            return self.base
        return f"{self.base}_{self.locale}"

    @classmethod
    def pair(cls, base: str):
        """(canonical, translated) keys for one collection"""
        return cls(base, DEFAULT_LOCALE), cls(base, TRANSLATED_LOCALE)


class ParsedCollection(NamedTuple):
    records: List[Any]
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error is None


def parse_collection(value) -> ParsedCollection:
    """Validate a stored list collection; anything not list-shaped becomes []."""
    if value is None:
        return ParsedCollection([])
    if not isinstance(value, list):
        return ParsedCollection([], f"expected a list, got {type(value).__name__}")
    return ParsedCollection(list(value))


def same_id(record, record_id) -> bool:
    return isinstance(record, dict) and 'id' in record and str(record['id']) == str(record_id)


def find_record(records, record_id) -> Optional[Dict[str, Any]]:
    for record in records:
        if same_id(record, record_id):
            return record
    return None


def _fields_without_id(fields) -> Dict[str, Any]:
    return {k: v for k, v in (fields or {}).items() if k != 'id'}


class LocalePairSynchronizer:
    """Applies create/update/delete to a canonical list and its translated twin."""

    def __init__(self, store: TieredContentStore):
        self.store = store

    def load(self, base: str, locale: str = DEFAULT_LOCALE) -> List[Any]:
        key = LocaleKey(base, locale).storage_key
        parsed = parse_collection(self.store.get(key, []))
        if not parsed.valid:
            logger.warning(f"Treating malformed collection {key} as empty: {parsed.error}")
        return parsed.records

    def apply(self, key: str, action: str, payload: Optional[Dict[str, Any]] = None, record_id=None) -> bool:
        if action not in SYNC_ACTIONS:
            raise ValidationException(f"Unknown sync action: {action!r}")

        canonical_key, translated_key = LocaleKey.pair(key)
        canonical = self.load(key, canonical_key.locale)
        translated = self.load(key, translated_key.locale)
        payload = payload or {}

        if action == ACTION_CREATE:
            en, ta = payload.get('en'), payload.get('ta')
            if not isinstance(en, dict) or not isinstance(ta, dict):
                raise ValidationException("create requires both 'en' and 'ta' records")
            if 'id' not in en or en.get('id') != ta.get('id'):
                raise ValidationException("create requires 'en' and 'ta' records with the same id")
            canonical.append(copy.deepcopy(en))
            translated.append(copy.deepcopy(ta))

        elif action == ACTION_UPDATE:
            if record_id is None:
                raise ValidationException("update requires a record id")
            en_fields = _fields_without_id(payload.get('en'))
            ta_fields = _fields_without_id(payload.get('ta'))

            canonical_record = find_record(canonical, record_id)
            if canonical_record is not None:
                canonical_record.update(en_fields)

            translated_record = find_record(translated, record_id)
            if translated_record is not None:
                translated_record.update(ta_fields)
            elif canonical_record is not None:
                # Records created before translations existed get their twin now
                healed = dict(ta_fields)
                healed['id'] = canonical_record['id']
                translated.append(healed)
                logger.info(f"Added missing {translated_key.storage_key} record for id {record_id}")

            if canonical_record is None and translated_record is None:
                logger.debug(f"No {key} record with id {record_id}, nothing to update")

        elif action == ACTION_DELETE:
            if record_id is None:
                raise ValidationException("delete requires a record id")
            canonical = [r for r in canonical if not same_id(r, record_id)]
            translated = [r for r in translated if not same_id(r, record_id)]

        return self._save_pair(canonical_key.storage_key, canonical, translated_key.storage_key, translated)

    def save_document_pair(self, base: str, en: Dict[str, Any], ta: Dict[str, Any]) -> bool:
        """Persist a singleton document (about, home, ...) in both locales"""
        canonical_key, translated_key = LocaleKey.pair(base)
        return self._save_pair(canonical_key.storage_key, en, translated_key.storage_key, ta)

    def _save_pair(self, canonical_key, canonical, translated_key, translated) -> bool:
        # Two independent saves; a failure in between leaves the pair out of step
        # until the next successful write of the same key.
        canonical_ok = self.store.save(canonical_key, canonical)
        translated_ok = self.store.save(translated_key, translated)
        if not (canonical_ok and translated_ok):
            logger.error(
                f"Partial locale pair write: {canonical_key}={'ok' if canonical_ok else 'failed'}, "
                f"{translated_key}={'ok' if translated_ok else 'failed'}"
            )
        return canonical_ok and translated_ok


def localize_document(canonical, translated, fields=None) -> Dict[str, Any]:
    """
    Overlay non-empty translated fields on the canonical document.

    Only ``fields`` are taken from the translation when given; ``id`` never is.
    """
    result = dict(canonical) if isinstance(canonical, dict) else {}
    if isinstance(translated, dict):
        for field, value in translated.items():
            if field == 'id' or (fields is not None and field not in fields):
                continue
            if value not in (None, ''):
                result[field] = value
    return result


def localize_collection(canonical, translated, fields=None) -> List[Dict[str, Any]]:
    """Canonical records in canonical order, each overlaid with its translation."""
    canonical_records = parse_collection(canonical).records
    translated_records = parse_collection(translated).records
    by_id = {str(r['id']): r for r in translated_records if isinstance(r, dict) and 'id' in r}
    localized = []
    for record in canonical_records:
        if not isinstance(record, dict):
            continue
        localized.append(localize_document(record, by_id.get(str(record.get('id'))), fields))
    return localized
