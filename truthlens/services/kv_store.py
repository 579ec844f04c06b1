"""
Key-value persistence for analysis and video records.

Values are JSON documents stored in a single table. No ordering,
versioning or expiry: callers sort and truncate prefix scans themselves.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from truthlens.models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def put(self, key: str, value: Dict[str, Any]) -> None:
        db = self._session_factory()
        try:
            db.merge(KVEntry(key=key, value=value))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        logger.debug(f"Stored {key}")

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        db = self._session_factory()
        try:
            entry = db.get(KVEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        # Escape LIKE wildcards: "analysis_" must match literally
        pattern = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        db = self._session_factory()
        try:
            entries = db.query(KVEntry).filter(KVEntry.key.like(pattern, escape="\\")).all()
            return [entry.value for entry in entries]
        finally:
            db.close()
