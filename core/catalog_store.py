# -*- coding: utf-8 -*-
"""
Multi-Catalog Store

Keeps every catalog the user has opened, plus which one is current, as one
versioned JSON payload in a key-value storage:

    {"version": 3, "currentId": "...", "catalogs": [record, ...]}

An older single-record payload is migrated the first time the store is read.
Storage failures never reach callers: they are logged and the store keeps
serving its in-memory copy.
"""

import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import xcforge_config as config
from xcforge_exceptions import StorageError
from xcforge_logger import get_logger
from models.catalog_session import CatalogSource, ProjectFileState

logger = get_logger("core.catalog_store")


def create_catalog_id() -> str:
    return str(uuid.uuid4())


@dataclass
class StoredCatalogRecord:
    id: str
    file_name: str
    content: str
    original_content: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    last_opened: Optional[float] = None
    source: Optional[CatalogSource] = None
    project_file: Optional[ProjectFileState] = None
    document_dirty: bool = False

    def __post_init__(self):
        if self.last_opened is None:
            self.last_opened = self.timestamp

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'id': self.id,
            'fileName': self.file_name,
            'content': self.content,
            'timestamp': self.timestamp,
            'lastOpened': self.last_opened,
            'documentDirty': self.document_dirty,
        }
        if self.original_content is not None:
            out['originalContent'] = self.original_content
        if self.source is not None:
            out['source'] = self.source.to_dict()
        if self.project_file is not None:
            out['projectFile'] = self.project_file.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Optional['StoredCatalogRecord']:
        """Validate a stored record; None when it is unusable."""
        if not isinstance(data, dict):
            return None
        record_id = data.get('id')
        file_name = data.get('fileName')
        content = data.get('content')
        if not isinstance(record_id, str) or not record_id:
            return None
        if not isinstance(file_name, str) or not file_name:
            return None
        if not isinstance(content, str):
            return None

        timestamp = data.get('timestamp')
        if not _is_number(timestamp):
            timestamp = time.time()
        last_opened = data.get('lastOpened')
        if not _is_number(last_opened):
            last_opened = timestamp
        original = data.get('originalContent')

        return cls(
            id=record_id,
            file_name=file_name,
            content=content,
            original_content=original if isinstance(original, str) else None,
            timestamp=timestamp,
            last_opened=last_opened,
            source=CatalogSource.from_dict(data.get('source')),
            project_file=ProjectFileState.from_dict(data.get('projectFile')),
            document_dirty=data.get('documentDirty') is True,
        )


@dataclass
class CatalogSummary:
    id: str
    file_name: str
    timestamp: float
    last_opened: float


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CatalogStore:
    """
    Persistent list of catalogs over a KeyValueStorage.

    Attributes:
        storage: Backend with get_item / set_item / remove_item
    """

    def __init__(self, storage):
        self.storage = storage
        self._current_id: Optional[str] = None
        self._records: List[StoredCatalogRecord] = []
        self._loaded = False

    # =========================================================================
    # READ / WRITE
    # =========================================================================

    def _ensure_loaded(self):
        if self._loaded:
            return
        self._loaded = True
        try:
            if self._read_current():
                return
            self._migrate_legacy()
        except StorageError as e:
            logger.warning(f"Failed to read stored catalogs: {e}")

    def _read_current(self) -> bool:
        raw = self.storage.get_item(config.STORAGE_KEY)
        if not raw:
            return False
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored catalog payload is not valid JSON: {e}")
            return False
        if not isinstance(payload, dict) or not isinstance(payload.get('catalogs'), list):
            logger.warning("Stored catalog payload has no catalog list; ignoring it")
            return False

        records = []
        for item in payload['catalogs']:
            record = StoredCatalogRecord.from_dict(item)
            if record is None:
                logger.warning("Dropping invalid stored catalog record")
                continue
            records.append(record)

        current_id = payload.get('currentId')
        self._records = records
        self._current_id = current_id if isinstance(current_id, str) else None
        logger.debug(f"Loaded {len(records)} stored catalogs")
        return True

    def _migrate_legacy(self):
        raw = self.storage.get_item(config.LEGACY_STORAGE_KEY)
        if not raw:
            return
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Legacy catalog payload is not valid JSON: {e}")
            return
        if not isinstance(payload, dict):
            return
        file_name = payload.get('fileName')
        content = payload.get('content')
        if not isinstance(file_name, str) or not isinstance(content, str):
            return

        now = time.time()
        original = payload.get('originalContent')
        timestamp = payload.get('timestamp')
        record = StoredCatalogRecord(
            id=create_catalog_id(),
            file_name=file_name,
            content=content,
            original_content=original if isinstance(original, str) else None,
            timestamp=timestamp if _is_number(timestamp) else now,
            last_opened=now,
        )
        self._records = [record]
        self._current_id = record.id

        self.storage.set_item(config.STORAGE_KEY, self._dump())
        self.storage.remove_item(config.LEGACY_STORAGE_KEY)
        logger.info(f"Migrated legacy stored catalog '{file_name}'")

    def _dump(self) -> str:
        return json.dumps({
            'version': config.STORAGE_VERSION,
            'currentId': self._current_id,
            'catalogs': [record.to_dict() for record in self._records],
        }, ensure_ascii=False)

    def _write(self):
        try:
            self.storage.set_item(config.STORAGE_KEY, self._dump())
        except StorageError as e:
            logger.warning(f"Failed to persist catalogs: {e}")

    def _index_of(self, catalog_id: str) -> int:
        for index, record in enumerate(self._records):
            if record.id == catalog_id:
                return index
        return -1

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def create(
        self,
        file_name: str,
        content: str,
        original_content: Optional[str] = None,
        source: Optional[CatalogSource] = None,
        project_file: Optional[ProjectFileState] = None,
        catalog_id: Optional[str] = None,
    ) -> StoredCatalogRecord:
        """Store a new record (or replace the one with `catalog_id`) and make it current."""
        now = time.time()
        record = StoredCatalogRecord(
            id=catalog_id or create_catalog_id(),
            file_name=file_name,
            content=content,
            original_content=original_content,
            timestamp=now,
            last_opened=now,
            source=source,
            project_file=project_file,
        )
        self.upsert_by_id(record, touch=True)
        self.set_current_id(record.id)
        return record

    def upsert_by_id(self, record: StoredCatalogRecord, touch: bool = False) -> StoredCatalogRecord:
        """
        Insert or replace by id.

        An existing record keeps its creation timestamp, and its last_opened
        unless `touch` is set, in which case last_opened becomes now.
        """
        self._ensure_loaded()
        index = self._index_of(record.id)
        if index != -1:
            record.timestamp = self._records[index].timestamp
            if not touch:
                record.last_opened = self._records[index].last_opened
        if touch:
            record.last_opened = time.time()

        if index == -1:
            self._records.append(record)
        else:
            self._records[index] = record
        self._write()
        return record

    def get_by_id(self, catalog_id: str) -> Optional[StoredCatalogRecord]:
        self._ensure_loaded()
        index = self._index_of(catalog_id)
        return self._records[index] if index != -1 else None

    def list(self) -> List[CatalogSummary]:
        """Summaries, most recently opened first."""
        self._ensure_loaded()
        records = sorted(self._records, key=lambda record: record.last_opened, reverse=True)
        return [
            CatalogSummary(
                id=record.id,
                file_name=record.file_name,
                timestamp=record.timestamp,
                last_opened=record.last_opened,
            )
            for record in records
        ]

    def remove(self, catalog_id: str) -> bool:
        self._ensure_loaded()
        index = self._index_of(catalog_id)
        if index == -1:
            return False
        del self._records[index]
        if self._current_id == catalog_id:
            self._current_id = None
        self._write()
        logger.info(f"Removed stored catalog {catalog_id}")
        return True

    def current_id(self) -> Optional[str]:
        self._ensure_loaded()
        return self._current_id

    def set_current_id(self, catalog_id: Optional[str]):
        self._ensure_loaded()
        if self._current_id == catalog_id:
            return
        self._current_id = catalog_id
        self._write()
