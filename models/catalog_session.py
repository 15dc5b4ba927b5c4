# -*- coding: utf-8 -*-
"""
XCForge Catalog Session

Live state of one open catalog: the authoritative document, its immutable
baseline, the derived projection, dirtiness and the serialized text cache.

Sessions hold state and emit signals. They do not decide anything; all edits
go through CatalogController so that model, dirtiness and text stay in step.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Set, Tuple

from PySide6.QtCore import QObject, Signal

from xcforge_enums import CatalogSourceKind
from xcforge_logger import get_logger
from models.document import LocalizationDocument, StringEntry
from models.catalog_entry import CatalogEntry, build_catalog_entry, catalog_sort_key

logger = get_logger("models.catalog_session")


@dataclass
class CatalogSource:
    """Where the catalog came from, enough to publish it back."""
    kind: str = CatalogSourceKind.LOCAL.value
    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: Optional[str] = None
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {'kind': self.kind}
        for name in ('owner', 'repo', 'branch', 'path'):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Optional['CatalogSource']:
        if not isinstance(data, dict):
            return None
        kind = data.get('kind')
        if kind not in (CatalogSourceKind.LOCAL.value, CatalogSourceKind.GITHUB.value):
            return None
        fields = {}
        for name in ('owner', 'repo', 'branch', 'path'):
            value = data.get(name)
            fields[name] = value if isinstance(value, str) else None
        return cls(kind=kind, **fields)


@dataclass
class ProjectFileState:
    """Companion project file carried alongside a catalog."""
    path: str
    content: str
    original_content: str
    dirty: bool = False

    def copy(self) -> 'ProjectFileState':
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'content': self.content,
            'originalContent': self.original_content,
            'dirty': self.dirty,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional['ProjectFileState']:
        if not isinstance(data, dict):
            return None
        path = data.get('path')
        content = data.get('content')
        if not isinstance(path, str) or not isinstance(content, str):
            return None
        original = data.get('originalContent')
        if not isinstance(original, str):
            original = content
        return cls(path=path, content=content, original_content=original, dirty=content != original)


class CatalogSession(QObject):
    """
    One open catalog.

    Signals:
        entry_changed(str): A single key's entry and projection were replaced
        entries_reset(): The whole projection was rebuilt
        dirty_keys_changed(): The dirty key set changed
        document_dirty_changed(bool): Text cache went stale / caught up
        content_synced(): current_content was rewritten
        languages_changed(list): The language list changed
    """

    entry_changed = Signal(str)
    entries_reset = Signal()
    dirty_keys_changed = Signal()
    document_dirty_changed = Signal(bool)
    content_synced = Signal()
    languages_changed = Signal(list)

    def __init__(
        self,
        session_id: str,
        file_name: str,
        document: LocalizationDocument,
        original_document: LocalizationDocument,
        languages: List[str],
        entries: List[CatalogEntry],
        current_content: str,
        original_content: str,
        formatting=None,
        source: Optional[CatalogSource] = None,
        project_file: Optional[ProjectFileState] = None,
    ):
        super().__init__()
        self.id = session_id
        self.file_name = file_name
        self.document = document
        self.original_document = original_document
        self.languages: List[str] = list(languages)
        self.entries: List[CatalogEntry] = list(entries)
        self._entry_index: Dict[str, int] = {}
        self._reindex()

        self.dirty_keys: Set[str] = set()
        self.document_dirty = False
        self.current_content = current_content
        self.original_content = original_content
        self.formatting = formatting
        self.source = source
        self.project_file = project_file

        # key -> pending patch paths, in submission order
        self._pending_paths: Dict[str, List[Tuple[str, ...]]] = {}

    def __repr__(self):
        return f"CatalogSession(id={self.id!r}, file_name={self.file_name!r}, keys={len(self.document.strings)})"

    # =========================================================================
    # PROJECTION
    # =========================================================================

    def _reindex(self):
        self._entry_index = {entry.key: index for index, entry in enumerate(self.entries)}

    def get_entry(self, key: str) -> Optional[CatalogEntry]:
        index = self._entry_index.get(key)
        return self.entries[index] if index is not None else None

    def rebuild_entries(self):
        """Re-derive the whole projection from the document."""
        source_language = self.document.source_language
        self.entries = [
            build_catalog_entry(key, entry, self.languages, source_language)
            for key, entry in self.document.strings.items()
        ]
        self.entries.sort(key=lambda item: catalog_sort_key(item.key))
        self._reindex()
        self.entries_reset.emit()

    def refresh_entry(self, key: str):
        """Re-derive one key's projection (removing it if the key is gone)."""
        entry = self.document.strings.get(key)
        index = self._entry_index.get(key)

        if entry is None:
            if index is not None:
                del self.entries[index]
                self._reindex()
            self.entry_changed.emit(key)
            return

        projected = build_catalog_entry(key, entry, self.languages, self.document.source_language)
        if index is not None:
            self.entries[index] = projected
        else:
            self.entries.append(projected)
            self.entries.sort(key=lambda item: catalog_sort_key(item.key))
            self._reindex()
        self.entry_changed.emit(key)

    def replace_entry(self, key: str, entry: Optional[StringEntry]):
        """Swap in a fully built entry (None removes the key) and refresh its row."""
        if entry is None:
            self.document.strings.pop(key, None)
        else:
            self.document.strings[key] = entry
        self.refresh_entry(key)

    def replace_document(self, document: LocalizationDocument, languages: List[str]):
        self.document = document
        self.set_languages(languages)
        self.rebuild_entries()

    def add_language(self, locale: str):
        """Add a language column: every row gets an empty value for it."""
        self.set_languages(sorted(self.languages + [locale]))
        for entry in self.entries:
            entry.values[locale] = ''
        self.entries_reset.emit()

    def remove_language(self, locale: str):
        """Drop a language column (case-insensitive) from the rows."""
        folded = locale.casefold()
        removed = [language for language in self.languages if language.casefold() == folded]
        self.set_languages([language for language in self.languages if language.casefold() != folded])
        for entry in self.entries:
            for language in removed:
                entry.values.pop(language, None)
                entry.states.pop(language, None)
        self.entries_reset.emit()

    def set_languages(self, languages: List[str]):
        languages = list(languages)
        if languages != self.languages:
            self.languages = languages
            self.languages_changed.emit(list(languages))

    # =========================================================================
    # DIRTINESS
    # =========================================================================

    def mark_key_dirty(self, key: str, dirty: bool):
        if dirty and key not in self.dirty_keys:
            self.dirty_keys.add(key)
            self.dirty_keys_changed.emit()
        elif not dirty and key in self.dirty_keys:
            self.dirty_keys.discard(key)
            self.dirty_keys_changed.emit()

    def set_dirty_keys(self, keys: Set[str]):
        keys = set(keys)
        if keys != self.dirty_keys:
            self.dirty_keys = keys
            self.dirty_keys_changed.emit()

    def set_document_dirty(self, dirty: bool):
        if dirty != self.document_dirty:
            self.document_dirty = dirty
            self.document_dirty_changed.emit(dirty)

    # =========================================================================
    # TEXT CACHE
    # =========================================================================

    def set_content(self, content: str):
        self.current_content = content
        self.content_synced.emit()

    def queue_patch_path(self, key: str, path: Tuple[str, ...]):
        paths = self._pending_paths.setdefault(key, [])
        if path not in paths:
            paths.append(path)

    def take_pending_paths(self, key: str) -> List[Tuple[str, ...]]:
        return self._pending_paths.pop(key, [])

    def has_pending_paths(self) -> bool:
        return bool(self._pending_paths)

    def clear_pending_paths(self):
        self._pending_paths.clear()
