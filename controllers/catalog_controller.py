# -*- coding: utf-8 -*-
"""
XCForge Catalog Controller

Mutation operators for an open catalog. Every operator:
- clones and swaps in only the entry it touches,
- updates dirtiness for the touched key(s),
- refreshes the projection,
- schedules the text sync that fits the mutation (targeted patch or full
  rebuild) and marks the session's text as stale until it runs.

Operators take the session explicitly; the controller holds no "current
catalog" of its own.
"""

import copy
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from PySide6.QtCore import QObject, Signal

import xcforge_config as config
from xcforge_enums import SyncEffect, TranslationState
from xcforge_exceptions import PatchPathError
from xcforge_logger import get_logger
from models.catalog_session import CatalogSession
from models.document import LocalizationDocument, StringUnit
from parser.catalog_parser import collect_languages
from core.value_resolver import resolve_locale_value
from core.dirty_tracker import calculate_dirty_keys, is_entry_dirty
from core.json_format import DELETE, apply_json_changes, rebuild
from core.locale_codes import find_locale, normalize_locale_tag, same_locale
from core.catalog_store import StoredCatalogRecord
from core.change_summary import ChangeRow, ChangeSummary, build_change_summary, collect_changes

logger = get_logger("controllers.catalog")

KeyPath = Tuple[str, ...]


class ExportedContent(NamedTuple):
    file_name: str
    content: str


def next_review_state(
    current_state: Optional[str],
    previous_value: str,
    new_value: str,
    translatable: bool = True,
    is_source: bool = False,
) -> Optional[str]:
    """
    Review state after a value edit.

    Only translatable keys in non-source locales move:
    - a non-empty value becomes `translated` when the state was unset/`new`
      or the previous value was empty (this also overrides `needs_review`
      and `stale`);
    - clearing a non-empty value clears the state.
    Everything else keeps `current_state`.
    """
    if not translatable or is_source:
        return current_state

    has_value = bool((new_value or '').strip())
    had_value = bool((previous_value or '').strip())

    if has_value and (not current_state or current_state == TranslationState.NEW.value or not had_value):
        return TranslationState.TRANSLATED.value
    if had_value and not has_value:
        return None
    return current_state


def _entry_path(key: str, *members: str) -> KeyPath:
    return ('strings', key) + members


def _patch_target(document: LocalizationDocument, path: KeyPath) -> Tuple[KeyPath, Any]:
    """
    Resolve a pending patch path against the live document.

    Returns the path to write and its value; when part of the path no longer
    exists, the first missing member is deleted instead.
    """
    key_path = path[:2]
    entry = document.strings.get(path[1])
    if entry is None:
        return key_path, DELETE

    node: Any = entry.to_dict()
    for depth, segment in enumerate(path[2:], start=3):
        if not isinstance(node, dict) or segment not in node:
            return path[:depth], DELETE
        node = node[segment]
    return path, node


class CatalogController(QObject):
    """
    Signals:
        sync_failed(str, str): session id, message (targeted patch fell back to a rebuild)
        catalog_persisted(str): session id written to the store
    """

    sync_failed = Signal(str, str)
    catalog_persisted = Signal(str)

    def __init__(
        self,
        scheduler,
        store=None,
        project_file_editor=None,
        idle_dirty_threshold: int = config.DEFAULT_IDLE_DIRTY_THRESHOLD,
    ):
        super().__init__()
        self.scheduler = scheduler
        self.store = store
        self.project_file_editor = project_file_editor
        self.idle_dirty_threshold = idle_dirty_threshold
        logger.debug("CatalogController initialized")

    # =========================================================================
    # VALUE EDITS
    # =========================================================================

    def set_value(self, session: CatalogSession, key: str, locale: str, value: str) -> bool:
        """Set a locale's value, moving its review state as described in next_review_state."""
        current = session.document.strings.get(key)
        if current is None:
            logger.warning(f"set_value: unknown key '{key}'")
            return False

        source_language = session.document.source_language
        previous = resolve_locale_value(current, locale, source_language, key)

        entry = current.clone()
        record = entry.ensure_localization(locale)
        if record.string_unit is None:
            record.string_unit = StringUnit()
        unit = record.string_unit
        unit.state = next_review_state(
            unit.state,
            previous,
            value,
            translatable=entry.should_translate,
            is_source=same_locale(locale, source_language),
        )
        unit.value = value

        self._ensure_language(session, locale)
        self._commit_entry(session, key, entry, _entry_path(key, 'localizations', locale))
        return True

    def set_comment(self, session: CatalogSession, key: str, comment: Optional[str]) -> bool:
        """Set the key-level comment; empty or None removes it."""
        current = session.document.strings.get(key)
        if current is None:
            logger.warning(f"set_comment: unknown key '{key}'")
            return False

        entry = current.clone()
        entry.comment = comment or None
        self._commit_entry(session, key, entry, _entry_path(key, 'comment'))
        return True

    def set_state(self, session: CatalogSession, key: str, locale: str, state: Optional[str]) -> bool:
        """Set or clear (None / "") a locale's review state."""
        current = session.document.strings.get(key)
        if current is None:
            logger.warning(f"set_state: unknown key '{key}'")
            return False

        if not state and current.get_localization(locale) is None:
            # Nothing to clear
            return False

        entry = current.clone()
        record = entry.ensure_localization(locale)
        if state:
            if record.string_unit is None:
                record.string_unit = StringUnit()
            record.string_unit.state = state
        elif record.string_unit is not None:
            record.string_unit.state = None
            unit = record.string_unit
            if unit.value is None and not unit.extra:
                record.string_unit = None

        self._ensure_language(session, locale)
        self._commit_entry(session, key, entry, _entry_path(key, 'localizations', locale))
        return True

    def set_should_translate(self, session: CatalogSession, key: str, flag: bool) -> bool:
        current = session.document.strings.get(key)
        if current is None:
            logger.warning(f"set_should_translate: unknown key '{key}'")
            return False

        entry = current.clone()
        entry.should_translate = bool(flag)
        self._commit_entry(session, key, entry, _entry_path(key, 'shouldTranslate'))
        return True

    # =========================================================================
    # LANGUAGES
    # =========================================================================

    def add_language(self, session: CatalogSession, locale: str) -> bool:
        """
        Add a language to the catalog.

        The tag is normalized first; a language already present (ignoring
        case) is left alone. Entries are not touched: the new column shows
        empty values until something is entered.
        """
        normalized = normalize_locale_tag(locale)
        if not normalized:
            logger.warning("add_language: empty locale")
            return False
        if find_locale(normalized, session.languages) is not None:
            logger.debug(f"add_language: {normalized} already present")
            return False

        document = session.document
        locales = list(document.available_locales or [])
        if find_locale(normalized, locales) is None:
            locales.append(normalized)
        document.available_locales = sorted(locales)

        session.add_language(normalized)
        self._update_project_file(session, normalized, add=True)
        self._queue_full_sync(session)
        self.schedule_dirty_recompute(session)
        logger.info(f"Added language {normalized} to {session.file_name}")
        return True

    def remove_language(self, session: CatalogSession, locale: str) -> bool:
        """Remove a language everywhere. The source language cannot be removed."""
        document = session.document
        target = find_locale(locale.strip(), session.languages)
        if target is None:
            target = find_locale(normalize_locale_tag(locale), session.languages)
        if target is None:
            logger.debug(f"remove_language: {locale} not in catalog")
            return False
        if same_locale(target, document.source_language):
            logger.warning(f"remove_language: refusing to remove source language {target}")
            return False

        for key, entry in list(document.strings.items()):
            if not entry.localizations:
                continue
            doomed = [name for name in entry.localizations if same_locale(name, target)]
            if not doomed:
                continue
            stripped = entry.clone()
            for name in doomed:
                del stripped.localizations[name]
            if not stripped.localizations:
                stripped.localizations = None
            document.strings[key] = stripped

        if document.available_locales is not None:
            remaining = [name for name in document.available_locales if not same_locale(name, target)]
            document.available_locales = remaining or None

        session.remove_language(target)
        self._update_project_file(session, target, add=False)
        self._queue_full_sync(session)
        self.schedule_dirty_recompute(session)
        logger.info(f"Removed language {target} from {session.file_name}")
        return True

    # =========================================================================
    # RESTORE
    # =========================================================================

    def restore_field(self, session: CatalogSession, key: str, locale: str) -> bool:
        """Put one locale of one key back to its baseline."""
        current = session.document.strings.get(key)
        if current is None:
            return False
        original = session.original_document.strings.get(key)

        entry = current.clone()
        original_record = original.get_localization(locale) if original is not None else None
        if original_record is not None:
            entry.ensure_localization(locale)
            entry.localizations[locale] = copy.deepcopy(original_record)
        elif entry.localizations is not None:
            entry.localizations.pop(locale, None)
            if not entry.localizations and (original is None or original.localizations is None):
                entry.localizations = None

        path = _entry_path(key, 'localizations', locale)
        if same_locale(locale, session.document.source_language):
            # The source value may also live on the entry itself
            entry.string_unit = copy.deepcopy(original.string_unit) if original is not None else None
            path = _entry_path(key)

        self._commit_entry(session, key, entry, path)
        return True

    def restore_key(self, session: CatalogSession, key: str) -> bool:
        """Put a whole key back to its baseline (re-adding or dropping it as needed)."""
        original = session.original_document.strings.get(key)
        if original is None:
            if key not in session.document.strings:
                return False
            self._commit_entry(session, key, None, _entry_path(key))
            return True

        self._commit_entry(session, key, original.clone(), _entry_path(key))
        return True

    def restore_all_changes(self, session: CatalogSession):
        """Replace the document with a copy of the baseline and rebuild the text."""
        document = session.original_document.clone()
        session.replace_document(document, collect_languages(document))
        session.set_dirty_keys(set())

        if session.project_file is not None:
            session.project_file.content = session.project_file.original_content
            session.project_file.dirty = False

        self._queue_full_sync(session)
        logger.info(f"Restored all changes in {session.file_name}")

    # =========================================================================
    # DIRTINESS
    # =========================================================================

    def recompute_dirty(self, session: CatalogSession):
        session.set_dirty_keys(calculate_dirty_keys(session.document, session.original_document))

    def schedule_dirty_recompute(self, session: CatalogSession):
        """Recompute every key now, or on an idle slice for large catalogs."""
        if len(session.document.strings) > self.idle_dirty_threshold:
            self.scheduler.schedule_idle(
                session.id, SyncEffect.RECOMPUTE_DIRTY, None, lambda: self.recompute_dirty(session)
            )
        else:
            self.recompute_dirty(session)

    def _ensure_language(self, session: CatalogSession, locale: str):
        # A locale first seen through an edit becomes a column, as it would on reload
        if locale not in session.languages:
            session.add_language(locale)

    def _update_key_dirty(self, session: CatalogSession, key: str):
        session.mark_key_dirty(key, is_entry_dirty(key, session.document, session.original_document))

    # =========================================================================
    # EXPORT / REPORTING
    # =========================================================================

    def export_content(self, session: CatalogSession) -> ExportedContent:
        """Up-to-date catalog text. Pending serialization is replaced by a synchronous rebuild."""
        if self._serialization_pending(session):
            self.scheduler.cancel(session.id, SyncEffect.SERIALIZE_FULL)
            self._sync_full(session)
        self.scheduler.flush(session.id)
        return ExportedContent(session.file_name, session.current_content)

    def export_project_file(self, session: CatalogSession) -> Optional[ExportedContent]:
        if session.project_file is None:
            return None
        return ExportedContent(session.project_file.path, session.project_file.content)

    def list_changes(self, session: CatalogSession) -> List[ChangeRow]:
        return collect_changes(session.document, session.original_document, session.dirty_keys)

    def change_summary(self, session: CatalogSession, preferred_locale: Optional[str] = None) -> ChangeSummary:
        return build_change_summary(
            session.file_name,
            session.document,
            session.original_document,
            session.dirty_keys,
            source=session.source,
            preferred_locale=preferred_locale,
        )

    # =========================================================================
    # TEXT SYNC
    # =========================================================================

    def _commit_entry(self, session: CatalogSession, key: str, entry, path: KeyPath):
        session.replace_entry(key, entry)
        self._update_key_dirty(session, key)
        self._queue_key_sync(session, key, path)

    def _serialization_pending(self, session: CatalogSession) -> bool:
        return (
            self.scheduler.has_pending(session.id, SyncEffect.SERIALIZE_KEY)
            or self.scheduler.has_pending(session.id, SyncEffect.SERIALIZE_FULL)
            or session.has_pending_paths()
        )

    def _queue_key_sync(self, session: CatalogSession, key: str, path: KeyPath):
        session.set_document_dirty(True)
        if self.scheduler.has_pending(session.id, SyncEffect.SERIALIZE_FULL):
            # The pending rebuild reads the live document anyway
            return
        session.queue_patch_path(key, tuple(path))
        self.scheduler.schedule(
            session.id, SyncEffect.SERIALIZE_KEY, key, lambda: self._sync_key(session, key)
        )

    def _queue_full_sync(self, session: CatalogSession):
        self.scheduler.cancel(session.id, SyncEffect.SERIALIZE_KEY)
        session.clear_pending_paths()
        session.set_document_dirty(True)
        self.scheduler.schedule_idle(
            session.id, SyncEffect.SERIALIZE_FULL, None, lambda: self._sync_full(session)
        )

    def _sync_key(self, session: CatalogSession, key: str):
        paths: Sequence[KeyPath] = sorted(session.take_pending_paths(key), key=len)
        if not paths:
            return

        changes = [_patch_target(session.document, path) for path in paths]
        try:
            text = apply_json_changes(session.current_content, changes, session.formatting)
        except PatchPathError as e:
            logger.warning(f"Targeted patch for '{key}' failed, rebuilding {session.file_name}: {e}")
            self.sync_failed.emit(session.id, str(e))
            self._sync_full(session)
            return

        session.set_content(text)
        self._after_sync(session)

    def _sync_full(self, session: CatalogSession):
        self.scheduler.cancel(session.id, SyncEffect.SERIALIZE_KEY)
        session.clear_pending_paths()
        session.set_content(rebuild(session.document, session.current_content, session.formatting))
        logger.debug(f"Rebuilt text of {session.file_name}")
        self._after_sync(session)

    def _after_sync(self, session: CatalogSession):
        session.set_document_dirty(self._serialization_pending(session))
        if self.store is not None:
            self.scheduler.schedule(session.id, SyncEffect.PERSIST, None, lambda: self.persist(session))

    def persist(self, session: CatalogSession):
        """Write the session's current state to the store (last_opened untouched)."""
        if self.store is None:
            return
        record = StoredCatalogRecord(
            id=session.id,
            file_name=session.file_name,
            content=session.current_content,
            original_content=session.original_content,
            source=session.source,
            project_file=session.project_file.copy() if session.project_file is not None else None,
            document_dirty=session.document_dirty,
        )
        self.store.upsert_by_id(record, touch=False)
        self.catalog_persisted.emit(session.id)

    # =========================================================================
    # COMPANION PROJECT FILE
    # =========================================================================

    def _update_project_file(self, session: CatalogSession, locale: str, add: bool):
        state = session.project_file
        if state is None or self.project_file_editor is None:
            return
        try:
            if add:
                update = self.project_file_editor.add_known_region(state.content, locale)
            else:
                update = self.project_file_editor.remove_known_region(state.content, locale)
        except Exception as e:
            logger.error(f"Failed to update known regions in {state.path} for {locale}: {e}")
        else:
            if update.updated:
                state.content = update.content
        state.dirty = state.content != state.original_content
