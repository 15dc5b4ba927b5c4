# -*- coding: utf-8 -*-
"""
XCForge Workspace Controller

Owns the active catalog session and the list of stored catalogs:
- Loading a catalog from text, a file or the store
- Switching between catalogs (flushing the one being left)
- Removing / resetting catalogs
"""

from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from xcforge_enums import CatalogSourceKind
from xcforge_exceptions import ParseError
from xcforge_logger import get_logger
from models.catalog_session import CatalogSession, CatalogSource, ProjectFileState
from parser.catalog_parser import parse_catalog, parse_document
from core.catalog_store import CatalogStore, CatalogSummary, StoredCatalogRecord, create_catalog_id
from core.json_format import detect_formatting_options

logger = get_logger("controllers.workspace")


class WorkspaceController(QObject):
    """
    Signals:
        session_opened(CatalogSession): A catalog became active
        session_closed(str): The active catalog (id) was closed
        catalogs_changed(): The stored catalog list changed
        load_error(str, str): file name, message
    """

    session_opened = Signal(object)
    session_closed = Signal(str)
    catalogs_changed = Signal()
    load_error = Signal(str, str)

    def __init__(self, catalog_controller, store: CatalogStore):
        super().__init__()
        self.catalog_controller = catalog_controller
        self.store = store
        self._active: Optional[CatalogSession] = None
        logger.debug("WorkspaceController initialized")

    @property
    def scheduler(self):
        return self.catalog_controller.scheduler

    @property
    def active(self) -> Optional[CatalogSession]:
        return self._active

    # =========================================================================
    # OPENING
    # =========================================================================

    def open_catalog(
        self,
        file_name: str,
        content: str,
        original_content: Optional[str] = None,
        catalog_id: Optional[str] = None,
        source: Optional[CatalogSource] = None,
        project_file: Optional[ProjectFileState] = None,
    ) -> Optional[CatalogSession]:
        """
        Open catalog text as the active session.

        Args:
            file_name: Display / export file name
            content: Current catalog text
            original_content: Baseline text; defaults to `content`
            catalog_id: Reuse a stored record's id
            source: Provenance of the catalog
            project_file: Companion project file state

        Returns:
            The new session, or None if `content` could not be parsed
        """
        try:
            parsed = parse_catalog(content)
        except ParseError as e:
            logger.error(f"Failed to load {file_name}: {e.message}")
            self.load_error.emit(file_name, e.message)
            return None

        baseline = None
        if original_content:
            try:
                baseline = parse_document(original_content)
            except ParseError as e:
                logger.warning(f"Baseline of {file_name} is unreadable, using the current text: {e.message}")
        if baseline is None:
            baseline = parsed.document.clone()
        if original_content is None:
            original_content = content

        if self._active is not None:
            self.close_active()

        session = CatalogSession(
            session_id=catalog_id or create_catalog_id(),
            file_name=file_name,
            document=parsed.document,
            original_document=baseline,
            languages=parsed.languages,
            entries=parsed.entries,
            current_content=content,
            original_content=original_content,
            formatting=detect_formatting_options(content),
            source=source,
            project_file=project_file,
        )

        record = StoredCatalogRecord(
            id=session.id,
            file_name=file_name,
            content=content,
            original_content=original_content,
            source=source,
            project_file=project_file.copy() if project_file is not None else None,
        )
        self.store.upsert_by_id(record, touch=True)
        self.store.set_current_id(session.id)

        self._active = session
        self.catalog_controller.schedule_dirty_recompute(session)

        logger.info(f"Opened {file_name} ({len(parsed.entries)} keys, {len(parsed.languages)} languages)")
        self.session_opened.emit(session)
        self.catalogs_changed.emit()
        return session

    def open_file(self, file_path: str, project_file_path: Optional[str] = None) -> Optional[CatalogSession]:
        """Open a catalog (and optionally its companion project file) from disk."""
        path = Path(file_path)
        try:
            content = path.read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            self.load_error.emit(path.name, str(e))
            return None

        project_file = None
        if project_file_path:
            try:
                project_text = Path(project_file_path).read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Ignoring unreadable project file {project_file_path}: {e}")
            else:
                project_file = ProjectFileState(
                    path=str(project_file_path),
                    content=project_text,
                    original_content=project_text,
                )

        source = CatalogSource(kind=CatalogSourceKind.LOCAL.value, path=str(path))
        return self.open_catalog(path.name, content, source=source, project_file=project_file)

    def open_stored(self, catalog_id: str) -> Optional[CatalogSession]:
        if self._active is not None and self._active.id == catalog_id:
            return self._active

        record = self.store.get_by_id(catalog_id)
        if record is None:
            logger.warning(f"No stored catalog with id {catalog_id}")
            return None
        return self.open_catalog(
            record.file_name,
            record.content,
            record.original_content,
            catalog_id=record.id,
            source=record.source,
            project_file=record.project_file,
        )

    def restore_last_session(self) -> Optional[CatalogSession]:
        """Reopen the catalog that was current when the app last ran."""
        catalog_id = self.store.current_id()
        if not catalog_id:
            return None
        return self.open_stored(catalog_id)

    # =========================================================================
    # CLOSING / REMOVAL
    # =========================================================================

    def close_active(self):
        """Flush and persist the active session, then let it go."""
        session = self._active
        if session is None:
            return
        self.scheduler.flush(session.id)
        self.catalog_controller.persist(session)
        self.scheduler.discard(session.id)
        self._active = None
        logger.debug(f"Closed session {session.id}")
        self.session_closed.emit(session.id)

    def remove_catalog(self, catalog_id: str) -> bool:
        """Delete a stored catalog; pending work of an active one is dropped."""
        if self._active is not None and self._active.id == catalog_id:
            self.scheduler.discard(catalog_id)
            self._active = None
            self.session_closed.emit(catalog_id)

        removed = self.store.remove(catalog_id)
        if removed:
            self.catalogs_changed.emit()
        return removed

    def reset_active(self) -> bool:
        """Drop the active catalog and its stored record."""
        if self._active is None:
            return False
        return self.remove_catalog(self._active.id)

    def stored_catalogs(self) -> List[CatalogSummary]:
        return self.store.list()

    def shutdown(self):
        self.close_active()
        self.scheduler.flush_all()
