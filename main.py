import sys
import os
import argparse
import logging

from xcforge_logger import get_logger, set_console_level
logger = get_logger("main")

if getattr(sys, 'frozen', False):
    application_path = os.path.dirname(sys.executable)
    sys.path.insert(0, application_path)
    logger.debug(f"Running from bundle. Added to sys.path: {application_path}")
elif __file__:
    application_path = os.path.dirname(__file__)
    if application_path not in sys.path:
        sys.path.insert(0, application_path)
    logger.debug(f"Running from script. Added to sys.path: {application_path}")

try:
    from PySide6.QtCore import QCoreApplication
except ImportError:
    logger.critical("PySide6 is required to run XCForge but is not installed.")
    logger.critical("Please install it: pip install PySide6")
    sys.exit(1)

import xcforge_config as config
from xcforge_settings import load_settings
from core.kv_storage import SqliteKeyValueStorage
from core.catalog_store import CatalogStore
from core.persistence_scheduler import PersistenceScheduler
from core.project_file import KnownRegionsEditor
from controllers.catalog_controller import CatalogController
from controllers.workspace_controller import WorkspaceController


def build_workspace(settings):
    storage = SqliteKeyValueStorage(settings["storage_path"])
    store = CatalogStore(storage)
    scheduler = PersistenceScheduler(debounce_ms=settings["debounce_ms"])
    catalog_controller = CatalogController(
        scheduler,
        store=store,
        project_file_editor=KnownRegionsEditor(),
        idle_dirty_threshold=settings["idle_dirty_threshold"],
    )
    return WorkspaceController(catalog_controller, store)


def _write_output(path, content):
    if path:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        print(f"Wrote {path}")
    else:
        sys.stdout.write(content)


def _open(workspace, catalog_id):
    session = workspace.open_stored(catalog_id)
    if session is None:
        print(f"No stored catalog with id {catalog_id}", file=sys.stderr)
    return session


def cmd_import(workspace, args):
    session = workspace.open_file(args.file, project_file_path=args.project)
    if session is None:
        return 1
    print(f"{session.id}\t{session.file_name}\t{len(session.entries)} keys\t{', '.join(session.languages)}")
    return 0


def cmd_list(workspace, args):
    current = workspace.store.current_id()
    for summary in workspace.stored_catalogs():
        marker = '*' if summary.id == current else ' '
        print(f"{marker} {summary.id}\t{summary.file_name}")
    return 0


def cmd_export(workspace, args):
    session = _open(workspace, args.id)
    if session is None:
        return 1
    exported = workspace.catalog_controller.export_content(session)
    _write_output(args.output, exported.content)
    if args.project_output:
        project = workspace.catalog_controller.export_project_file(session)
        if project is None:
            print("Catalog has no companion project file", file=sys.stderr)
            return 1
        _write_output(args.project_output, project.content)
    return 0


def cmd_remove(workspace, args):
    if not workspace.remove_catalog(args.id):
        print(f"No stored catalog with id {args.id}", file=sys.stderr)
        return 1
    return 0


def cmd_set(workspace, args):
    session = _open(workspace, args.id)
    if session is None:
        return 1
    if not workspace.catalog_controller.set_value(session, args.key, args.locale, args.value):
        print(f"Unknown key: {args.key}", file=sys.stderr)
        return 1
    return 0


def cmd_add_language(workspace, args):
    session = _open(workspace, args.id)
    if session is None:
        return 1
    if not workspace.catalog_controller.add_language(session, args.locale):
        print(f"Language not added: {args.locale}", file=sys.stderr)
        return 1
    return 0


def cmd_remove_language(workspace, args):
    session = _open(workspace, args.id)
    if session is None:
        return 1
    if not workspace.catalog_controller.remove_language(session, args.locale):
        print(f"Language not removed: {args.locale}", file=sys.stderr)
        return 1
    return 0


def cmd_changes(workspace, args):
    session = _open(workspace, args.id)
    if session is None:
        return 1
    controller = workspace.catalog_controller
    controller.recompute_dirty(session)
    if args.summary:
        summary = controller.change_summary(session, preferred_locale=args.locale)
        print(summary.title)
        print()
        print(summary.body)
        return 0
    for row in controller.list_changes(session):
        print(f"{row.key}\t{row.locale}\t{row.before!r} -> {row.after!r}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Formatting-preserving editor for string catalogs (XCForge).",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output on the console.")
    parser.add_argument("--version", action="version", version=f"XCForge {config.VERSION}")
    commands = parser.add_subparsers(dest="command", required=True)

    p = commands.add_parser("import", help="Store a catalog file and make it current.")
    p.add_argument("file", help="Path to the .xcstrings file.")
    p.add_argument("--project", default=None, help="Companion project.pbxproj file.")
    p.set_defaults(handler=cmd_import)

    p = commands.add_parser("list", help="List stored catalogs, most recently opened first.")
    p.set_defaults(handler=cmd_list)

    p = commands.add_parser("export", help="Write the current text of a stored catalog.")
    p.add_argument("id")
    p.add_argument("-o", "--output", default=None, help="Output file (stdout when omitted).")
    p.add_argument("--project-output", default=None, help="Also write the companion project file here.")
    p.set_defaults(handler=cmd_export)

    p = commands.add_parser("remove", help="Delete a stored catalog.")
    p.add_argument("id")
    p.set_defaults(handler=cmd_remove)

    p = commands.add_parser("set", help="Set one key's value for a locale.")
    p.add_argument("id")
    p.add_argument("key")
    p.add_argument("locale")
    p.add_argument("value")
    p.set_defaults(handler=cmd_set)

    p = commands.add_parser("add-language", help="Add a language to a stored catalog.")
    p.add_argument("id")
    p.add_argument("locale")
    p.set_defaults(handler=cmd_add_language)

    p = commands.add_parser("remove-language", help="Remove a language from a stored catalog.")
    p.add_argument("id")
    p.add_argument("locale")
    p.set_defaults(handler=cmd_remove_language)

    p = commands.add_parser("changes", help="Show edits made since the catalog was imported.")
    p.add_argument("id")
    p.add_argument("--summary", action="store_true", help="Print a commit title and description instead.")
    p.add_argument("--locale", default=None, help="Locale named in the summary title.")
    p.set_defaults(handler=cmd_changes)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_console_level(logging.DEBUG)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    settings = load_settings()
    workspace = build_workspace(settings)

    try:
        exit_code = args.handler(workspace, args)
    finally:
        workspace.shutdown()
    logger.debug(f"Command '{args.command}' finished with exit code {exit_code}.")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
