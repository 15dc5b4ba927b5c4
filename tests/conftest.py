# -*- coding: utf-8 -*-
"""
XCForge Test Fixtures

Shared fixtures for all tests.
"""

import json
import os
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Run Qt headless unless a platform is chosen explicitly
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


# =============================================================================
# CATALOG TEXT FIXTURES
# =============================================================================

def _unit(value, state="translated"):
    return {"stringUnit": {"state": state, "value": value}}


@pytest.fixture
def xcode_dumps():
    """Serialize like Xcode does: 2-space indent, ' : ' between key and value, trailing newline."""
    def dumps(data):
        return json.dumps(data, indent=2, ensure_ascii=False).replace('": ', '" : ') + "\n"
    return dumps


@pytest.fixture
def hello_data() -> dict:
    """One key "hello", source language en with value "Hello", no fr localization."""
    return {
        "sourceLanguage": "en",
        "strings": {
            "hello": {
                "localizations": {
                    "en": _unit("Hello"),
                },
            },
        },
        "version": "1.0",
    }


@pytest.fixture
def hello_text(hello_data, xcode_dumps) -> str:
    return xcode_dumps(hello_data)


@pytest.fixture
def crlf_data() -> dict:
    """Three keys in en/fr, members in sorted order."""
    return {
        "sourceLanguage": "en",
        "strings": {
            "alpha": {
                "comment": "First key",
                "localizations": {
                    "en": _unit("Alpha"),
                    "fr": _unit("Alpha FR"),
                },
            },
            "beta": {
                "localizations": {
                    "en": _unit("Beta"),
                    "fr": _unit("Bêta"),
                },
            },
            "gamma": {
                "extractionState": "manual",
                "localizations": {
                    "en": _unit("Gamma"),
                },
            },
        },
        "version": "1.0",
    }


@pytest.fixture
def crlf_text(crlf_data) -> str:
    """The three-key catalog with 4-space indentation and CRLF line endings."""
    return json.dumps(crlf_data, indent=4, ensure_ascii=False).replace("\n", "\r\n") + "\r\n"


@pytest.fixture
def pbxproj_text() -> str:
    return (
        "/* Begin PBXProject section */\n"
        "\t\tdevelopmentRegion = en;\n"
        "\t\thasScannedForEncodings = 0;\n"
        "\t\tknownRegions = (\n"
        "\t\t\ten,\n"
        "\t\t\tBase,\n"
        "\t\t);\n"
        "\t\tmainGroup = 8F1A;\n"
        "/* End PBXProject section */\n"
    )


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def storage():
    from core.kv_storage import MemoryKeyValueStorage
    return MemoryKeyValueStorage()


@pytest.fixture
def store(storage):
    from core.catalog_store import CatalogStore
    return CatalogStore(storage)


@pytest.fixture
def scheduler(qapp):
    from core.persistence_scheduler import PersistenceScheduler
    return PersistenceScheduler(debounce_ms=20)


@pytest.fixture
def catalog_controller(scheduler, store):
    from controllers.catalog_controller import CatalogController
    from core.project_file import KnownRegionsEditor
    return CatalogController(scheduler, store=store, project_file_editor=KnownRegionsEditor())


@pytest.fixture
def workspace(catalog_controller, store):
    from controllers.workspace_controller import WorkspaceController
    return WorkspaceController(catalog_controller, store)


@pytest.fixture
def hello_session(workspace, hello_text):
    """Active session opened from the hello catalog."""
    return workspace.open_catalog("Localizable.xcstrings", hello_text)


@pytest.fixture
def crlf_session(workspace, crlf_text):
    return workspace.open_catalog("Localizable.xcstrings", crlf_text)
