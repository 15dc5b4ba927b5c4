# -*- coding: utf-8 -*-
"""
Unit Tests for the Catalog Controller (mutation operators)
"""

import json
import pytest

from core.project_file import KnownRegionsEditor
from xcforge_exceptions import ProjectFileError


def _value(session, key, locale):
    from core.value_resolver import resolve_locale_value
    return resolve_locale_value(
        session.document.strings.get(key), locale, session.document.source_language, key
    )


def _state(session, key, locale):
    from core.value_resolver import resolve_locale_state
    return resolve_locale_state(session.document.strings.get(key), locale)


class _RemoveFailsEditor(KnownRegionsEditor):
    """Adds regions normally, fails on every removal."""

    def remove_known_region(self, content, locale):
        raise ProjectFileError("Project file is read-only", locale=locale)


class TestNextReviewState:
    """Tests for the review state transition."""

    @pytest.mark.parametrize("state, previous, new, expected", [
        (None, "", "Bonjour", "translated"),
        ("new", "Salut", "Bonjour", "translated"),
        ("needs_review", "", "Bonjour", "translated"),
        ("stale", "", "Bonjour", "translated"),
        ("needs_review", "Salut", "Bonjour", "needs_review"),
        ("translated", "Salut", "", None),
        ("needs_review", "", "", "needs_review"),
        (None, "", "   ", None),
    ])
    def test_transitions(self, state, previous, new, expected):
        """Test each branch of the transition table."""
        from controllers.catalog_controller import next_review_state

        assert next_review_state(state, previous, new) == expected

    def test_source_and_untranslatable_are_untouched(self):
        """Test the source language and non-translatable keys keep their state."""
        from controllers.catalog_controller import next_review_state

        assert next_review_state("new", "", "Hello", is_source=True) == "new"
        assert next_review_state(None, "x", "", translatable=False) is None


class TestEditAndUndo:
    """Edit a value, then restore it."""

    def test_set_value_then_restore_field(self, catalog_controller, hello_session):
        """Test dirtiness, value and state across an edit and its undo."""
        session = hello_session
        assert session.dirty_keys == set()

        assert catalog_controller.set_value(session, "hello", "fr", "Bonjour")

        assert session.dirty_keys == {"hello"}
        assert _value(session, "hello", "fr") == "Bonjour"
        assert _state(session, "hello", "fr") == "translated"
        assert session.document_dirty

        assert catalog_controller.restore_field(session, "hello", "fr")

        assert session.dirty_keys == set()
        assert _value(session, "hello", "fr") == ""
        assert set(session.document.strings["hello"].localizations) == {"en"}

    def test_restore_field_is_idempotent(self, catalog_controller, hello_session):
        """Test restoring the same field twice equals restoring it once."""
        session = hello_session
        catalog_controller.set_value(session, "hello", "fr", "Bonjour")
        catalog_controller.set_value(session, "hello", "en", "Hi")

        catalog_controller.restore_field(session, "hello", "en")
        once = session.document.to_dict()
        catalog_controller.restore_field(session, "hello", "en")

        assert session.document.to_dict() == once
        assert _value(session, "hello", "en") == "Hello"

    def test_edit_only_clones_touched_entry(self, catalog_controller, crlf_session):
        """Test untouched entries keep their identity."""
        session = crlf_session
        alpha = session.document.strings["alpha"]
        beta = session.document.strings["beta"]

        catalog_controller.set_value(session, "beta", "fr", "Beta")

        assert session.document.strings["alpha"] is alpha
        assert session.document.strings["beta"] is not beta
        assert beta.localizations["fr"].string_unit.value == "Bêta"

    def test_projection_follows_edit(self, catalog_controller, hello_session):
        """Test the projected row shows the new value."""
        catalog_controller.set_value(hello_session, "hello", "fr", "Bonjour")

        entry = hello_session.get_entry("hello")
        assert entry.values["fr"] == "Bonjour"
        assert entry.states["fr"] == "translated"

    def test_unknown_key(self, catalog_controller, hello_session):
        """Test edits to missing keys are rejected."""
        assert not catalog_controller.set_value(hello_session, "nope", "fr", "x")
        assert not catalog_controller.restore_field(hello_session, "nope", "fr")


class TestReviewStateOverride:
    """An empty-to-value edit forces translated."""

    def test_needs_review_becomes_translated(self, catalog_controller, workspace, xcode_dumps):
        """Test a cleared needs_review value becomes translated when filled."""
        text = xcode_dumps({
            "sourceLanguage": "en",
            "strings": {
                "greeting": {
                    "localizations": {
                        "en": {"stringUnit": {"state": "translated", "value": "Hi"}},
                        "fr": {"stringUnit": {"state": "needs_review", "value": ""}},
                    },
                },
            },
            "version": "1.0",
        })
        session = workspace.open_catalog("Localizable.xcstrings", text)

        catalog_controller.set_value(session, "greeting", "fr", "Bonjour")

        assert _state(session, "greeting", "fr") == "translated"

    def test_should_translate_false_keeps_state(self, catalog_controller, hello_session):
        """Test non-translatable keys never change state on edit."""
        catalog_controller.set_should_translate(hello_session, "hello", False)
        catalog_controller.set_value(hello_session, "hello", "fr", "Bonjour")

        assert _state(hello_session, "hello", "fr") is None
        assert hello_session.document.strings["hello"].to_dict()["shouldTranslate"] is False


class TestOtherEdits:
    """Tests for comments, states and flags."""

    def test_set_comment_and_clear(self, catalog_controller, hello_session):
        """Test comments are set and removed."""
        catalog_controller.set_comment(hello_session, "hello", "Greeting")
        assert hello_session.document.strings["hello"].comment == "Greeting"
        assert hello_session.dirty_keys == {"hello"}

        catalog_controller.set_comment(hello_session, "hello", "")
        assert hello_session.document.strings["hello"].comment is None
        assert hello_session.dirty_keys == set()

    def test_set_state_and_clear(self, catalog_controller, hello_session):
        """Test review states are set and cleared."""
        catalog_controller.set_state(hello_session, "hello", "en", "needs_review")
        assert _state(hello_session, "hello", "en") == "needs_review"

        catalog_controller.set_state(hello_session, "hello", "en", None)
        assert _state(hello_session, "hello", "en") is None
        assert _value(hello_session, "hello", "en") == "Hello"

    def test_clearing_state_of_missing_locale_is_noop(self, catalog_controller, scheduler, hello_session, hello_text):
        """Test clearing a state the key never had adds no localization or column."""
        session = hello_session
        before = session.document.to_dict()

        assert not catalog_controller.set_state(session, "hello", "de", None)
        assert not catalog_controller.set_state(session, "hello", "de", "")

        assert session.document.to_dict() == before
        assert session.languages == ["en"]
        assert session.dirty_keys == set()
        assert not scheduler.has_pending(session.id)
        assert catalog_controller.export_content(session).content == hello_text

    def test_restore_key_and_all(self, catalog_controller, scheduler, hello_session, hello_text):
        """Test whole-key and whole-document restores."""
        session = hello_session
        catalog_controller.set_value(session, "hello", "fr", "Bonjour")
        catalog_controller.set_comment(session, "hello", "Greeting")

        catalog_controller.restore_key(session, "hello")
        assert session.dirty_keys == set()

        catalog_controller.set_value(session, "hello", "en", "Hey")
        catalog_controller.restore_all_changes(session)
        scheduler.flush(session.id)

        assert session.dirty_keys == set()
        assert session.current_content == hello_text


class TestLanguages:
    """Tests for add_language / remove_language."""

    def test_locale_round_trip(self, catalog_controller, crlf_session):
        """Test adding then removing a language restores the previous state."""
        session = crlf_session
        before_locales = session.document.available_locales
        before_maps = {key: set(entry.localizations or {}) for key, entry in session.document.strings.items()}

        assert catalog_controller.add_language(session, "de")
        assert session.document.available_locales == ["de"]
        assert "de" in session.languages
        assert all(entry.values["de"] == "" for entry in session.entries)

        assert catalog_controller.remove_language(session, "de")

        assert session.document.available_locales == before_locales
        after_maps = {key: set(entry.localizations or {}) for key, entry in session.document.strings.items()}
        assert after_maps == before_maps
        assert "de" not in session.languages

    def test_add_language_normalizes_and_dedupes(self, catalog_controller, crlf_session):
        """Test tags are normalized and case-insensitive duplicates ignored."""
        assert catalog_controller.add_language(crlf_session, "pt_br")
        assert "pt-BR" in crlf_session.languages

        assert not catalog_controller.add_language(crlf_session, "PT-br")
        assert not catalog_controller.add_language(crlf_session, "FR")

    def test_source_language_removal_rejected(self, catalog_controller, crlf_session):
        """Test removing the source language is a no-op."""
        session = crlf_session
        before = session.document.to_dict()

        assert not catalog_controller.remove_language(session, "en")
        assert not catalog_controller.remove_language(session, "EN")

        assert session.document.to_dict() == before
        assert not session.document_dirty

    def test_remove_language_strips_entries(self, catalog_controller, scheduler, crlf_session):
        """Test removing a language drops it from every entry and marks those keys dirty."""
        session = crlf_session

        assert catalog_controller.remove_language(session, "fr")
        scheduler.flush(session.id)

        assert "fr" not in session.languages
        assert all("fr" not in (entry.localizations or {}) for entry in session.document.strings.values())
        assert session.dirty_keys == {"alpha", "beta"}
        assert "Bêta" not in session.current_content

    def test_remove_unknown_language(self, catalog_controller, crlf_session):
        """Test removing a language that is not present is a no-op."""
        assert not catalog_controller.remove_language(crlf_session, "ko")

    def test_companion_project_file_follows(self, catalog_controller, crlf_session, pbxproj_text):
        """Test the companion file's known regions are kept in step."""
        from models.catalog_session import ProjectFileState

        session = crlf_session
        session.project_file = ProjectFileState("App.xcodeproj/project.pbxproj", pbxproj_text, pbxproj_text)

        catalog_controller.add_language(session, "de")
        assert "\t\t\tde,\n\t\t\tBase," in session.project_file.content
        assert session.project_file.dirty

        catalog_controller.remove_language(session, "de")
        assert session.project_file.content == pbxproj_text
        assert not session.project_file.dirty

    def test_failing_project_file_editor_is_not_fatal(self, scheduler, store, crlf_text, pbxproj_text):
        """Test a companion-file failure leaves the language change in place and dirty in step."""
        from controllers.catalog_controller import CatalogController
        from controllers.workspace_controller import WorkspaceController
        from models.catalog_session import ProjectFileState

        controller = CatalogController(scheduler, store=store, project_file_editor=_RemoveFailsEditor())
        session = WorkspaceController(controller, store).open_catalog(
            "Localizable.xcstrings", crlf_text,
            project_file=ProjectFileState("App.xcodeproj/project.pbxproj", pbxproj_text, pbxproj_text),
        )

        assert controller.add_language(session, "de")
        assert session.project_file.dirty

        assert controller.remove_language(session, "de")
        assert "de" not in session.languages
        scheduler.flush(session.id)
        assert "de" not in json.loads(session.current_content).get("availableLocales", [])
        # The region added earlier is still listed
        assert "\t\t\tde,\n" in session.project_file.content
        assert session.project_file.dirty

    def test_project_file_without_region_list(self, catalog_controller, crlf_session):
        """Test a project file the editor cannot update stays clean."""
        from models.catalog_session import ProjectFileState

        session = crlf_session
        session.project_file = ProjectFileState("project.pbxproj", "/* empty */\n", "/* empty */\n")

        assert catalog_controller.add_language(session, "de")
        assert session.project_file.content == "/* empty */\n"
        assert not session.project_file.dirty

    def test_store_record_does_not_share_project_file(self, catalog_controller, workspace, store, crlf_text, pbxproj_text):
        """Test later project file edits reach the store only when persisted."""
        from models.catalog_session import ProjectFileState

        session = workspace.open_catalog(
            "Localizable.xcstrings", crlf_text,
            project_file=ProjectFileState("project.pbxproj", pbxproj_text, pbxproj_text),
        )

        session.project_file.content = "edited"
        assert store.get_by_id(session.id).project_file.content == pbxproj_text

        catalog_controller.persist(session)
        session.project_file.content = "edited again"
        assert store.get_by_id(session.id).project_file.content == "edited"


class TestDeferredDirtyRecompute:
    """Catalogs above the idle threshold recompute dirty keys on an idle slice."""

    def _open_edited(self, scheduler, store, hello_data, xcode_dumps):
        from controllers.catalog_controller import CatalogController
        from controllers.workspace_controller import WorkspaceController

        controller = CatalogController(scheduler, store=store, idle_dirty_threshold=0)
        baseline = xcode_dumps(hello_data)
        hello_data["strings"]["hello"]["localizations"]["fr"] = {
            "stringUnit": {"state": "translated", "value": "Bonjour"},
        }
        return WorkspaceController(controller, store).open_catalog(
            "Localizable.xcstrings", xcode_dumps(hello_data), original_content=baseline
        )

    def test_recompute_waits_for_flush(self, scheduler, store, hello_data, xcode_dumps):
        """Test dirty keys are filled in once the deferred work runs."""
        from xcforge_enums import SyncEffect

        session = self._open_edited(scheduler, store, hello_data, xcode_dumps)

        assert session.dirty_keys == set()
        assert scheduler.has_pending(session.id, SyncEffect.RECOMPUTE_DIRTY)

        scheduler.flush(session.id)
        assert session.dirty_keys == {"hello"}

    def test_recompute_runs_when_idle(self, qtbot, scheduler, store, hello_data, xcode_dumps):
        """Test the event loop runs the recompute without a flush."""
        session = self._open_edited(scheduler, store, hello_data, xcode_dumps)

        qtbot.waitUntil(lambda: session.dirty_keys == {"hello"}, timeout=2000)


class TestTextSync:
    """Tests for keeping the serialized text in step."""

    def test_targeted_patch_preserves_crlf_file(self, catalog_controller, scheduler, crlf_session, crlf_text):
        """Test an edit in a 4-space CRLF file changes only the edited value."""
        session = crlf_session

        catalog_controller.set_value(session, "beta", "fr", "Bêta modifiée")
        scheduler.flush(session.id)

        assert session.current_content == crlf_text.replace('"value": "Bêta"', '"value": "Bêta modifiée"')
        assert not session.document_dirty

    def test_targeted_patch_inserts_new_locale(self, catalog_controller, scheduler, hello_session, hello_data, xcode_dumps):
        """Test a new localization is inserted in Xcode style."""
        catalog_controller.set_value(hello_session, "hello", "fr", "Bonjour")
        scheduler.flush(hello_session.id)

        hello_data["strings"]["hello"]["localizations"]["fr"] = {
            "stringUnit": {"state": "translated", "value": "Bonjour"},
        }
        assert hello_session.current_content == xcode_dumps(hello_data)

    def test_debounced_sync_runs(self, qtbot, catalog_controller, hello_session):
        """Test the text catches up without an explicit flush."""
        catalog_controller.set_value(hello_session, "hello", "fr", "Bonjour")

        qtbot.waitUntil(lambda: not hello_session.document_dirty, timeout=2000)
        assert "Bonjour" in hello_session.current_content

    def test_repeated_edits_coalesce(self, catalog_controller, scheduler, hello_session):
        """Test several edits to one key produce a single pending patch."""
        session = hello_session
        syncs = []
        session.content_synced.connect(lambda: syncs.append(session.current_content))

        for value in ("B", "Bo", "Bon", "Bonjour"):
            catalog_controller.set_value(session, "hello", "fr", value)
        scheduler.flush(session.id)

        assert len(syncs) == 1
        assert json.loads(syncs[0])["strings"]["hello"]["localizations"]["fr"]["stringUnit"]["value"] == "Bonjour"

    def test_removed_key_is_deleted_from_text(self, catalog_controller, scheduler, workspace, xcode_dumps, hello_data):
        """Test restoring a key absent from the baseline removes it from the text."""
        text = xcode_dumps(hello_data)
        hello_data["strings"]["extra"] = {"comment": "added later"}
        session = workspace.open_catalog("Localizable.xcstrings", xcode_dumps(hello_data), original_content=text)
        assert session.dirty_keys == {"extra"}

        catalog_controller.restore_key(session, "extra")
        scheduler.flush(session.id)

        assert session.current_content == text
        assert session.dirty_keys == set()

    def test_export_keeps_xcode_empty_objects(self, catalog_controller, workspace, hello_data, xcode_dumps):
        """Test a rebuild writes untouched empty entries the way Xcode does."""
        def xcode_text(data):
            return xcode_dumps(data).replace('"" : {}', '"" : {\n\n    }')

        hello_data["strings"][""] = {}
        session = workspace.open_catalog("Localizable.xcstrings", xcode_text(hello_data))

        catalog_controller.set_value(session, "hello", "fr", "Bonjour")
        exported = catalog_controller.export_content(session)

        hello_data["strings"]["hello"]["localizations"]["fr"] = {
            "stringUnit": {"state": "translated", "value": "Bonjour"},
        }
        assert '"" : {\n\n    }' in exported.content
        assert exported.content == xcode_text(hello_data)

    def test_export_forces_rebuild(self, catalog_controller, hello_session):
        """Test export returns up-to-date text while a sync is pending."""
        catalog_controller.set_value(hello_session, "hello", "fr", "Bonjour")

        exported = catalog_controller.export_content(hello_session)

        assert exported.file_name == "Localizable.xcstrings"
        assert json.loads(exported.content)["strings"]["hello"]["localizations"]["fr"]["stringUnit"]["value"] == "Bonjour"
        assert not hello_session.document_dirty

    def test_failed_patch_falls_back_to_rebuild(self, catalog_controller, scheduler, hello_session):
        """Test a text that cannot be patched is rebuilt from the model."""
        failures = []
        catalog_controller.sync_failed.connect(lambda sid, msg: failures.append(sid))
        hello_session.current_content = '{"strings": "not an object"}'

        catalog_controller.set_value(hello_session, "hello", "fr", "Bonjour")
        scheduler.flush(hello_session.id)

        assert failures == [hello_session.id]
        data = json.loads(hello_session.current_content)
        assert data["strings"]["hello"]["localizations"]["fr"]["stringUnit"]["value"] == "Bonjour"


class TestChangeReporting:
    """Tests for list_changes / change_summary."""

    def test_list_changes(self, catalog_controller, crlf_session):
        """Test per-locale before/after rows."""
        catalog_controller.set_value(crlf_session, "beta", "fr", "Beta")
        catalog_controller.set_value(crlf_session, "gamma", "fr", "Gamma FR")

        rows = [(row.key, row.locale, row.before, row.after) for row in catalog_controller.list_changes(crlf_session)]

        assert rows == [
            ("beta", "fr", "Bêta", "Beta"),
            ("gamma", "fr", "", "Gamma FR"),
        ]

    def test_change_summary_title(self, catalog_controller, crlf_session):
        """Test the summary names the changed locale."""
        catalog_controller.set_value(crlf_session, "beta", "fr", "Beta")

        summary = catalog_controller.change_summary(crlf_session)

        assert summary.title == "chore(localization): update fr translation"
        assert "- beta" in summary.body
