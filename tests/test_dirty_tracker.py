# -*- coding: utf-8 -*-
"""
Unit Tests for the Dirty/Diff Engine
"""


def _document(strings, source="en", locales=None):
    from models.document import LocalizationDocument
    data = {"sourceLanguage": source, "strings": strings}
    if locales is not None:
        data["availableLocales"] = locales
    return LocalizationDocument.from_dict(data)


class TestIsEntryDirty:
    """Tests for is_entry_dirty."""

    def test_absent_in_both(self):
        """Test a key missing on both sides is clean."""
        from core.dirty_tracker import is_entry_dirty

        assert not is_entry_dirty("x", _document({}), _document({}))

    def test_added_or_removed_key(self):
        """Test a key present on one side only is dirty."""
        from core.dirty_tracker import is_entry_dirty

        assert is_entry_dirty("x", _document({"x": {}}), _document({}))
        assert is_entry_dirty("x", _document({}), _document({"x": {}}))

    def test_comment_change(self):
        """Test key-level and per-locale comments count."""
        from core.dirty_tracker import is_entry_dirty

        baseline = _document({"x": {"comment": "a", "localizations": {"fr": {"comment": "f"}}}})

        assert is_entry_dirty("x", _document({"x": {"comment": "b", "localizations": {"fr": {"comment": "f"}}}}), baseline)
        assert is_entry_dirty("x", _document({"x": {"comment": "a", "localizations": {"fr": {"comment": "g"}}}}), baseline)

    def test_state_only_change_is_clean(self):
        """Test review state changes alone do not make a key dirty."""
        from core.dirty_tracker import is_entry_dirty

        baseline = _document({"x": {"localizations": {"fr": {"stringUnit": {"state": "new", "value": "Oui"}}}}})
        current = _document({"x": {"localizations": {"fr": {"stringUnit": {"state": "translated", "value": "Oui"}}}}})

        assert not is_entry_dirty("x", current, baseline)

    def test_structure_change_with_same_resolved_value(self):
        """Test moving a value into a string unit without changing it stays clean."""
        from core.dirty_tracker import is_entry_dirty

        baseline = _document({"Save": {}})
        current = _document({"Save": {"localizations": {"en": {"stringUnit": {"value": "Save"}}}}})

        assert not is_entry_dirty("Save", current, baseline)

    def test_value_in_available_locale(self):
        """Test locales from availableLocales are compared too."""
        from core.dirty_tracker import collect_locales_for_key

        document = _document({"x": {}}, locales=["de"])
        baseline = _document({"x": {"localizations": {"ja": {}}}})

        assert collect_locales_for_key("x", document, baseline) == {"en", "de", "ja"}


class TestCalculateDirtyKeys:
    """Tests for calculate_dirty_keys."""

    def test_equal_documents_are_clean(self, crlf_data):
        """Test structurally equal documents have no dirty keys."""
        from core.dirty_tracker import calculate_dirty_keys
        from models.document import LocalizationDocument

        document = LocalizationDocument.from_dict(crlf_data)

        assert calculate_dirty_keys(document, document.clone()) == set()

    def test_union_of_keys(self):
        """Test keys from both documents are considered."""
        from core.dirty_tracker import calculate_dirty_keys

        current = _document({"a": {}, "b": {"comment": "new"}})
        baseline = _document({"b": {}, "c": {}})

        assert calculate_dirty_keys(current, baseline) == {"a", "b", "c"}
        assert calculate_dirty_keys(current, baseline, keys=["b"]) == {"b"}
