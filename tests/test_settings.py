# -*- coding: utf-8 -*-
"""
Unit Tests for settings persistence
"""

import json
import pytest


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    import xcforge_config as config
    path = tmp_path / "settings.json"
    monkeypatch.setattr(config, "SETTINGS_FILE_PATH", path)
    return path


class TestSettings:

    def test_defaults_without_file(self, settings_path):
        """Test defaults are returned when no file exists."""
        import xcforge_config as config
        from xcforge_settings import load_settings

        settings = load_settings()

        assert settings["debounce_ms"] == config.DEFAULT_DEBOUNCE_MS
        assert settings["idle_dirty_threshold"] == config.DEFAULT_IDLE_DIRTY_THRESHOLD

    def test_round_trip(self, settings_path):
        """Test saved settings load back."""
        from xcforge_settings import load_settings, save_settings, default_settings

        settings = default_settings()
        settings["debounce_ms"] = 50

        assert save_settings(settings)
        assert load_settings()["debounce_ms"] == 50

    def test_invalid_values_fall_back(self, settings_path):
        """Test bad values are replaced with defaults."""
        import xcforge_config as config
        from xcforge_settings import load_settings

        settings_path.write_text(json.dumps({"debounce_ms": -1, "idle_dirty_threshold": True, "storage_path": ""}),
                                 encoding="utf-8")

        settings = load_settings()

        assert settings["debounce_ms"] == config.DEFAULT_DEBOUNCE_MS
        assert settings["idle_dirty_threshold"] == config.DEFAULT_IDLE_DIRTY_THRESHOLD
        assert settings["storage_path"].endswith("catalogs.db")

    def test_corrupt_file(self, settings_path):
        """Test invalid JSON yields defaults."""
        from xcforge_settings import load_settings, default_settings

        settings_path.write_text("{oops", encoding="utf-8")

        assert load_settings() == default_settings()
