"""Tests for the config module."""
import json
from pathlib import Path

from questdo.config import (
    DEFAULTS,
    get_badge_catalog_path,
    get_db_path,
    get_setting,
    load_config,
    save_config,
    set_setting,
)


class TestLoadConfig:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(tmp_path / "nonexistent.json") == {}

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        assert load_config(path) == {}

    def test_non_object_returns_empty(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_config(path) == {}

    def test_loads_valid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"language": "ko"}', encoding="utf-8")
        assert load_config(path) == {"language": "ko"}

    def test_env_var_location(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text('{"user_id": "from-env"}', encoding="utf-8")
        monkeypatch.setenv("QUESTDO_CONFIG", str(path))
        assert get_setting("user_id") == "from-env"


class TestSaveConfig:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "sub" / "dir" / "config.json"
        save_config({"nested": True}, path)
        assert json.loads(path.read_text()) == {"nested": True}

    def test_keeps_non_ascii(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"title": "초보 모험가"}, path)
        assert "초보 모험가" in path.read_text(encoding="utf-8")


class TestSettings:
    def test_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        assert get_setting("language", path) == "en"
        assert get_setting("animate", path) is False
        assert get_setting("celebration_delays", path) == DEFAULTS["celebration_delays"]

    def test_unknown_key_is_none(self, tmp_path):
        assert get_setting("nope", tmp_path / "config.json") is None

    def test_set_preserves_other_keys(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"other_key": "keep_me"}, path)
        set_setting("language", "ko", path)
        config = load_config(path)
        assert config == {"other_key": "keep_me", "language": "ko"}

    def test_db_path_expands_user(self, tmp_path):
        path = tmp_path / "config.json"
        set_setting("db_path", "~/quests/data.db", path)
        assert get_db_path(path) == Path.home() / "quests" / "data.db"

    def test_badge_catalog_unset(self, tmp_path):
        assert get_badge_catalog_path(tmp_path / "config.json") is None

    def test_badge_catalog_set(self, tmp_path):
        path = tmp_path / "config.json"
        set_setting("badge_catalog", str(tmp_path / "badges.json"), path)
        assert get_badge_catalog_path(path) == tmp_path / "badges.json"
