"""
Tests for user sessions, persisted preferences and configuration overrides.
"""

import json

from highlight_reader.config import ReaderConfig
from highlight_reader.session import Preferences, UserSession
from highlight_reader.utils.file_utils import (
    atomic_write_text,
    clean_filename,
    detect_file_encoding,
    safe_read_text_file,
)


def test_user_session_anonymous():
    assert UserSession().is_anonymous
    assert UserSession("").is_anonymous
    assert not UserSession("alice").is_anonymous


def test_preferences_default_to_false():
    preferences = Preferences()
    assert preferences.is_private_activity is False
    assert preferences.show_others_highlight_list is False


def test_preferences_saved_on_change(tmp_path):
    path = tmp_path / "nested" / "preferences.json"
    preferences = Preferences(path)

    preferences.is_private_activity = True
    preferences.show_others_highlight_list = True

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "is_private_activity": True,
        "show_others_highlight_list": True,
    }
    reloaded = Preferences(path)
    assert reloaded.is_private_activity is True
    assert reloaded.show_others_highlight_list is True


def test_preferences_ignore_unknown_keys(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text(json.dumps({"is_private_activity": 1, "theme": "dark"}), encoding="utf-8")

    preferences = Preferences(path)

    assert preferences.is_private_activity is True
    assert preferences.show_others_highlight_list is False


def test_corrupt_preferences_fall_back_to_defaults(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text("{ broken", encoding="utf-8")

    preferences = Preferences(path)

    assert preferences.is_private_activity is False


def test_config_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HIGHLIGHT_READER_HOME", str(tmp_path))
    monkeypatch.delenv("HIGHLIGHT_READER_STORE", raising=False)
    monkeypatch.setenv("HIGHLIGHT_READER_PREFS", str(tmp_path / "custom.json"))

    config = ReaderConfig.from_env()

    assert config.store_path == tmp_path / "highlights.json"
    assert config.preferences_path == tmp_path / "custom.json"


def test_config_defaults_under_home():
    config = ReaderConfig()
    assert config.store_path.name == "highlights.json"
    assert config.store_path.parent == config.home
    assert round(config.thumbnail_height) == 571


def test_atomic_write_and_read_back(tmp_path):
    path = tmp_path / "deep" / "file.txt"
    atomic_write_text(path, "Zoë’s notes")

    assert safe_read_text_file(path, encoding="utf-8") == "Zoë’s notes"
    assert list(path.parent.iterdir()) == [path]


def test_detect_ascii_as_utf8(tmp_path):
    path = tmp_path / "plain.txt"
    path.write_bytes(b"plain ascii text")

    assert detect_file_encoding(path) == "utf-8"


def test_clean_filename():
    assert clean_filename('a<b>c:"d"/e') == "a_b_c__d__e"
    assert clean_filename("") == "untitled"
