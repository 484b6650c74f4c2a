from __future__ import annotations

import json
from pathlib import Path

from modpal.config import DEFAULT_MOD_DATABASE_URL, Settings, load_settings, save_settings
from modpal.utils.paths import get_data_dir, get_installed_mods_path, get_settings_path, hash_path


def test_data_dir_follows_environment(data_dir: Path) -> None:
    assert get_data_dir() == data_dir
    assert get_installed_mods_path("abc") == data_dir / "installed-mods" / "abc"


def test_hash_path_is_stable() -> None:
    assert hash_path("/games/a.exe") == hash_path("/games/a.exe")
    assert hash_path("/games/a.exe") != hash_path("/games/b.exe")


def test_load_settings_missing_file() -> None:
    settings = load_settings()
    assert settings.mod_database_url == DEFAULT_MOD_DATABASE_URL
    assert settings.resources_path


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    settings = Settings(steam_path=str(tmp_path / "steam"), request_timeout=5.0)
    assert save_settings(settings) is True
    assert load_settings() == settings


def test_unknown_keys_and_bad_files(tmp_path: Path) -> None:
    path = get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"steam_path": "/steam", "removed_option": True}))
    assert load_settings().steam_path == "/steam"

    path.write_text("[]")
    assert load_settings().steam_path == ""

    path.write_text("{broken")
    assert load_settings().mod_database_url == DEFAULT_MOD_DATABASE_URL
