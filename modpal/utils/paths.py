"""modpal file path constants and utilities."""

import hashlib
import logging
import os
from pathlib import Path
from typing import Union

from ..errors import PathResolutionError

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "MODPAL_DATA_DIR"
RESOURCES_DIR_ENV = "MODPAL_RESOURCES_DIR"

SETTINGS_FILE = "settings.json"
MANUAL_GAMES_FILE = "manual-games.json"
LOG_FILE = "modpal.log"


def get_data_dir() -> Path:
    """Get the modpal data directory (~/.local/share/modpal unless overridden)."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / "modpal"
    return Path.home() / ".local" / "share" / "modpal"


def get_default_resources_dir() -> Path:
    """Folder holding the bundled loader runtimes (bepinex/, unreal_vr/)."""
    override = os.environ.get(RESOURCES_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parents[2] / "resources"


def get_settings_path() -> Path:
    return get_data_dir() / SETTINGS_FILE


def get_manual_games_path() -> Path:
    return get_data_dir() / MANUAL_GAMES_FILE


def get_logs_path() -> Path:
    return get_data_dir() / "logs"


def get_engine_cache_dir() -> Path:
    return get_data_dir() / "engine-cache"


def get_mod_loaders_path() -> Path:
    """Root of every loader's managed folder: <data>/mod-loaders."""
    return get_data_dir() / "mod-loaders"


def get_installed_mods_path(game_id: str) -> Path:
    """Per-game folder that loaders install mods into."""
    return get_data_dir() / "installed-mods" / game_id


def ensure_data_dir() -> None:
    """Ensure the modpal data directory exists."""
    get_data_dir().mkdir(parents=True, exist_ok=True)


def normalize_path(path: Union[str, Path]) -> Path:
    """Resolve a path, keeping it as-is when it can't be canonicalized."""
    path = Path(path)
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        logger.error(f"Failed to normalize path `{path}`: {e}")
        return path


def hash_path(path: Union[str, Path]) -> str:
    """Stable id for a path. Same path gives the same id across runs."""
    return hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:16]


def file_name_without_extension(path: Union[str, Path]) -> str:
    stem = Path(path).stem
    if not stem:
        raise PathResolutionError(path, "path has no file name")
    return stem
