"""
modpal settings.

Stored as JSON in <data>/settings.json. Missing keys fall back to defaults,
so older settings files keep working after new options are added.
"""
import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .utils.paths import get_default_resources_dir, get_settings_path

logger = logging.getLogger(__name__)

DEFAULT_MOD_DATABASE_URL = "https://raicuparta.github.io/rai-pal-db/mod-db"
DEFAULT_PC_GAMING_WIKI_URL = "https://www.pcgamingwiki.com/w/api.php"


def _default_epic_app_data_path() -> str:
    program_data = os.environ.get("ProgramData", "C:/ProgramData")
    return os.path.join(program_data, "Epic", "EpicGamesLauncher", "Data")


@dataclass
class Settings:
    """User-tweakable configuration"""
    resources_path: str = ""
    mod_database_url: str = DEFAULT_MOD_DATABASE_URL
    pc_gaming_wiki_url: str = DEFAULT_PC_GAMING_WIKI_URL
    steam_path: str = ""  # Empty means auto-detect
    epic_app_data_path: str = ""  # Empty means platform default
    request_timeout: float = 30.0

    def __post_init__(self):
        if not self.resources_path:
            self.resources_path = str(get_default_resources_dir())
        if not self.epic_app_data_path:
            self.epic_app_data_path = _default_epic_app_data_path()

    @property
    def resources_dir(self) -> Path:
        return Path(self.resources_path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.debug(f"[Settings] Ignoring unknown keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from disk, falling back to defaults on any problem."""
    settings_path = path or get_settings_path()
    try:
        if settings_path.exists():
            with open(settings_path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                return Settings.from_dict(data)
            logger.warning(f"[Settings] {settings_path} is not a JSON object, using defaults")
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"[Settings] Error loading settings: {e}")
    return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> bool:
    """Save settings to disk"""
    settings_path = path or get_settings_path()
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_path, 'w') as f:
            json.dump(settings.to_dict(), f, indent=2)
        logger.info(f"[Settings] Saved settings to {settings_path}")
        return True
    except OSError as e:
        logger.error(f"[Settings] Error saving settings: {e}")
        return False
