"""
Installed games and their per-game mod state.

An InstalledGame id is a hash of the normalized executable path, so the same
executable keeps the same id across refreshes and across providers.
"""
import copy
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..engines import GameEngine
from ..errors import ExternalIOError, ModNotFoundError
from ..mods.common import is_mod_compatible
from ..utils import launcher
from ..utils.paths import get_installed_mods_path, hash_path, normalize_path
from .executable import GameExecutable
from .owned_game import GameMode

logger = logging.getLogger(__name__)

# Where Installable mods end up inside a game's installed-mods folder.
PLUGINS_SUBPATH = Path("BepInEx") / "plugins"


@dataclass
class InstalledGame:
    id: str
    name: str
    provider_id: str
    executable: GameExecutable
    discriminator: Optional[str] = None
    game_mode: Optional[GameMode] = None
    provider_game_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    start_command: Optional[str] = None
    installed_mods: List[str] = field(default_factory=list)
    available_mods: Dict[str, bool] = field(default_factory=dict)  # mod id -> installed

    @classmethod
    def new(cls, path: Union[str, Path], name: str, provider_id: str) -> Optional['InstalledGame']:
        """Build a game from an executable path. None if the executable is missing."""
        normalized = normalize_path(path)
        if not normalized.is_file():
            logger.debug(f"Skipping {name}: executable not found at {normalized}")
            return None

        game = cls(
            id=hash_path(normalized),
            name=name,
            provider_id=provider_id,
            executable=GameExecutable.read(normalized)
        )
        game.refresh_installed_mods()
        return game

    @property
    def engine(self) -> Optional[GameEngine]:
        return self.executable.engine

    @property
    def game_folder(self) -> Path:
        return Path(self.executable.path).parent

    @property
    def installed_mods_folder(self) -> Path:
        return get_installed_mods_path(self.id)

    def get_installed_mod_folder(self, mod_id: str) -> Path:
        return self.installed_mods_folder / PLUGINS_SUBPATH / mod_id

    def copy(self) -> 'InstalledGame':
        """Detached copy to mutate before publishing a new snapshot."""
        return copy.deepcopy(self)

    def refresh_installed_mods(self) -> None:
        plugins_folder = self.installed_mods_folder / PLUGINS_SUBPATH
        try:
            self.installed_mods = sorted(
                entry.name for entry in plugins_folder.iterdir() if entry.is_dir()
            )
        except FileNotFoundError:
            self.installed_mods = []
        except OSError as e:
            logger.warning(f"Failed to read installed mods for {self.name}: {e}")
            self.installed_mods = []

    def refresh_available_mods(self, common_mod_data: Mapping[str, Any]) -> None:
        """Recompute which known mods work with this game.

        Args:
            common_mod_data: mod id -> CommonModData, from compute_common_mod_data.
        """
        installed = set(self.installed_mods)
        self.available_mods = {
            mod_id: mod_id in installed
            for mod_id, mod_data in sorted(common_mod_data.items())
            if is_mod_compatible(mod_data, self)
        }

    def refresh_mods(self, common_mod_data: Mapping[str, Any]) -> None:
        self.refresh_installed_mods()
        self.refresh_available_mods(common_mod_data)

    def refresh_executable(self) -> None:
        """Re-read executable metadata, e.g. after a loader patched the game folder."""
        self.executable = GameExecutable.read(self.executable.path)

    def uninstall_mod(self, mod_id: str) -> None:
        mod_folder = self.get_installed_mod_folder(mod_id)
        if not mod_folder.is_dir():
            raise ModNotFoundError(mod_id)
        try:
            shutil.rmtree(mod_folder)
        except OSError as e:
            raise ExternalIOError(f"Failed to remove {mod_folder}: {e}") from e
        logger.info(f"[Uninstall] Removed {mod_id} from {self.name}")

    def open_game_folder(self) -> None:
        launcher.open_path(self.game_folder)

    def open_mods_folder(self) -> None:
        folder = self.installed_mods_folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExternalIOError(f"Failed to create {folder}: {e}") from e
        launcher.open_path(folder)

    def start(self) -> None:
        """Start through the provider when possible, so its launcher handles updates."""
        if self.start_command:
            launcher.execute_command(self.start_command)
        else:
            self.start_exe()

    def start_exe(self) -> None:
        launcher.run_executable(self.executable.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'discriminator': self.discriminator,
            'providerId': self.provider_id,
            'providerGameId': self.provider_game_id,
            'executable': self.executable.to_dict(),
            'gameMode': self.game_mode.value if self.game_mode else None,
            'thumbnailUrl': self.thumbnail_url,
            'startCommand': self.start_command,
            'installedMods': list(self.installed_mods),
            'availableMods': dict(self.available_mods),
        }


def collect_installed_games(candidates: Iterable[InstalledGame]) -> Dict[str, InstalledGame]:
    """Merge candidates into an id -> game map.

    The first candidate for an executable path wins. When names collide, the
    first game keeps its discriminator (usually None) and later ones get one
    from their launch description, falling back to the executable file name
    and then the full path.
    """
    games: Dict[str, InstalledGame] = {}
    used_labels: Dict[str, set] = {}

    for game in candidates:
        if game.id in games:
            logger.debug(f"Dropping duplicate entry for {game.executable.path}")
            continue

        labels = used_labels.setdefault(game.name, set())
        if labels:
            for option in (game.discriminator, game.executable.name, game.executable.path):
                if option and option not in labels:
                    game.discriminator = option
                    break
        labels.add(game.discriminator)
        games[game.id] = game

    return games
