"""
Steam provider.

Installed games come from the Steam libraries (libraryfolders.vdf plus one
appmanifest_<id>.acf per installed app). Launch options, names and release
dates come from the binary appinfo.vdf cache.
"""
import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Set

import vdf

from ..engines import GameEngine
from ..errors import ExternalIOError
from ..games.executable import OperatingSystem
from ..games.installed_game import InstalledGame
from ..games.owned_game import GameMode, OwnedGame
from ..metadata.pc_gaming_wiki import get_engine_from_steam_id
from .base import Provider, ProviderId
from .steam_appinfo import SteamAppInfo, SteamLaunchOption, read_appinfo

logger = logging.getLogger(__name__)

STEAM_PATH_CANDIDATES = (
    "~/.steam/steam",
    "~/.local/share/Steam",
    "~/.var/app/com.valvesoftware.Steam/data/Steam",
    "C:/Program Files (x86)/Steam",
)

# Max concurrent PCGamingWiki lookups
ENGINE_LOOKUP_CONCURRENCY = 8


def find_steam_path(configured: str = "") -> Optional[Path]:
    """Find Steam installation directory"""
    candidates = [configured] if configured else list(STEAM_PATH_CANDIDATES)
    for candidate in candidates:
        path = Path(os.path.expanduser(candidate))
        if (path / "steamapps").is_dir():
            return path
    return None


def get_steam_thumbnail(app_id: str) -> str:
    return f"https://shared.cloudflare.steamstatic.com/store_item_assets/steam/apps/{app_id}/capsule_231x87.jpg"


def get_start_command(launch_option: SteamLaunchOption, discriminator: Optional[str]) -> str:
    """
    Command that starts a game through Steam.

    The default launch option uses rungameid, which waits for updates and
    shows Steam's launch popup. Alternative launch options need
    steam://launch to pick a specific option.
    """
    if discriminator is None:
        return f"steam://rungameid/{launch_option.app_id}"
    return f"steam://launch/{launch_option.app_id}/{launch_option.launch_type or ''}"


def get_library_paths(steam_path: Path) -> List[Path]:
    """Every Steam library folder, the main install first."""
    libraries = [steam_path]
    library_file = steam_path / "steamapps" / "libraryfolders.vdf"
    try:
        with open(library_file, 'r', encoding='utf-8', errors='replace') as f:
            data = vdf.load(f)
    except (OSError, SyntaxError) as e:
        logger.warning(f"[Steam] Could not read {library_file}: {e}")
        return libraries

    folders = data.get('libraryfolders') or data.get('LibraryFolders') or {}
    for key, value in folders.items():
        if not key.isdigit():
            continue
        # Old format: "1" "path". New format: "1" { "path" "..." }
        raw_path = value.get('path') if isinstance(value, dict) else value
        if not raw_path:
            continue
        path = Path(raw_path)
        if path not in libraries and (path / "steamapps").is_dir():
            libraries.append(path)
    return libraries


def read_app_manifest(manifest_path: Path) -> Optional[Dict[str, str]]:
    """AppState section of an appmanifest_<id>.acf, None if unreadable."""
    try:
        with open(manifest_path, 'r', encoding='utf-8', errors='replace') as f:
            data = vdf.load(f)
    except (OSError, SyntaxError) as e:
        logger.debug(f"[Steam] Skipping {manifest_path.name}: {e}")
        return None
    app_state = data.get('AppState') or data.get('appstate')
    if not isinstance(app_state, dict) or 'appid' not in app_state or 'installdir' not in app_state:
        return None
    return app_state


def parse_os_list(launch_options: List[SteamLaunchOption]) -> List[OperatingSystem]:
    found: Set[OperatingSystem] = set()
    for option in launch_options:
        for os_name in (option.os_list or '').split(','):
            os_name = os_name.strip().lower()
            if os_name == 'linux':
                found.add(OperatingSystem.LINUX)
            elif os_name == 'windows':
                found.add(OperatingSystem.WINDOWS)
    return sorted(found, key=lambda os_: os_.value)


class SteamProvider(Provider):
    ID = ProviderId.STEAM

    def __init__(self, settings, steam_path: Path, app_info: Dict[int, SteamAppInfo]):
        super().__init__(settings)
        self.steam_path = steam_path
        self.app_info = app_info

    @classmethod
    def create(cls, settings) -> 'SteamProvider':
        steam_path = find_steam_path(settings.steam_path)
        if steam_path is None:
            raise ExternalIOError("Steam installation not found")
        logger.info(f"[Steam] Using Steam at {steam_path}")
        return cls(settings, steam_path, read_appinfo(steam_path))

    def list_installed(self) -> List[InstalledGame]:
        games: List[InstalledGame] = []
        used_paths: Set[Path] = set()
        used_names: Set[str] = set()

        for library in get_library_paths(self.steam_path):
            steamapps = library / "steamapps"
            for manifest_path in sorted(steamapps.glob("appmanifest_*.acf")):
                app_state = read_app_manifest(manifest_path)
                if app_state is None:
                    continue
                try:
                    app_id = int(app_state['appid'])
                except ValueError:
                    continue
                app_info = self.app_info.get(app_id)
                if app_info is None:
                    continue

                name = app_state.get('name') or app_info.name
                app_path = steamapps / "common" / app_state['installdir']
                for launch_option in app_info.launch_options:
                    if not launch_option.executable:
                        continue
                    executable = launch_option.executable.replace('\\', '/')
                    full_path = app_path / executable
                    if full_path in used_paths:
                        continue

                    game = InstalledGame.new(full_path, name, self.ID.value)
                    if game is None:
                        continue

                    discriminator = None
                    if name in used_names:
                        discriminator = launch_option.description or executable
                    app_id_string = str(app_id)
                    game.discriminator = discriminator
                    game.provider_game_id = app_id_string
                    game.thumbnail_url = get_steam_thumbnail(app_id_string)
                    game.game_mode = GameMode.from_launch_type(launch_option.launch_type)
                    game.start_command = get_start_command(launch_option, discriminator)

                    games.append(game)
                    used_names.add(name)
                    used_paths.add(full_path)

        logger.info(f"[Steam] Found {len(games)} installed games")
        return games

    def _read_owned_ids(self) -> Optional[bytes]:
        try:
            return (self.steam_path / "appcache" / "librarycache" / "assets.vdf").read_bytes()
        except OSError:
            return None

    def is_owned(self, app_info: SteamAppInfo, assets_cache: Optional[bytes]) -> bool:
        """
        appinfo.vdf also lists apps the user doesn't own. assets.vdf only
        seems to hold owned apps, but misses some free ones, so free apps
        count as owned.
        """
        if app_info.is_free:
            return True
        if not assets_cache:
            return False
        return re.search(rb'(?<!\d)' + str(app_info.app_id).encode() + rb'(?!\d)', assets_cache) is not None

    async def list_owned(self) -> List[OwnedGame]:
        assets_cache = self._read_owned_ids()
        semaphore = asyncio.Semaphore(ENGINE_LOOKUP_CONCURRENCY)
        api_url = self.settings.pc_gaming_wiki_url

        async def lookup(steam_id: str) -> Optional[GameEngine]:
            async with semaphore:
                return await get_engine_from_steam_id(steam_id, api_url)

        owned_infos = [
            info for info in self.app_info.values()
            if info.app_type.lower() == 'game' and self.is_owned(info, assets_cache)
        ]

        async def build(info: SteamAppInfo) -> OwnedGame:
            id_string = str(info.app_id)
            game_mode = GameMode.FLAT
            if any(GameMode.from_launch_type(o.launch_type) == GameMode.VR for o in info.launch_options):
                game_mode = GameMode.VR
            return OwnedGame(
                id=id_string,
                provider_id=self.ID.value,
                name=info.name,
                thumbnail_url=get_steam_thumbnail(id_string),
                release_date=info.original_release_date or info.steam_release_date,
                engine=await self.engine_cache.get_or_lookup(id_string, lookup),
                os_list=parse_os_list(info.launch_options),
                game_mode=game_mode,
                install_command=f"steam://install/{id_string}",
                open_page_command=f"steam://store/{id_string}",
                show_library_command=f"steam://nav/games/details/{id_string}",
            )

        owned_games = list(await asyncio.gather(*(build(info) for info in owned_infos)))
        self.engine_cache.save()
        logger.info(f"[Steam] Found {len(owned_games)} owned games")
        return owned_games
