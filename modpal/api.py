"""
ModPal - the command facade a frontend talks to.

Every command returns a dict: {'success': True, ...} on success, or
{'success': False, 'error': <message>, 'error_kind': <ErrorKind value>}
when it fails. State changes are pushed through ModPal.subscribe listeners.
"""

import functools
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .config import Settings, load_settings
from .errors import ErrorKind, ExternalIOError, ModPalError
from .events import Listener
from .services import InstallService, SyncService
from .state import StateStore
from .stores.steam import find_steam_path
from .stores.steam_appinfo import delete_appinfo
from .utils import launcher
from .utils.paths import ensure_data_dir, get_logs_path, get_mod_loaders_path

logger = logging.getLogger(__name__)


def command(func: Callable) -> Callable:
    """Turn a facade coroutine into a result-dict command."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs) -> Dict[str, Any]:
        try:
            result = await func(self, *args, **kwargs)
        except ModPalError as e:
            logger.error(f"[{func.__name__}] {e.message}")
            return {'success': False, 'error': e.message, 'error_kind': e.kind.value}
        except Exception as e:
            logger.error(f"[{func.__name__}] Unexpected error: {e}", exc_info=True)
            return {'success': False, 'error': str(e), 'error_kind': ErrorKind.EXTERNAL_IO.value}
        response = {'success': True}
        if result:
            response.update(result)
        return response

    return wrapper


def _serialize_map(items) -> Dict[str, Any]:
    return {item_id: item.to_dict() for item_id, item in items.items()}


class ModPal:
    """Entry point: owns the StateStore and the services working on it."""

    def __init__(self, settings: Optional[Settings] = None, state: Optional[StateStore] = None):
        ensure_data_dir()
        self.settings = settings or load_settings()
        self.state = state or StateStore()
        self.sync_service = SyncService(self.state, self.settings)
        self.install_service = InstallService(self.state, self.sync_service)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.state.emitter.subscribe(listener)

    # --- Queries ------------------------------------------------------------

    @command
    async def get_installed_games(self):
        return {'installed_games': _serialize_map(self.state.installed_games.get())}

    @command
    async def get_owned_games(self):
        return {'owned_games': _serialize_map(self.state.owned_games.get())}

    @command
    async def get_mod_loaders(self):
        return {'mod_loaders': _serialize_map(self.state.mod_loaders.get())}

    @command
    async def get_local_mods(self):
        return {'local_mods': _serialize_map(self.state.local_mods.get())}

    @command
    async def get_remote_mods(self):
        return {'remote_mods': _serialize_map(self.state.remote_mods.get())}

    # --- Refresh and games ---------------------------------------------------

    @command
    async def update_data(self):
        await self.sync_service.update_data()

    @command
    async def add_game(self, path: str):
        game = self.sync_service.add_game(Path(path))
        return {'game': game.to_dict()}

    @command
    async def remove_game(self, game_id: str):
        self.sync_service.remove_game(game_id)

    # --- Mods ------------------------------------------------------------------

    @command
    async def install_mod(self, game_id: str, mod_id: str):
        outcome = await self.install_service.install_mod(game_id, mod_id)
        return {'outcome': outcome.value}

    @command
    async def uninstall_mod(self, game_id: str, mod_id: str):
        await self.install_service.uninstall_mod(game_id, mod_id)

    @command
    async def download_mod(self, mod_id: str):
        await self.install_service.download_mod(mod_id)

    @command
    async def refresh_game(self, game_id: str):
        await self.install_service.refresh_game(game_id)

    # --- OS actions ----------------------------------------------------------

    @command
    async def start_game(self, game_id: str):
        self.state.installed_games.try_get(game_id).start()

    @command
    async def start_game_exe(self, game_id: str):
        self.state.installed_games.try_get(game_id).start_exe()

    @command
    async def open_game_folder(self, game_id: str):
        self.state.installed_games.try_get(game_id).open_game_folder()

    @command
    async def open_game_mods_folder(self, game_id: str):
        self.state.installed_games.try_get(game_id).open_mods_folder()

    @command
    async def open_mod_folder(self, mod_id: str):
        self.state.local_mods.try_get(mod_id).open_folder()

    @command
    async def open_mod_loader_folder(self, loader_id: str):
        self.sync_service.get_mod_loader(loader_id).open_folder()

    @command
    async def open_mods_folder(self):
        folder = get_mod_loaders_path()
        folder.mkdir(parents=True, exist_ok=True)
        launcher.open_path(folder)

    @command
    async def delete_steam_appinfo_cache(self):
        steam_path = find_steam_path(self.settings.steam_path)
        if steam_path is None:
            raise ExternalIOError("Steam installation not found")
        return {'deleted': delete_appinfo(steam_path)}

    @command
    async def open_logs_folder(self):
        folder = get_logs_path()
        folder.mkdir(parents=True, exist_ok=True)
        launcher.open_path(folder)
