"""
SyncService - refreshes everything modpal knows from disk and network.

Responsibilities:
- Rebuild mod loaders and rescan their local mods
- Collect installed and owned games from every provider
- Fetch remote mod catalogs and recompute per-game mod availability
- Add and remove manually tracked games

Each refresh phase publishes to the StateStore as soon as it's done, so the
fast local data shows up before the slow network data arrives.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Union

from ..config import Settings
from ..errors import GameAlreadyAddedError, ModLoaderNotFoundError, SyncInProgressError
from ..events import AppEvent
from ..games.installed_game import InstalledGame, collect_installed_games
from ..games.owned_game import OwnedGame
from ..mod_loaders import ModLoader, create_mod_loaders, get_data_map
from ..mods.common import CommonModData, compute_common_mod_data
from ..mods.local_mod import LocalMod
from ..mods.remote_mod import RemoteMod
from ..state import StateStore
from ..stores import ManualProvider, ProviderManager
from ..utils.fanout import gather_results, in_thread
from ..utils.paths import hash_path, normalize_path

logger = logging.getLogger(__name__)


class SyncService:
    """Service for orchestrating data refreshes."""

    def __init__(self, state: StateStore, settings: Settings):
        """
        Args:
            state: Shared StateStore every phase publishes into
            settings: Loaded Settings (resources path, catalog URL, provider paths)
        """
        self.state = state
        self.settings = settings
        self.mod_loaders: Dict[str, ModLoader] = {}
        self.manual_provider = ManualProvider(settings)
        self._sync_lock = asyncio.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    def report_error(self, message: str) -> None:
        self.state.emitter.emit_error(message)

    def get_mod_loader(self, loader_id: str) -> ModLoader:
        loader = self.mod_loaders.get(loader_id)
        if loader is None:
            raise ModLoaderNotFoundError(loader_id)
        return loader

    def get_common_mod_data(self) -> Dict[str, CommonModData]:
        return compute_common_mod_data(self.state.local_mods.get(), self.state.remote_mods.get())

    async def update_data(self) -> None:
        """
        Full refresh. Runs at startup and when the user asks for it.

        Raises:
            SyncInProgressError: another refresh is still running.
        """
        if self._sync_lock.locked():
            raise SyncInProgressError()

        async with self._sync_lock:
            logger.info("[Sync] Starting data refresh")
            await self.refresh_mod_loaders()
            local_mods = await self.refresh_local_mods()

            provider_manager = await in_thread(ProviderManager.create, self.settings, self.report_error)
            installed_games = await self.refresh_installed_games(provider_manager, local_mods)

            remote_mods = await self.refresh_remote_mods()
            self.refresh_available_mods(installed_games, local_mods, remote_mods)

            await self.refresh_owned_games(provider_manager)
            logger.info("[Sync] Data refresh complete")

    async def refresh_mod_loaders(self) -> Dict[str, ModLoader]:
        self.mod_loaders = await create_mod_loaders(self.settings.resources_dir, self.settings)
        self.state.mod_loaders.set(get_data_map(self.mod_loaders))
        return self.mod_loaders

    async def refresh_local_mods(self) -> Dict[str, LocalMod]:
        """Rescan every loader's mods folder and publish the merged result."""
        result = await gather_results({
            loader_id: (lambda loader=loader: in_thread(loader.get_local_mods))
            for loader_id, loader in self.mod_loaders.items()
        })
        result.report(self.report_error, "Failed to read local mods")

        local_mods: Dict[str, LocalMod] = {}
        for loader_id in sorted(result.successes):
            local_mods.update(result.successes[loader_id])
        local_mods = dict(sorted(local_mods.items()))

        self.state.local_mods.set(local_mods)
        return local_mods

    async def refresh_installed_games(
        self,
        provider_manager: ProviderManager,
        local_mods: Dict[str, LocalMod]
    ) -> Dict[str, InstalledGame]:
        """Installed games from every provider, with availability from local mods only."""
        result = await gather_results({
            provider_id: (lambda provider=provider: in_thread(provider.list_installed))
            for provider_id, provider in provider_manager.providers.items()
        })
        result.report(self.report_error, "Failed to get installed games")

        candidates: List[InstalledGame] = []
        for provider_id in provider_manager.ids():
            candidates.extend(result.successes.get(provider_id, []))
        installed_games = collect_installed_games(candidates)

        common_mod_data = compute_common_mod_data(local_mods, {})
        for game in installed_games.values():
            game.refresh_available_mods(common_mod_data)

        self.state.installed_games.set(installed_games)
        logger.info(f"[Sync] {len(installed_games)} installed games")
        return installed_games

    async def refresh_remote_mods(self) -> Dict[str, RemoteMod]:
        """Fetch every loader's remote catalog. Failed catalogs are reported and left out."""
        result = await gather_results({
            loader_id: (lambda loader=loader: loader.get_remote_mods(self._raise))
            for loader_id, loader in self.mod_loaders.items()
        })
        result.report(self.report_error, "Failed to get remote mods")

        remote_mods: Dict[str, RemoteMod] = {}
        for loader_id in sorted(result.successes):
            remote_mods.update(result.successes[loader_id])

        self.state.remote_mods.set(remote_mods)
        return remote_mods

    @staticmethod
    def _raise(error: Exception) -> None:
        # Let gather_results record the failure under the loader's id
        raise error

    def refresh_available_mods(
        self,
        installed_games: Dict[str, InstalledGame],
        local_mods: Dict[str, LocalMod],
        remote_mods: Dict[str, RemoteMod]
    ) -> None:
        common_mod_data = compute_common_mod_data(local_mods, remote_mods)
        refreshed = {}
        for game_id, game in installed_games.items():
            updated = game.copy()
            updated.refresh_available_mods(common_mod_data)
            refreshed[game_id] = updated
        self.state.installed_games.set(refreshed)

    async def refresh_owned_games(self, provider_manager: ProviderManager) -> Dict[str, OwnedGame]:
        result = await gather_results({
            provider_id: provider.list_owned
            for provider_id, provider in provider_manager.providers.items()
        })
        result.report(self.report_error, "Failed to get owned games")

        owned_games: Dict[str, OwnedGame] = {}
        for provider_id in provider_manager.ids():
            for owned_game in result.successes.get(provider_id, []):
                owned_games[owned_game.id] = owned_game

        self.state.owned_games.set(owned_games)
        logger.info(f"[Sync] {len(owned_games)} owned games")
        return owned_games

    def add_game(self, path: Union[str, Path]) -> InstalledGame:
        """
        Track an executable as a manual game and publish it.

        Raises:
            GameAlreadyAddedError: a game with this executable is already known.
            PathResolutionError: the path isn't an existing file.
        """
        normalized = normalize_path(path)
        if self.state.installed_games.find(hash_path(normalized)) is not None:
            raise GameAlreadyAddedError(normalized)

        game = self.manual_provider.add_game(normalized)
        game.refresh_available_mods(self.get_common_mod_data())
        self.state.installed_games.replace_item(game.id, game)
        self.state.emitter.emit(AppEvent.GAME_ADDED, game.name)
        return game

    def remove_game(self, game_id: str) -> InstalledGame:
        """
        Stop tracking a manual game.

        Raises:
            GameNotFoundError: unknown id, or the game didn't come from the manual provider.
        """
        game = self.state.installed_games.try_get(game_id)
        self.manual_provider.remove_game(game.executable.path)
        self.state.installed_games.remove_item(game_id)
        self.state.emitter.emit(AppEvent.GAME_REMOVED, game.name)
        return game
