"""
InstallService - Handles mod installation and uninstallation for games.

Responsibilities:
- Resolve a mod to a local copy (snapshot, disk rescan, download, or manual install)
- Hand the local mod to its loader for installation into a game
- Refresh the game's mod lists and executable info afterwards

Nothing is published when a step fails, so a failed install leaves the
game's snapshot untouched.
"""

import asyncio
import logging
import weakref
from enum import Enum
from typing import Optional

from ..errors import ModNotFoundError, ModUnavailableError
from ..games.installed_game import InstalledGame
from ..mods.local_mod import LocalMod
from ..state import StateStore
from ..utils.fanout import in_thread
from .sync_service import SyncService

logger = logging.getLogger(__name__)


class InstallOutcome(str, Enum):
    INSTALLED = "Installed"
    # The loader folder was opened for the user to drop the mod in themselves
    MANUAL_ACTION_REQUIRED = "ManualActionRequired"


class InstallService:
    """Service for installing and uninstalling mods."""

    def __init__(self, state: StateStore, sync_service: SyncService):
        """
        Args:
            state: Shared StateStore
            sync_service: SyncService owning the mod loaders and local mod rescans
        """
        self.state = state
        self.sync = sync_service
        # Entries go away once no operation on the game holds the lock
        self._game_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, game_id: str) -> asyncio.Lock:
        lock = self._game_locks.get(game_id)
        if lock is None:
            lock = self._game_locks[game_id] = asyncio.Lock()
        return lock

    async def install_mod(self, game_id: str, mod_id: str) -> InstallOutcome:
        """
        Install a mod into a game, fetching the mod first if it isn't local.

        Raises:
            GameNotFoundError: unknown game id.
            ModUnavailableError: the mod is neither local nor in any remote catalog.
            ModNotFoundError: the mod still isn't on disk after downloading it.
            IncompatibleModError: the mod doesn't fit the game.
        """
        async with self._lock_for(game_id):
            game = self.state.installed_games.try_get(game_id)
            logger.info(f"[Install] Installing {mod_id} into {game.name}")

            local_mod = await self._resolve_local_mod(mod_id)
            if local_mod is None:
                logger.info(f"[Install] {mod_id} needs to be installed manually")
                return InstallOutcome.MANUAL_ACTION_REQUIRED

            loader = self.sync.get_mod_loader(local_mod.common.loader_id)
            updated = game.copy()
            await loader.install_mod(updated, local_mod)

            await self._refresh_and_publish(updated)
            logger.info(f"[Install] Installed {mod_id} into {game.name}")
            return InstallOutcome.INSTALLED

    async def _resolve_local_mod(self, mod_id: str) -> Optional[LocalMod]:
        """
        Find the local copy of a mod.

        Order: current snapshot, then one disk rescan, then a download (or
        opening the loader folder when there is nothing to download)
        followed by another rescan. None means the user has to act.
        """
        local_mod = self.state.local_mods.find(mod_id)
        if local_mod is not None:
            return local_mod

        # Files may have been changed by hand since the last scan
        local_mods = await self.sync.refresh_local_mods()
        if mod_id in local_mods:
            return local_mods[mod_id]

        remote_mod = self.state.remote_mods.find(mod_id)
        if remote_mod is None:
            raise ModUnavailableError(mod_id, "not found locally or in any remote catalog")

        loader = self.sync.get_mod_loader(remote_mod.common.loader_id)
        manual = remote_mod.data.latest_version is None
        if manual:
            loader.open_folder()
        else:
            await loader.download_mod(remote_mod)

        local_mods = await self.sync.refresh_local_mods()
        if mod_id in local_mods:
            return local_mods[mod_id]
        if manual:
            return None
        raise ModNotFoundError(mod_id)

    async def uninstall_mod(self, game_id: str, mod_id: str) -> None:
        """Remove a mod's files from a game. Local only, never touches the network."""
        async with self._lock_for(game_id):
            game = self.state.installed_games.try_get(game_id)
            updated = game.copy()
            await in_thread(updated.uninstall_mod, mod_id)
            await self._refresh_and_publish(updated)

    async def download_mod(self, mod_id: str) -> None:
        """Download a remote mod into its loader's mods folder, then rescan."""
        remote_mod = self.state.remote_mods.try_get(mod_id)
        loader = self.sync.get_mod_loader(remote_mod.common.loader_id)
        await loader.download_mod(remote_mod)
        await self.sync.refresh_local_mods()

    async def refresh_game(self, game_id: str) -> None:
        """Re-read a game's installed mods and executable info."""
        async with self._lock_for(game_id):
            game = self.state.installed_games.try_get(game_id)
            await self._refresh_and_publish(game.copy())

    async def _refresh_and_publish(self, game: InstalledGame) -> None:
        common_mod_data = self.sync.get_common_mod_data()

        def refresh():
            game.refresh_mods(common_mod_data)
            game.refresh_executable()

        await in_thread(refresh)
        self.state.installed_games.replace_item(game.id, game)
