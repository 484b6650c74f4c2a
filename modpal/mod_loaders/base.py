"""
Base ModLoader class defining the interface for all mod loader backends.

All loaders (BepInEx, UnrealVr) inherit from this. Variants only differ in how
mods are packaged and how the runtime gets injected into a game, so they
implement install/install_mod/get_local_mods; fetching the remote catalog,
downloading and mod path derivation are shared here.
"""
import asyncio
import logging
import shutil
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..config import Settings
from ..engines import EngineBrand
from ..errors import (
    ExternalIOError,
    IncompatibleModError,
    ModPalError,
    ModUnavailableError,
    PathResolutionError,
)
from ..games.installed_game import InstalledGame
from ..mods.common import CommonModData, get_incompatibility_reason
from ..mods.local_mod import LocalMod, Manifest, ModKind, read_manifest, write_manifest
from ..mods.remote_mod import RemoteMod
from ..utils import launcher
from ..utils.paths import get_mod_loaders_path
from . import mod_database

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Exception], Any]


@dataclass(frozen=True)
class ModLoaderData:
    id: str
    path: str
    kind: ModKind

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'path': self.path, 'kind': self.kind.value}


class ModLoader(ABC):
    """
    Abstract base class for mod loader backends.

    Subclasses set ID (stable per loader kind), KIND and ENGINE.
    """

    ID: str = ""
    KIND: ModKind = ModKind.INSTALLABLE
    ENGINE: Optional[EngineBrand] = None

    def __init__(self, resources_path: Path, settings: Settings):
        self.settings = settings
        self.data = ModLoaderData(id=self.ID, path=str(Path(resources_path) / self.ID), kind=self.KIND)

    @classmethod
    async def create(cls, resources_path: Path, settings: Settings) -> 'ModLoader':
        """Build the loader, raising if its on-disk layout is unusable."""
        return cls(resources_path, settings)

    @property
    def id(self) -> str:
        return self.data.id

    @property
    def path(self) -> Path:
        return Path(self.data.path)

    def get_data(self) -> ModLoaderData:
        return self.data

    # --- Variant specific -------------------------------------------------

    @abstractmethod
    def install(self, game: InstalledGame) -> None:
        """
        First-time injection of the loader runtime into a game.

        Must be idempotent: running it on an already patched game is harmless.
        """

    @abstractmethod
    async def install_mod(self, game: InstalledGame, local_mod: LocalMod) -> None:
        """
        Activate a local mod for a game, installing the loader first if needed.

        Raises:
            IncompatibleModError: the mod doesn't fit the game's engine/backend.
        """

    @abstractmethod
    def get_local_mods(self) -> Dict[str, LocalMod]:
        """
        Rescan this loader's mods folder.

        Malformed or half-written mod folders are skipped, not fatal.
        """

    # --- Shared -------------------------------------------------------------

    def get_installed_mods_path(self) -> Path:
        return get_mod_loaders_path() / self.id / "mods"

    def get_downloads_path(self) -> Path:
        return get_mod_loaders_path() / self.id / "downloads"

    def get_mod_path(self, mod_data: CommonModData) -> Path:
        """Where a mod lives on disk. Pure function of loader folder + mod id."""
        mod_id = mod_data.id
        if not mod_id or mod_id in ('.', '..') or '/' in mod_id or '\\' in mod_id:
            raise PathResolutionError(mod_id, "invalid mod id")
        return self.get_installed_mods_path() / mod_id

    def check_compatible(self, game: InstalledGame, mod_data: CommonModData) -> None:
        reason = get_incompatibility_reason(mod_data, game)
        if reason:
            raise IncompatibleModError(mod_data.id, game.id, reason)

    def scan_mod_folders(self, folder: Path, common_for: Callable[[str], CommonModData]) -> Dict[str, LocalMod]:
        """Read every mod folder directly under `folder`, skipping broken ones."""
        mods: Dict[str, LocalMod] = {}
        if not folder.is_dir():
            return mods

        for mod_path in sorted(folder.iterdir()):
            if not mod_path.is_dir() or mod_path.name.startswith('.'):
                continue
            try:
                mods[mod_path.name] = LocalMod.read(mod_path, common_for(mod_path.name))
            except (ValueError, OSError) as e:
                logger.warning(f"[{self.id}] Skipping mod folder {mod_path.name}: {e}")
        return mods

    async def get_remote_mods(self, error_handler: ErrorHandler) -> Dict[str, RemoteMod]:
        """Fetch this loader's remote catalog.

        A failed fetch goes to error_handler and gives an empty map, so one
        loader's outage doesn't block the others.
        """
        try:
            database = await mod_database.fetch_mod_database(
                self.id,
                self.settings.mod_database_url,
                self.settings.request_timeout
            )
        except ModPalError as e:
            error_handler(e)
            return {}

        remote_mods = {}
        for mod_id, entry in database.items():
            if not isinstance(entry, dict):
                logger.debug(f"[{self.id}] Ignoring bad catalog entry {mod_id}")
                continue
            remote_mods[mod_id] = RemoteMod.from_database_entry(mod_id, self.id, entry)
        return remote_mods

    async def download_mod(self, remote_mod: RemoteMod) -> None:
        """Download the first listed version of a mod and extract it into its mod path.

        Raises:
            ModUnavailableError: no download entry, or the server refused it.
            ExternalNetworkError: the request failed.
            ExternalIOError: writing or extracting failed.
        """
        target_path = self.get_mod_path(remote_mod.common)
        downloads_folder = self.get_downloads_path()
        try:
            downloads_folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExternalIOError(f"Failed to create {downloads_folder}: {e}") from e

        first_download = remote_mod.data.latest_version
        if first_download is None:
            raise ModUnavailableError(remote_mod.id, "no download entry")

        logger.info(f"[{self.id}] Downloading {remote_mod.id} {first_download.version} from {first_download.url}")
        archive = await mod_database.fetch_archive(first_download.url, self.settings.request_timeout)
        if archive is None:
            raise ModUnavailableError(remote_mod.id, "download failed")

        staging_path = downloads_folder / f"{remote_mod.id}.zip"
        await asyncio.to_thread(self._extract_archive, archive, staging_path, target_path, first_download.version)
        logger.info(f"[{self.id}] Installed {remote_mod.id} {first_download.version} to {target_path}")

    def _extract_archive(self, archive: bytes, staging_path: Path, target_path: Path, version: str) -> None:
        """Extract next to the downloads, then swap into place. The old mod stays until extraction succeeds."""
        extract_path = staging_path.with_suffix(".partial")
        try:
            if extract_path.exists():
                shutil.rmtree(extract_path)
            staging_path.write_bytes(archive)
            with zipfile.ZipFile(staging_path) as zip_file:
                extract_path.mkdir(parents=True)
                zip_file.extractall(extract_path)

            # Keep any runnable info the archive shipped with, record the version we installed.
            try:
                bundled = read_manifest(extract_path)
            except ValueError:
                bundled = None
            write_manifest(extract_path, Manifest(version=version, runnable=bundled.runnable if bundled else None))

            if target_path.exists():
                shutil.rmtree(target_path)
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(extract_path), str(target_path))
        except zipfile.BadZipFile as e:
            raise ExternalIOError(f"Downloaded archive for {target_path.name} is not a valid zip: {e}") from e
        except OSError as e:
            raise ExternalIOError(f"Failed to extract {target_path.name}: {e}") from e
        finally:
            staging_path.unlink(missing_ok=True)
            shutil.rmtree(extract_path, ignore_errors=True)

    def open_folder(self) -> None:
        folder = self.get_installed_mods_path()
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExternalIOError(f"Failed to create {folder}: {e}") from e
        launcher.open_path(folder)
