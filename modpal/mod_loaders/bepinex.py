"""
BepInEx mod loader for Unity games.

Runtime files are bundled per scripting backend:

    <resources>/bepinex/<Mono|Il2Cpp>/BepInEx/...          loader core
    <resources>/bepinex/<Mono|Il2Cpp>/doorstop/<x64|x86>/  shim for the game folder

The shim goes next to the game executable and points at a per-game
installed-mods folder, so the game folder itself stays almost untouched.
Local mods live in <mods>/<Mono|Il2Cpp>/<mod id>.
"""
import asyncio
import logging
import shutil
from pathlib import Path
from typing import Dict

from ..engines import EngineBrand, UnityScriptingBackend
from ..errors import ExternalIOError, IncompatibleModError, PathResolutionError
from ..games.executable import Architecture, OperatingSystem
from ..games.installed_game import PLUGINS_SUBPATH, InstalledGame
from ..mods.common import CommonModData
from ..mods.local_mod import MANIFEST_FILE, LocalMod, ModKind
from .base import ModLoader

logger = logging.getLogger(__name__)

DOORSTOP_CONFIG_FILE = "doorstop_config.ini"

# Entry assembly the doorstop shim loads, per scripting backend.
TARGET_ASSEMBLIES = {
    UnityScriptingBackend.MONO: Path("BepInEx") / "core" / "BepInEx.Preloader.dll",
    UnityScriptingBackend.IL2CPP: Path("BepInEx") / "core" / "BepInEx.Unity.IL2CPP.dll",
}


class BepInEx(ModLoader):
    """Installs BepInEx plugins into Unity games (Mono and Il2Cpp)."""

    ID = "bepinex"
    KIND = ModKind.INSTALLABLE
    ENGINE = EngineBrand.UNITY

    @classmethod
    async def create(cls, resources_path: Path, settings) -> 'BepInEx':
        loader = cls(resources_path, settings)
        if not loader.path.is_dir():
            raise ExternalIOError(f"BepInEx resources not found at {loader.path}")
        return loader

    def _get_backend(self, game: InstalledGame) -> UnityScriptingBackend:
        engine = game.executable.engine
        if engine is None or engine.brand != EngineBrand.UNITY:
            raise IncompatibleModError(self.id, game.id, "BepInEx only supports Unity games")
        if game.executable.operating_system == OperatingSystem.LINUX:
            raise IncompatibleModError(self.id, game.id, "native Linux builds are not supported")
        return game.executable.scripting_backend or UnityScriptingBackend.MONO

    def get_doorstop_config(self, game: InstalledGame, backend: UnityScriptingBackend) -> str:
        target_assembly = game.installed_mods_folder / TARGET_ASSEMBLIES[backend]
        lines = [
            "[General]",
            "enabled = true",
            f"target_assembly = {target_assembly}",
            "redirect_output_log = false",
            "",
        ]
        if backend == UnityScriptingBackend.IL2CPP:
            core_folder = game.installed_mods_folder / "BepInEx" / "core"
            lines += [
                "[Il2Cpp]",
                f"coreclr_path = {core_folder / 'dotnet' / 'coreclr.dll'}",
                f"corlib_dir = {core_folder / 'dotnet'}",
                "",
            ]
        return "\n".join(lines)

    def is_installed(self, game: InstalledGame) -> bool:
        core_folder = game.installed_mods_folder / "BepInEx" / "core"
        return (game.game_folder / DOORSTOP_CONFIG_FILE).is_file() and core_folder.is_dir()

    def install(self, game: InstalledGame) -> None:
        backend = self._get_backend(game)
        architecture = "x86" if game.executable.architecture == Architecture.X86 else "x64"
        backend_resources = self.path / backend.value
        doorstop_resources = backend_resources / "doorstop" / architecture

        if not doorstop_resources.is_dir():
            raise ExternalIOError(f"Missing BepInEx {backend.value} {architecture} runtime at {doorstop_resources}")

        try:
            # Re-copying over an existing install just refreshes the same files.
            shutil.copytree(doorstop_resources, game.game_folder, dirs_exist_ok=True)
            shutil.copytree(
                backend_resources / "BepInEx",
                game.installed_mods_folder / "BepInEx",
                dirs_exist_ok=True
            )
            (game.game_folder / DOORSTOP_CONFIG_FILE).write_text(self.get_doorstop_config(game, backend))
        except OSError as e:
            raise ExternalIOError(f"Failed to install BepInEx into {game.name}: {e}") from e

        logger.info(f"[BepInEx] Installed {backend.value} {architecture} runtime for {game.name}")

    async def install_mod(self, game: InstalledGame, local_mod: LocalMod) -> None:
        self.check_compatible(game, local_mod.common)
        await asyncio.to_thread(self._install_mod_files, game, local_mod)
        logger.info(f"[BepInEx] Installed {local_mod.id} into {game.name}")

    def _install_mod_files(self, game: InstalledGame, local_mod: LocalMod) -> None:
        if not self.is_installed(game):
            self.install(game)

        target = game.installed_mods_folder / PLUGINS_SUBPATH / local_mod.id
        try:
            if target.exists():
                shutil.rmtree(target)
            shutil.copytree(local_mod.path, target, ignore=shutil.ignore_patterns(MANIFEST_FILE))
        except OSError as e:
            raise ExternalIOError(f"Failed to copy {local_mod.id} into {game.name}: {e}") from e

    def get_mod_path(self, mod_data: CommonModData) -> Path:
        if mod_data.unity_backend is None:
            raise PathResolutionError(mod_data.id, "BepInEx mod declares no Unity scripting backend")
        flat_path = super().get_mod_path(mod_data)
        return flat_path.parent / mod_data.unity_backend.value / flat_path.name

    def get_local_mods(self) -> Dict[str, LocalMod]:
        mods: Dict[str, LocalMod] = {}
        for backend in UnityScriptingBackend:
            backend_mods = self.scan_mod_folders(
                self.get_installed_mods_path() / backend.value,
                lambda mod_id, backend=backend: CommonModData(
                    id=mod_id,
                    loader_id=self.id,
                    engine=EngineBrand.UNITY,
                    unity_backend=backend
                )
            )
            for mod_id, local_mod in backend_mods.items():
                if mod_id in mods:
                    logger.warning(f"[BepInEx] {mod_id} exists for several backends, keeping {mods[mod_id].common.unity_backend.value}")
                    continue
                mods[mod_id] = local_mod
        return dict(sorted(mods.items()))
