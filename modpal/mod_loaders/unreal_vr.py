"""
UEVR mod loader for Unreal Engine games.

UEVR mods are runnable tools rather than files copied into the game: each
mod folder ships an executable (named in its manifest) that attaches to the
running game. Nothing needs injecting up front.
"""
import asyncio
import logging
from pathlib import Path
from typing import Dict, List

from ..engines import EngineBrand
from ..errors import ExternalIOError, IncompatibleModError
from ..games.installed_game import InstalledGame
from ..mods.common import CommonModData
from ..mods.local_mod import LocalMod, ModKind
from ..utils import launcher
from .base import ModLoader

logger = logging.getLogger(__name__)


class UnrealVr(ModLoader):
    """Runs UEVR against Unreal games."""

    ID = "unrealvr"
    KIND = ModKind.RUNNABLE
    ENGINE = EngineBrand.UNREAL

    def install(self, game: InstalledGame) -> None:
        engine = game.executable.engine
        if engine is None or engine.brand != EngineBrand.UNREAL:
            raise IncompatibleModError(self.id, game.id, "UEVR only supports Unreal games")

    async def install_mod(self, game: InstalledGame, local_mod: LocalMod) -> None:
        self.check_compatible(game, local_mod.common)
        self.install(game)

        runnable_path, args = self._get_runnable(local_mod, game)
        await asyncio.to_thread(launcher.run_executable, runnable_path, args)
        logger.info(f"[UnrealVr] Started {local_mod.id} for {game.name}")

    def _get_runnable(self, local_mod: LocalMod, game: InstalledGame):
        manifest = local_mod.data.manifest
        if manifest and manifest.runnable:
            runnable_path = local_mod.path / manifest.runnable.path
            raw_args: List[str] = manifest.runnable.args
        else:
            executables = sorted(local_mod.path.glob("*.exe"))
            if not executables:
                raise ExternalIOError(f"{local_mod.id} has nothing to run")
            runnable_path = executables[0]
            raw_args = ["--attach={executable_name}"]

        if not runnable_path.is_file():
            raise ExternalIOError(f"{local_mod.id} runnable not found at {runnable_path}")

        args = [
            arg.replace("{executable_name}", game.executable.name)
               .replace("{executable_path}", game.executable.path)
            for arg in raw_args
        ]
        return runnable_path, args

    def get_local_mods(self) -> Dict[str, LocalMod]:
        return self.scan_mod_folders(
            self.get_installed_mods_path(),
            lambda mod_id: CommonModData(id=mod_id, loader_id=self.id, engine=EngineBrand.UNREAL)
        )
