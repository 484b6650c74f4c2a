"""
Reconciliation of local and remote mod records.

CommonModData is the join key between what a game needs (engine, scripting
backend) and what a mod provides. Local records describe what is really on
disk, so they win over remote catalog data; remote data only fills gaps.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from ..engines import EngineBrand, UnityScriptingBackend

if TYPE_CHECKING:
    from ..games.installed_game import InstalledGame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommonModData:
    id: str
    loader_id: str
    engine: Optional[EngineBrand] = None
    unity_backend: Optional[UnityScriptingBackend] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'loaderId': self.loader_id,
            'engine': self.engine.value if self.engine else None,
            'unityBackend': self.unity_backend.value if self.unity_backend else None,
        }


def compute_common_mod_data(
    local_mods: Mapping[str, Any],
    remote_mods: Mapping[str, Any]
) -> Dict[str, CommonModData]:
    """One CommonModData per mod id across both sources.

    Args:
        local_mods: mod id -> LocalMod
        remote_mods: mod id -> RemoteMod
    """
    result: Dict[str, CommonModData] = {}

    for mod_id in sorted(set(local_mods) | set(remote_mods)):
        local_mod = local_mods.get(mod_id)
        remote_mod = remote_mods.get(mod_id)

        if local_mod is None:
            result[mod_id] = remote_mod.common
            continue

        local = local_mod.common
        if remote_mod is None:
            result[mod_id] = local
            continue

        remote = remote_mod.common
        if remote.loader_id != local.loader_id:
            logger.warning(
                f"[Mods] {mod_id} is local to {local.loader_id} but listed remotely "
                f"for {remote.loader_id}, ignoring remote record"
            )
            result[mod_id] = local
            continue

        result[mod_id] = CommonModData(
            id=mod_id,
            loader_id=local.loader_id,
            engine=local.engine or remote.engine,
            unity_backend=local.unity_backend or remote.unity_backend
        )

    return result


def is_mod_compatible(mod_data: CommonModData, game: 'InstalledGame') -> bool:
    """Structural match between a mod's requirements and a game's executable.

    A mod without an engine requirement works with any game.
    """
    if mod_data.engine is None:
        return True

    game_engine = game.executable.engine
    if game_engine is None or game_engine.brand != mod_data.engine:
        return False

    if mod_data.unity_backend is not None:
        return game.executable.scripting_backend == mod_data.unity_backend

    return True


def get_incompatibility_reason(mod_data: CommonModData, game: 'InstalledGame') -> Optional[str]:
    """Human readable reason for is_mod_compatible returning False, else None."""
    if is_mod_compatible(mod_data, game):
        return None
    game_engine = game.executable.engine
    if game_engine is None or game_engine.brand != mod_data.engine:
        found = game_engine.brand.value if game_engine else "unknown engine"
        return f"needs {mod_data.engine.value}, game uses {found}"
    found = game.executable.scripting_backend.value if game.executable.scripting_backend else "unknown"
    return f"needs {mod_data.unity_backend.value} backend, game uses {found}"
