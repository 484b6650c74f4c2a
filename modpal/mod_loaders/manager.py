"""
Mod loader registry.

The set of loaders is fixed; each one is built at startup and dropped (with a
log entry) if its on-disk layout is unusable.
"""
import logging
from pathlib import Path
from typing import Dict, Tuple, Type

from ..config import Settings
from .base import ModLoader, ModLoaderData
from .bepinex import BepInEx
from .unreal_vr import UnrealVr

logger = logging.getLogger(__name__)

MOD_LOADER_CLASSES: Tuple[Type[ModLoader], ...] = (BepInEx, UnrealVr)


async def create_mod_loaders(resources_path: Path, settings: Settings) -> Dict[str, ModLoader]:
    """Build every known loader. Loaders that fail to set up are left out."""
    loaders: Dict[str, ModLoader] = {}
    for loader_class in MOD_LOADER_CLASSES:
        try:
            loader = await loader_class.create(Path(resources_path), settings)
        except Exception as e:
            logger.error(f"Failed to set up mod loader {loader_class.ID}: {e}")
            continue
        loaders[loader.id] = loader
        logger.info(f"Registered mod loader: {loader.id}")
    return loaders


def get_data_map(loaders: Dict[str, ModLoader]) -> Dict[str, ModLoaderData]:
    return {loader_id: loader.get_data() for loader_id, loader in loaders.items()}
