# Mod loaders package
from .base import ModLoader, ModLoaderData
from .bepinex import BepInEx
from .unreal_vr import UnrealVr
from .manager import MOD_LOADER_CLASSES, create_mod_loaders, get_data_map
