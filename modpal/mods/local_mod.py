"""
Mods present on disk under a loader's managed folder.

Each mod is a folder named after its id. A small manifest written next to the
mod files records the installed version (and, for runnable mods, what to run).
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..errors import ExternalIOError
from ..utils import launcher
from .common import CommonModData

logger = logging.getLogger(__name__)

MANIFEST_FILE = "modpal-manifest.json"


class ModKind(str, Enum):
    INSTALLABLE = "Installable"  # Files get copied into the game
    RUNNABLE = "Runnable"        # An executable gets run against the game


@dataclass
class RunnableManifest:
    path: str
    args: List[str] = field(default_factory=list)


@dataclass
class Manifest:
    version: str
    runnable: Optional[RunnableManifest] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'version': self.version}
        if self.runnable:
            data['runnable'] = {'path': self.runnable.path, 'args': list(self.runnable.args)}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Manifest':
        if not isinstance(data, dict) or not isinstance(data.get('version'), str):
            raise ValueError("manifest needs a string 'version'")
        runnable = data.get('runnable')
        return cls(
            version=data['version'],
            runnable=RunnableManifest(
                path=str(runnable['path']),
                args=[str(a) for a in runnable.get('args', [])]
            ) if runnable else None
        )


def get_manifest_path(mod_path: Union[str, Path]) -> Path:
    return Path(mod_path) / MANIFEST_FILE


def read_manifest(mod_path: Union[str, Path]) -> Optional[Manifest]:
    """Manifest for a mod folder, None if there is none.

    Raises:
        ValueError: the manifest exists but can't be parsed.
    """
    manifest_path = get_manifest_path(mod_path)
    if not manifest_path.is_file():
        return None
    try:
        with open(manifest_path, 'r') as f:
            return Manifest.from_dict(json.load(f))
    except OSError as e:
        raise ValueError(f"unreadable manifest {manifest_path}: {e}") from e
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed manifest {manifest_path}: {e}") from e


def write_manifest(mod_path: Union[str, Path], manifest: Manifest) -> None:
    manifest_path = get_manifest_path(mod_path)
    try:
        with open(manifest_path, 'w') as f:
            json.dump(manifest.to_dict(), f, indent=2)
    except OSError as e:
        raise ExternalIOError(f"Failed to write manifest {manifest_path}: {e}") from e


@dataclass
class LocalModData:
    path: str
    manifest: Optional[Manifest] = None


@dataclass
class LocalMod:
    common: CommonModData
    data: LocalModData

    @property
    def id(self) -> str:
        return self.common.id

    @property
    def path(self) -> Path:
        return Path(self.data.path)

    @property
    def version(self) -> Optional[str]:
        return self.data.manifest.version if self.data.manifest else None

    @classmethod
    def read(cls, mod_path: Union[str, Path], common: CommonModData) -> 'LocalMod':
        """Read one mod folder.

        Raises:
            ValueError: the folder isn't a usable mod (empty, bad manifest).
        """
        mod_path = Path(mod_path)
        if not mod_path.is_dir():
            raise ValueError(f"{mod_path} is not a folder")
        if not any(p.name != MANIFEST_FILE for p in mod_path.iterdir()):
            raise ValueError(f"{mod_path} has no mod files")
        return cls(common=common, data=LocalModData(path=str(mod_path), manifest=read_manifest(mod_path)))

    def open_folder(self) -> None:
        launcher.open_path(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'common': self.common.to_dict(),
            'data': {
                'path': self.data.path,
                'manifest': self.data.manifest.to_dict() if self.data.manifest else None,
            },
        }
