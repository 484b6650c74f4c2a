"""
Game executable inspection.

Reads just enough of an executable and its surrounding files to tell which
OS/architecture it targets and which engine it was built with. Everything
here is best-effort: unreadable files give "Unknown" values, never errors.
"""
import logging
import re
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ..engines import EngineBrand, EngineVersion, GameEngine, UnityScriptingBackend

logger = logging.getLogger(__name__)

HEADER_READ_SIZE = 4096

# PE machine types
_PE_MACHINE_X64 = 0x8664
_PE_MACHINE_X86 = 0x014c

_UNITY_VERSION_PATTERN = re.compile(rb'(20\d\d|[2-6])\.\d+\.\d+[abfp]\d+')
_UNITY_VERSION_FILES = ('globalgamemanagers', 'mainData', 'data.unity3d')


class OperatingSystem(str, Enum):
    UNKNOWN = "Unknown"
    LINUX = "Linux"
    WINDOWS = "Windows"


class Architecture(str, Enum):
    UNKNOWN = "Unknown"
    X64 = "X64"
    X86 = "X86"


def read_binary_info(path: Union[str, Path]) -> Tuple[OperatingSystem, Architecture]:
    """Identify PE (Windows) and ELF (Linux) binaries from their headers."""
    try:
        with open(path, 'rb') as f:
            header = f.read(HEADER_READ_SIZE)
    except OSError as e:
        logger.debug(f"Can't read executable header for {path}: {e}")
        return OperatingSystem.UNKNOWN, Architecture.UNKNOWN

    if header[:2] == b'MZ' and len(header) >= 0x40:
        pe_offset = struct.unpack_from('<I', header, 0x3c)[0]
        if pe_offset + 6 <= len(header) and header[pe_offset:pe_offset + 4] == b'PE\x00\x00':
            machine = struct.unpack_from('<H', header, pe_offset + 4)[0]
            if machine == _PE_MACHINE_X64:
                return OperatingSystem.WINDOWS, Architecture.X64
            if machine == _PE_MACHINE_X86:
                return OperatingSystem.WINDOWS, Architecture.X86
        return OperatingSystem.WINDOWS, Architecture.UNKNOWN

    if header[:4] == b'\x7fELF' and len(header) > 4:
        elf_class = header[4]
        if elf_class == 2:
            return OperatingSystem.LINUX, Architecture.X64
        if elf_class == 1:
            return OperatingSystem.LINUX, Architecture.X86
        return OperatingSystem.LINUX, Architecture.UNKNOWN

    return OperatingSystem.UNKNOWN, Architecture.UNKNOWN


def _unity_data_folder(exe_path: Path) -> Path:
    return exe_path.parent / f"{exe_path.stem}_Data"


def _read_unity_version(data_folder: Path) -> Optional[EngineVersion]:
    for file_name in _UNITY_VERSION_FILES:
        candidate = data_folder / file_name
        if not candidate.is_file():
            continue
        try:
            with open(candidate, 'rb') as f:
                match = _UNITY_VERSION_PATTERN.search(f.read(HEADER_READ_SIZE))
        except OSError:
            continue
        if match:
            return EngineVersion.parse(match.group(0).decode('ascii'))
    return None


def _is_unreal(exe_path: Path) -> bool:
    if exe_path.stem.endswith('-Shipping'):
        return True
    parts = [p.lower() for p in exe_path.parts]
    if 'binaries' in parts and any(p in ('win64', 'win32', 'wingdk') for p in parts):
        return True
    parents = exe_path.parents
    return len(parents) > 4 and (parents[3] / 'Engine').is_dir()


def detect_engine(exe_path: Union[str, Path]) -> Optional[GameEngine]:
    exe_path = Path(exe_path)
    folder = exe_path.parent

    data_folder = _unity_data_folder(exe_path)
    if data_folder.is_dir() or (folder / 'UnityPlayer.dll').is_file() or (folder / 'UnityPlayer.so').is_file():
        return GameEngine(EngineBrand.UNITY, _read_unity_version(data_folder))

    if _is_unreal(exe_path):
        return GameEngine(EngineBrand.UNREAL)

    if (folder / f"{exe_path.stem}.pck").is_file():
        return GameEngine(EngineBrand.GODOT)

    if (folder / 'data.win').is_file() or (folder / 'game.unx').is_file():
        return GameEngine(EngineBrand.GAME_MAKER)

    return None


def detect_scripting_backend(exe_path: Union[str, Path]) -> UnityScriptingBackend:
    """Unity only: Il2Cpp builds ship GameAssembly, Mono builds don't."""
    folder = Path(exe_path).parent
    if (folder / 'GameAssembly.dll').is_file() or (folder / 'GameAssembly.so').is_file():
        return UnityScriptingBackend.IL2CPP
    return UnityScriptingBackend.MONO


@dataclass
class GameExecutable:
    path: str
    name: str
    engine: Optional[GameEngine] = None
    architecture: Architecture = Architecture.UNKNOWN
    operating_system: OperatingSystem = OperatingSystem.UNKNOWN
    scripting_backend: Optional[UnityScriptingBackend] = None

    @classmethod
    def read(cls, path: Union[str, Path]) -> 'GameExecutable':
        path = Path(path)
        operating_system, architecture = read_binary_info(path)
        engine = detect_engine(path)
        scripting_backend = None
        if engine and engine.brand == EngineBrand.UNITY:
            scripting_backend = detect_scripting_backend(path)
        return cls(
            path=str(path),
            name=path.name,
            engine=engine,
            architecture=architecture,
            operating_system=operating_system,
            scripting_backend=scripting_backend
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'name': self.name,
            'engine': self.engine.to_dict() if self.engine else None,
            'architecture': self.architecture.value,
            'operatingSystem': self.operating_system.value,
            'scriptingBackend': self.scripting_backend.value if self.scripting_backend else None
        }
