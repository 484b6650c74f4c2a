"""Game engine descriptors shared by games, mods and the engine cache."""
import re
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class EngineBrand(str, Enum):
    UNITY = "Unity"
    UNREAL = "Unreal"
    GODOT = "Godot"
    GAME_MAKER = "GameMaker"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional['EngineBrand']:
        """Lenient parse: 'unity', 'Engine:Unity', 'Unreal Engine 4' all work."""
        if not value:
            return None
        text = value.split(':', 1)[-1].strip().lower().replace(' ', '')
        for brand in cls:
            if text.startswith(brand.value.lower()):
                return brand
        return None


class UnityScriptingBackend(str, Enum):
    IL2CPP = "Il2Cpp"
    MONO = "Mono"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional['UnityScriptingBackend']:
        if not value:
            return None
        for backend in cls:
            if value.lower() == backend.value.lower():
                return backend
        return None


_VERSION_PATTERN = re.compile(r'(\d+)(?:\.(\d+))?(?:\.(\d+))?([a-zA-Z][\w.-]*)?')


@dataclass(frozen=True)
class EngineVersion:
    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None
    suffix: Optional[str] = None
    display: str = ""

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional['EngineVersion']:
        """Parse '2019.4.31f1', '4.27', '5' and similar."""
        if not text:
            return None
        match = _VERSION_PATTERN.search(text)
        if not match:
            return None
        major, minor, patch, suffix = match.groups()
        return cls(
            major=int(major),
            minor=int(minor) if minor is not None else None,
            patch=int(patch) if patch is not None else None,
            suffix=suffix,
            display=match.group(0)
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineVersion':
        return cls(
            major=int(data['major']),
            minor=data.get('minor'),
            patch=data.get('patch'),
            suffix=data.get('suffix'),
            display=data.get('display', '')
        )


@dataclass(frozen=True)
class GameEngine:
    brand: EngineBrand
    version: Optional[EngineVersion] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'brand': self.brand.value,
            'version': self.version.to_dict() if self.version else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameEngine':
        brand = EngineBrand.parse(data.get('brand'))
        if brand is None:
            raise ValueError(f"Unknown engine brand: {data.get('brand')!r}")
        version = data.get('version')
        return cls(brand=brand, version=EngineVersion.from_dict(version) if version else None)
