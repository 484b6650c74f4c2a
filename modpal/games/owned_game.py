"""Games a provider says the user owns, installed or not."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..engines import GameEngine
from .executable import OperatingSystem


class GameMode(str, Enum):
    FLAT = "Flat"
    VR = "VR"

    @classmethod
    def from_launch_type(cls, launch_type: Optional[str]) -> 'GameMode':
        """Steam launch option types: 'vr', 'openvr', 'openxr', 'oculus' mean VR."""
        if launch_type and launch_type.lower() in ('vr', 'openvr', 'openxr', 'oculus', 'oculusvr'):
            return cls.VR
        return cls.FLAT


@dataclass
class OwnedGame:
    """Snapshot of one owned game. Commands are opaque strings for the OS layer."""
    id: str
    provider_id: str
    name: str
    thumbnail_url: Optional[str] = None
    release_date: Optional[int] = None  # Unix timestamp
    engine: Optional[GameEngine] = None
    os_list: List[OperatingSystem] = field(default_factory=list)
    game_mode: Optional[GameMode] = None
    uevr_score: Optional[str] = None
    install_command: Optional[str] = None
    open_page_command: Optional[str] = None
    show_library_command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'providerId': self.provider_id,
            'name': self.name,
            'thumbnailUrl': self.thumbnail_url,
            'releaseDate': self.release_date,
            'engine': self.engine.to_dict() if self.engine else None,
            'osList': [os_.value for os_ in self.os_list],
            'gameMode': self.game_mode.value if self.game_mode else None,
            'uevrScore': self.uevr_score,
            'installCommand': self.install_command,
            'openPageCommand': self.open_page_command,
            'showLibraryCommand': self.show_library_command,
        }
