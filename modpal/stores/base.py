"""
Base Provider class defining the interface for all game sources.

Every provider (Steam, Epic, Manual) inherits from this and reports two
things: games installed on this machine and games the user owns.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional
import logging

from ..cache.engine_cache import EngineCache
from ..config import Settings
from ..games.installed_game import InstalledGame
from ..games.owned_game import OwnedGame


logger = logging.getLogger(__name__)


class ProviderId(str, Enum):
    STEAM = "Steam"
    EPIC = "Epic"
    MANUAL = "Manual"


class Provider(ABC):
    """
    Abstract base class for game providers.

    Providers never modify the stores they read from. Both listings are
    snapshots; the caller merges them into the shared state.
    """

    ID: ProviderId

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine_cache: Optional[EngineCache] = None

    @classmethod
    def create(cls, settings: Settings) -> 'Provider':
        """
        Build the provider.

        Raises:
            ExternalIOError: the provider's data isn't present on this machine.
        """
        return cls(settings)

    @property
    def provider_id(self) -> ProviderId:
        return self.ID

    @property
    def engine_cache(self) -> EngineCache:
        """This provider's engine cache, loaded from disk on first use."""
        if self._engine_cache is None:
            self._engine_cache = EngineCache.load(self.ID.value)
        return self._engine_cache

    @abstractmethod
    def list_installed(self) -> List[InstalledGame]:
        """
        Scan the local machine for installed games.

        Blocking (filesystem only). Entries whose executable is missing are
        left out, not reported as errors.
        """
        pass

    @abstractmethod
    async def list_owned(self) -> List[OwnedGame]:
        """
        Get every game the user owns on this provider.

        May hit the network for engine metadata.
        """
        pass
