"""
Provider Manager - builds and holds the game providers.

The provider set is fixed. Providers whose data isn't on this machine (no
Steam install, no Epic launcher) are left out at startup.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple, Type
import logging

from ..config import Settings
from ..errors import ProviderNotFoundError
from .base import Provider, ProviderId
from .epic import EpicProvider
from .manual import ManualProvider
from .steam import SteamProvider


logger = logging.getLogger(__name__)

PROVIDER_CLASSES: Tuple[Type[Provider], ...] = (SteamProvider, EpicProvider, ManualProvider)


class ProviderManager:
    """
    Holds one instance per available provider, keyed by provider id.
    """

    def __init__(self):
        self._providers: Dict[str, Provider] = {}

    @classmethod
    def create(
        cls,
        settings: Settings,
        error_handler: Optional[Callable[[str], Any]] = None
    ) -> 'ProviderManager':
        """Build every known provider, skipping (and reporting) the ones that fail to set up."""
        manager = cls()
        for provider_class in PROVIDER_CLASSES:
            try:
                manager.register_provider(provider_class.create(settings))
            except Exception as e:
                message = f"Failed to set up provider {provider_class.ID.value}: {e}"
                logger.warning(message)
                if error_handler:
                    error_handler(message)
        return manager

    def register_provider(self, provider: Provider):
        """Register a provider."""
        self._providers[provider.provider_id.value] = provider
        logger.info(f"Registered provider: {provider.provider_id.value}")

    def get_provider(self, provider_id: str) -> Optional[Provider]:
        """Get a specific provider by id."""
        return self._providers.get(provider_id)

    def try_get_provider(self, provider_id: str) -> Provider:
        provider = self.get_provider(provider_id)
        if provider is None:
            raise ProviderNotFoundError(provider_id)
        return provider

    @property
    def providers(self) -> Dict[str, Provider]:
        """Get all registered providers."""
        return self._providers

    @property
    def manual(self) -> ManualProvider:
        return self.try_get_provider(ProviderId.MANUAL.value)

    def ids(self) -> List[str]:
        return list(self._providers.keys())
