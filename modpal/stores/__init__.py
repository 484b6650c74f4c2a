from .base import Provider, ProviderId
from .epic import EpicProvider
from .manager import PROVIDER_CLASSES, ProviderManager
from .manual import ManualProvider
from .steam import SteamProvider

__all__ = [
    'Provider',
    'ProviderId',
    'EpicProvider',
    'ManualProvider',
    'SteamProvider',
    'ProviderManager',
    'PROVIDER_CLASSES',
]
