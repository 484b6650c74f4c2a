"""modpal - find installed games, match them with mod loaders and install mods."""

__version__ = "0.1.0"

from .api import ModPal
from .errors import ErrorKind, ModPalError
from .services import InstallOutcome

__all__ = ['ModPal', 'ErrorKind', 'ModPalError', 'InstallOutcome', '__version__']
