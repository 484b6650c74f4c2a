"""
Error kinds raised by modpal operations.

Direct, user-initiated operations raise these and let them propagate to the
command layer (see modpal.api), which turns them into result dicts.
Fan-out refresh phases catch them per source and report them instead.
"""
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    UNAVAILABLE = "unavailable"
    INCOMPATIBLE = "incompatible"
    EXTERNAL_IO = "external_io"
    EXTERNAL_NETWORK = "external_network"
    PATH_RESOLUTION = "path_resolution"


class ModPalError(Exception):
    """Base class for every error modpal raises on purpose."""
    kind: ErrorKind = ErrorKind.EXTERNAL_IO

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class GameNotFoundError(ModPalError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game not found: {game_id}")


class ModNotFoundError(ModPalError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, mod_id: str):
        self.mod_id = mod_id
        super().__init__(f"Mod not found: {mod_id}")


class ModLoaderNotFoundError(ModPalError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, loader_id: str):
        self.loader_id = loader_id
        super().__init__(f"Mod loader not found: {loader_id}")


class ProviderNotFoundError(ModPalError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        super().__init__(f"Provider not found: {provider_id}")


class GameAlreadyAddedError(ModPalError):
    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Game already added: {path}")


class SyncInProgressError(ModPalError):
    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self):
        super().__init__("A data refresh is already running")


class ModUnavailableError(ModPalError):
    """The remote mod has no usable download."""
    kind = ErrorKind.UNAVAILABLE

    def __init__(self, mod_id: str, reason: Optional[str] = None):
        self.mod_id = mod_id
        message = f"Mod unavailable: {mod_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class IncompatibleModError(ModPalError):
    kind = ErrorKind.INCOMPATIBLE

    def __init__(self, mod_id: str, game_id: str, reason: str = ""):
        self.mod_id = mod_id
        self.game_id = game_id
        message = f"Mod {mod_id} has no compatible target in game {game_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ExternalIOError(ModPalError):
    kind = ErrorKind.EXTERNAL_IO


class ExternalNetworkError(ModPalError):
    kind = ErrorKind.EXTERNAL_NETWORK


class PathResolutionError(ModPalError):
    kind = ErrorKind.PATH_RESOLUTION

    def __init__(self, path: Union[str, Path, None], reason: str = "could not resolve path"):
        self.path = path
        super().__init__(f"{reason}: {path}")
