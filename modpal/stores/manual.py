"""
Manual provider - games the user pointed at directly.

Keeps a list of executable paths in <data>/manual-games.json.
"""
import json
import logging
from pathlib import Path
from typing import List, Union

from ..errors import ExternalIOError, GameAlreadyAddedError, GameNotFoundError, PathResolutionError
from ..games.installed_game import InstalledGame
from ..games.owned_game import OwnedGame
from ..utils.paths import file_name_without_extension, get_manual_games_path, normalize_path
from .base import Provider, ProviderId

logger = logging.getLogger(__name__)


def load_manual_games() -> List[str]:
    """Load the stored executable paths. A broken file gives an empty list."""
    path = get_manual_games_path()
    try:
        if path.exists():
            with open(path, 'r') as f:
                data = json.load(f)
            paths = data.get('paths', []) if isinstance(data, dict) else []
            return [str(p) for p in paths if isinstance(p, str)]
    except (OSError, ValueError) as e:
        logger.error(f"[Manual] Error loading manual games: {e}")
    return []


def save_manual_games(paths: List[str]) -> None:
    path = get_manual_games_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump({'paths': paths}, f, indent=2)
    except OSError as e:
        raise ExternalIOError(f"Failed to save manual games: {e}") from e
    logger.debug(f"[Manual] Saved {len(paths)} manual games")


def get_game_name(path: Union[str, Path]) -> str:
    """Unreal shipping builds are named like Game-Win64-Shipping; keep the Game part."""
    name = file_name_without_extension(path)
    for suffix in ("-Win64-Shipping", "-WinGDK-Shipping", "-Shipping"):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[:-len(suffix)]
    return name


class ManualProvider(Provider):
    ID = ProviderId.MANUAL

    def list_installed(self) -> List[InstalledGame]:
        games = []
        for path in load_manual_games():
            game = InstalledGame.new(path, get_game_name(path), self.ID.value)
            if game is not None:
                games.append(game)
        return games

    async def list_owned(self) -> List[OwnedGame]:
        return []

    def add_game(self, path: Union[str, Path]) -> InstalledGame:
        """
        Remember an executable and build its game.

        Raises:
            GameAlreadyAddedError: the path is already in the list.
            PathResolutionError: the path isn't an existing file.
        """
        normalized = normalize_path(path)
        paths = load_manual_games()
        if str(normalized) in paths:
            raise GameAlreadyAddedError(normalized)

        game = InstalledGame.new(normalized, get_game_name(normalized), self.ID.value)
        if game is None:
            raise PathResolutionError(normalized, "not an existing file")

        save_manual_games(paths + [str(normalized)])
        logger.info(f"[Manual] Added {game.name} ({normalized})")
        return game

    def remove_game(self, path: Union[str, Path]) -> None:
        target = str(normalize_path(path))
        paths = load_manual_games()
        remaining = [p for p in paths if p != target and str(normalize_path(p)) != target]
        if len(remaining) == len(paths):
            raise GameNotFoundError(target)
        save_manual_games(remaining)
        logger.info(f"[Manual] Removed {target}")
