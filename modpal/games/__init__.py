# Games package
from .executable import Architecture, GameExecutable, OperatingSystem
from .installed_game import InstalledGame, collect_installed_games
from .owned_game import GameMode, OwnedGame
