"""
Tests for installed game identity, dedup and per-game mod folders.
"""
import pytest

from modpal.engines import EngineBrand, UnityScriptingBackend
from modpal.errors import ModNotFoundError
from modpal.games import Architecture, InstalledGame, OperatingSystem, collect_installed_games
from modpal.utils.paths import hash_path, normalize_path


def test_missing_executable_gives_no_game(tmp_path):
    assert InstalledGame.new(tmp_path / "nope.exe", "Nope", "Manual") is None


def test_id_is_stable_hash_of_normalized_path(make_game_exe):
    exe = make_game_exe("Game")
    first = InstalledGame.new(exe, "Game", "Steam")
    second = InstalledGame.new(exe.parent / ".." / exe.parent.name / exe.name, "Game", "Manual")

    assert first.id == second.id == hash_path(normalize_path(exe))


def test_executable_detection(make_game_exe):
    game = InstalledGame.new(make_game_exe("Il", engine="unity-il2cpp"), "Il", "Manual")
    assert game.engine.brand == EngineBrand.UNITY
    assert game.executable.scripting_backend == UnityScriptingBackend.IL2CPP
    assert game.executable.operating_system == OperatingSystem.WINDOWS
    assert game.executable.architecture == Architecture.X64

    unreal = InstalledGame.new(make_game_exe("Ue", engine="unreal"), "Ue", "Manual")
    assert unreal.engine.brand == EngineBrand.UNREAL
    assert unreal.executable.scripting_backend is None


def test_duplicate_paths_keep_first(make_game_exe):
    exe = make_game_exe("Game")
    steam = InstalledGame.new(exe, "Game", "Steam")
    manual = InstalledGame.new(exe, "Game", "Manual")

    games = collect_installed_games([steam, manual])
    assert list(games) == [steam.id]
    assert games[steam.id].provider_id == "Steam"


def test_name_collisions_get_distinct_discriminators(make_game_exe):
    main = InstalledGame.new(make_game_exe("Game", folder="a"), "Game", "Steam")
    vr = InstalledGame.new(make_game_exe("GameVR", folder="a"), "Game", "Steam")
    vr.discriminator = "VR mode"
    other = InstalledGame.new(make_game_exe("Game", folder="b"), "Game", "Manual")

    games = collect_installed_games([main, vr, other])

    assert games[main.id].discriminator is None
    assert games[vr.id].discriminator == "VR mode"
    assert games[other.id].discriminator == "Game.exe"
    labels = [(g.name, g.discriminator) for g in games.values()]
    assert len(set(labels)) == len(labels)


def test_uninstall_mod_removes_folder(make_game_exe):
    game = InstalledGame.new(make_game_exe("Game"), "Game", "Manual")
    folder = game.get_installed_mod_folder("mod")
    folder.mkdir(parents=True)
    (folder / "mod.dll").write_bytes(b"x")

    game.uninstall_mod("mod")
    assert not folder.exists()

    with pytest.raises(ModNotFoundError):
        game.uninstall_mod("mod")


def test_copy_is_detached(make_game_exe):
    game = InstalledGame.new(make_game_exe("Game"), "Game", "Manual")
    clone = game.copy()
    clone.installed_mods.append("x")
    assert game.installed_mods == []


def test_to_dict_uses_camel_case(make_game_exe):
    data = InstalledGame.new(make_game_exe("Game"), "Game", "Manual").to_dict()
    assert data["providerId"] == "Manual"
    assert data["executable"]["engine"]["brand"] == "Unity"
    assert data["availableMods"] == {}
