"""
Tests for the BepInEx and UnrealVr loaders and the shared loader behaviour.
"""
import io
import zipfile

import pytest
from unittest.mock import AsyncMock, Mock, patch

from modpal.engines import EngineBrand, UnityScriptingBackend
from modpal.errors import (
    ExternalIOError,
    ExternalNetworkError,
    IncompatibleModError,
    ModUnavailableError,
    PathResolutionError,
)
from modpal.games import InstalledGame
from modpal.mod_loaders import BepInEx, UnrealVr, create_mod_loaders
from modpal.mods import CommonModData, ModDownload, RemoteMod, RemoteModData
from modpal.mods.local_mod import read_manifest


def make_zip(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def remote_mod(mod_id, downloads, backend=UnityScriptingBackend.MONO):
    return RemoteMod(
        CommonModData(mod_id, "bepinex", EngineBrand.UNITY, backend),
        RemoteModData(title=mod_id, downloads=downloads)
    )


@pytest.fixture
def bepinex(bepinex_resources, settings):
    return BepInEx(bepinex_resources.parent, settings)


@pytest.mark.asyncio
async def test_create_mod_loaders_skips_broken_loaders(settings, tmp_path):
    # No bepinex resources folder: BepInEx is left out, UnrealVr still works
    loaders = await create_mod_loaders(tmp_path / "resources", settings)
    assert list(loaders) == ["unrealvr"]


def test_local_mod_rescan_is_idempotent(bepinex, make_local_mod):
    make_local_mod("bepinex", "b-mod", backend="Mono")
    make_local_mod("bepinex", "a-mod", backend="Il2Cpp")
    broken = make_local_mod("bepinex", "empty", backend="Mono")
    for child in broken.iterdir():
        child.unlink()

    first = bepinex.get_local_mods()
    second = bepinex.get_local_mods()

    assert list(first) == ["a-mod", "b-mod"]
    assert first == second
    assert first["a-mod"].common.unity_backend == UnityScriptingBackend.IL2CPP


def test_bepinex_mod_path_nests_by_backend(bepinex, data_dir):
    path = bepinex.get_mod_path(CommonModData("m", "bepinex", EngineBrand.UNITY, UnityScriptingBackend.IL2CPP))
    assert path == data_dir / "mod-loaders" / "bepinex" / "mods" / "Il2Cpp" / "m"

    with pytest.raises(PathResolutionError):
        bepinex.get_mod_path(CommonModData("m", "bepinex", EngineBrand.UNITY))


@pytest.mark.asyncio
async def test_bepinex_install_mod(bepinex, make_game_exe, make_local_mod):
    game = InstalledGame.new(make_game_exe("Game"), "Game", "Manual")
    make_local_mod("bepinex", "cool-mod", backend="Mono")
    local_mod = bepinex.get_local_mods()["cool-mod"]

    await bepinex.install_mod(game, local_mod)
    # Second run must be harmless
    await bepinex.install_mod(game, local_mod)

    assert (game.game_folder / "winhttp.dll").is_file()
    assert "target_assembly" in (game.game_folder / "doorstop_config.ini").read_text()
    assert (game.get_installed_mod_folder("cool-mod") / "cool-mod.dll").is_file()
    game.refresh_installed_mods()
    assert game.installed_mods == ["cool-mod"]


@pytest.mark.asyncio
async def test_bepinex_rejects_wrong_backend(bepinex, make_game_exe, make_local_mod):
    game = InstalledGame.new(make_game_exe("Il", engine="unity-il2cpp"), "Il", "Manual")
    make_local_mod("bepinex", "mono-mod", backend="Mono")
    local_mod = bepinex.get_local_mods()["mono-mod"]

    with pytest.raises(IncompatibleModError):
        await bepinex.install_mod(game, local_mod)
    assert not game.get_installed_mod_folder("mono-mod").exists()


@pytest.mark.asyncio
async def test_download_mod_extracts_and_writes_manifest(bepinex):
    mod = remote_mod("dl-mod", [ModDownload("https://example.invalid/dl-mod.zip", "1.2.0")])
    archive = make_zip({"dl-mod.dll": b"plugin"})

    with patch("modpal.mod_loaders.mod_database.fetch_archive", AsyncMock(return_value=archive)) as fetch:
        await bepinex.download_mod(mod)

    fetch.assert_awaited_once()
    target = bepinex.get_mod_path(mod.common)
    assert (target / "dl-mod.dll").read_bytes() == b"plugin"
    assert read_manifest(target).version == "1.2.0"
    assert list(bepinex.get_downloads_path().iterdir()) == []
    assert bepinex.get_local_mods()["dl-mod"].version == "1.2.0"


@pytest.mark.asyncio
async def test_download_mod_without_downloads(bepinex):
    with pytest.raises(ModUnavailableError):
        await bepinex.download_mod(remote_mod("nothing", []))


@pytest.mark.asyncio
async def test_download_mod_bad_status(bepinex):
    mod = remote_mod("gone", [ModDownload("https://example.invalid/gone.zip", "1")])
    with patch("modpal.mod_loaders.mod_database.fetch_archive", AsyncMock(return_value=None)):
        with pytest.raises(ModUnavailableError):
            await bepinex.download_mod(mod)


@pytest.mark.asyncio
async def test_download_mod_bad_archive(bepinex):
    mod = remote_mod("bad", [ModDownload("https://example.invalid/bad.zip", "1")])
    with patch("modpal.mod_loaders.mod_database.fetch_archive", AsyncMock(return_value=b"not a zip")):
        with pytest.raises(ExternalIOError):
            await bepinex.download_mod(mod)


@pytest.mark.asyncio
async def test_failed_redownload_keeps_existing_mod(bepinex):
    mod = remote_mod("kept", [ModDownload("https://example.invalid/kept.zip", "2.0")])
    target = bepinex.get_mod_path(mod.common)
    target.mkdir(parents=True)
    (target / "kept.dll").write_bytes(b"working")
    archive = make_zip({"kept.dll": b"new"})

    with patch("modpal.mod_loaders.mod_database.fetch_archive", AsyncMock(return_value=archive)), \
            patch.object(zipfile.ZipFile, "extractall", side_effect=OSError("disk full")):
        with pytest.raises(ExternalIOError):
            await bepinex.download_mod(mod)

    assert (target / "kept.dll").read_bytes() == b"working"
    assert list(bepinex.get_downloads_path().iterdir()) == []


@pytest.mark.asyncio
async def test_redownload_replaces_existing_mod(bepinex):
    mod = remote_mod("swap", [ModDownload("https://example.invalid/swap.zip", "2.0")])
    target = bepinex.get_mod_path(mod.common)
    target.mkdir(parents=True)
    (target / "stale.dll").write_bytes(b"old")

    with patch("modpal.mod_loaders.mod_database.fetch_archive",
               AsyncMock(return_value=make_zip({"swap.dll": b"new"}))):
        await bepinex.download_mod(mod)

    assert not (target / "stale.dll").exists()
    assert (target / "swap.dll").read_bytes() == b"new"
    assert read_manifest(target).version == "2.0"


@pytest.mark.asyncio
async def test_get_remote_mods_reports_failures(bepinex):
    handler = Mock()
    failing = AsyncMock(side_effect=ExternalNetworkError("offline"))
    with patch("modpal.mod_loaders.mod_database.fetch_mod_database", failing):
        assert await bepinex.get_remote_mods(handler) == {}
    handler.assert_called_once()


@pytest.mark.asyncio
async def test_get_remote_mods_parses_catalog(bepinex):
    catalog = {
        "cool-mod": {
            "title": "Cool Mod",
            "author": "someone",
            "sourceCode": "https://example.invalid/src",
            "engine": "Unity",
            "unityBackend": "Il2Cpp",
            "downloads": [{"url": "https://example.invalid/cool.zip", "version": "2.0"}],
        }
    }
    with patch("modpal.mod_loaders.mod_database.fetch_mod_database", AsyncMock(return_value=catalog)):
        mods = await bepinex.get_remote_mods(Mock())

    mod = mods["cool-mod"]
    assert mod.common.unity_backend == UnityScriptingBackend.IL2CPP
    assert mod.data.source_code == "https://example.invalid/src"
    assert mod.data.latest_version.version == "2.0"


@pytest.mark.asyncio
async def test_unreal_vr_runs_mod_against_game(settings, make_game_exe, make_local_mod):
    loader = UnrealVr(settings.resources_dir, settings)
    game = InstalledGame.new(make_game_exe("Ue", engine="unreal"), "Ue", "Manual")
    mod_path = make_local_mod("unrealvr", "uevr")
    (mod_path / "UEVRInjector.exe").write_bytes(b"")
    local_mod = loader.get_local_mods()["uevr"]

    with patch("modpal.mod_loaders.unreal_vr.launcher.run_executable") as run:
        await loader.install_mod(game, local_mod)

    run.assert_called_once_with(mod_path / "UEVRInjector.exe", [f"--attach={game.executable.name}"])
