from __future__ import annotations

from pathlib import Path
import struct
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from modpal.config import Settings  # noqa: E402
from modpal.utils.paths import DATA_DIR_ENV, RESOURCES_DIR_ENV  # noqa: E402


def pe_header(machine: int = 0x8664) -> bytes:
    """Smallest header read_binary_info recognises as a Windows executable."""
    header = bytearray(0x48)
    header[:2] = b"MZ"
    struct.pack_into("<I", header, 0x3C, 0x40)
    header[0x40:0x44] = b"PE\x00\x00"
    struct.pack_into("<H", header, 0x44, machine)
    return bytes(header)


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    """Keep every test's data under tmp_path."""
    data = tmp_path / "data"
    monkeypatch.setenv(DATA_DIR_ENV, str(data))
    monkeypatch.setenv(RESOURCES_DIR_ENV, str(tmp_path / "resources"))
    return data


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        resources_path=str(tmp_path / "resources"),
        mod_database_url="https://example.invalid/mod-db",
        steam_path=str(tmp_path / "steam"),
        epic_app_data_path=str(tmp_path / "epic"),
    )


@pytest.fixture
def make_game_exe(tmp_path: Path):
    """Create a fake game executable and return its path.

    engine: "unity", "unity-il2cpp", "unreal" or None.
    """
    def _make(name: str = "Game", engine: str | None = "unity", folder: str | None = None) -> Path:
        game_folder = tmp_path / "games" / (folder or name)
        game_folder.mkdir(parents=True, exist_ok=True)
        exe_name = f"{name}-Win64-Shipping.exe" if engine == "unreal" else f"{name}.exe"
        exe = game_folder / exe_name
        exe.write_bytes(pe_header())
        if engine and engine.startswith("unity"):
            (game_folder / f"{name}_Data").mkdir(exist_ok=True)
        if engine == "unity-il2cpp":
            (game_folder / "GameAssembly.dll").write_bytes(b"")
        return exe

    return _make


@pytest.fixture
def bepinex_resources(tmp_path: Path) -> Path:
    """Minimal bundled BepInEx runtime for both backends."""
    root = tmp_path / "resources" / "bepinex"
    for backend in ("Mono", "Il2Cpp"):
        for arch in ("x64", "x86"):
            doorstop = root / backend / "doorstop" / arch
            doorstop.mkdir(parents=True)
            (doorstop / "winhttp.dll").write_bytes(b"doorstop")
        core = root / backend / "BepInEx" / "core"
        core.mkdir(parents=True)
        (core / "BepInEx.Preloader.dll").write_bytes(b"core")
    return root


@pytest.fixture
def make_local_mod(data_dir: Path):
    """Drop a mod folder into a loader's managed mods folder."""
    def _make(loader_id: str, mod_id: str, backend: str | None = None) -> Path:
        mods = data_dir / "mod-loaders" / loader_id / "mods"
        if backend:
            mods = mods / backend
        mod_path = mods / mod_id
        mod_path.mkdir(parents=True, exist_ok=True)
        (mod_path / f"{mod_id}.dll").write_bytes(b"plugin")
        return mod_path

    return _make
