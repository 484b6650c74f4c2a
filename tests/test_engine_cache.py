"""
Tests for the per-provider engine cache.
"""
import json

import pytest
from unittest.mock import AsyncMock

from modpal.cache import EngineCache, get_engine_cache_path
from modpal.engines import EngineBrand, EngineVersion, GameEngine
from modpal.metadata.pc_gaming_wiki import get_engine_from_steam_id

UNITY = GameEngine(EngineBrand.UNITY, EngineVersion.parse("2019.4.1f1"))


def test_missing_cache_file_is_empty():
    cache = EngineCache.load("Steam")
    assert len(cache) == 0
    assert "anything" not in cache


def test_save_and_load_keeps_cached_none():
    cache = EngineCache("Steam")
    cache.update([("123", UNITY), ("456", None)])
    assert cache.save() is True

    loaded = EngineCache.load("Steam")
    assert loaded.lookup_cached("123") == (True, UNITY)
    assert loaded.lookup_cached("456") == (True, None)
    assert loaded.lookup_cached("789") == (False, None)


def test_update_never_overwrites_cached_values():
    cache = EngineCache("Epic", {"Some Game": None})
    cache.update([("Some Game", UNITY), ("Other Game", UNITY)])
    assert cache.get("Some Game") is None
    assert cache.get("Other Game") == UNITY


def test_corrupt_cache_file_gives_empty_cache():
    path = get_engine_cache_path("Epic")
    path.parent.mkdir(parents=True)
    path.write_text("{not json")
    assert len(EngineCache.load("Epic")) == 0


def test_bad_entries_are_skipped():
    path = get_engine_cache_path("Epic")
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"Good": UNITY.to_dict(), "Bad": {"brand": "Frostbite"}}))
    cache = EngineCache.load("Epic")
    assert "Good" in cache
    assert "Bad" not in cache


@pytest.mark.asyncio
async def test_cached_value_skips_lookup():
    cache = EngineCache("Steam", {"123": None})
    lookup = AsyncMock(return_value=UNITY)

    assert await cache.get_or_lookup("123", lookup) is None
    lookup.assert_not_called()


@pytest.mark.asyncio
async def test_lookup_result_is_remembered():
    cache = EngineCache("Steam")
    lookup = AsyncMock(return_value=UNITY)

    assert await cache.get_or_lookup("123", lookup) == UNITY
    assert await cache.get_or_lookup("123", lookup) == UNITY
    lookup.assert_awaited_once_with("123")


@pytest.mark.asyncio
async def test_failed_lookup_is_not_cached():
    cache = EngineCache("Steam")
    lookup = AsyncMock(side_effect=RuntimeError("boom"))

    assert await cache.get_or_lookup("123", lookup) is None
    assert "123" not in cache


@pytest.mark.asyncio
async def test_unreachable_wiki_is_not_cached_as_no_engine():
    cache = EngineCache("Steam")

    engine = await cache.get_or_lookup(
        "620", lambda title: get_engine_from_steam_id(title, "http://127.0.0.1:9/api.php")
    )

    assert engine is None
    assert "620" not in cache
    assert cache.lookup_cached("620") == (False, None)


def test_save_failure_is_not_fatal(monkeypatch, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setattr(
        "modpal.cache.engine_cache.get_engine_cache_path",
        lambda provider_id: blocker / "nested" / "steam.json"
    )
    assert EngineCache("Steam", {"1": None}).save() is False
