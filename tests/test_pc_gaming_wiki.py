"""
Tests for reading engines out of PCGamingWiki cargo rows.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from modpal.engines import EngineBrand
from modpal.errors import ExternalNetworkError
from modpal.metadata import pc_gaming_wiki
from modpal.metadata.pc_gaming_wiki import parse_engine


def test_parse_engine_picks_first_known_brand():
    engine = parse_engine({"Engines": "Engine:Havok,Engine:Unity", "Build": "2019.4.31f1,5.0"})
    assert engine.brand == EngineBrand.UNITY
    assert engine.version.major == 2019
    assert engine.version.suffix == "f1"


def test_parse_engine_unknown():
    assert parse_engine({"Engines": "Engine:Source"}) is None
    assert parse_engine({}) is None


@pytest.mark.asyncio
async def test_steam_id_query():
    get_engine = AsyncMock(return_value=None)
    with patch.object(pc_gaming_wiki, "get_engine", get_engine):
        await pc_gaming_wiki.get_engine_from_steam_id("620", "https://example.invalid/api.php")
    get_engine.assert_awaited_once_with('Infobox_game.Steam_AppID HOLDS "620"', "https://example.invalid/api.php")


def _fake_session(status=200, payload=None):
    response = MagicMock(status=status)
    response.json = AsyncMock(return_value=payload)
    session = MagicMock()
    session.get.return_value.__aenter__.return_value = response
    create_session = MagicMock()
    create_session.return_value.__aenter__.return_value = session
    return create_session


@pytest.mark.asyncio
async def test_get_engine_reads_first_row():
    payload = {"cargoquery": [{"title": {"Engines": "Engine:Unity", "Build": "2020.3.1f1"}}]}
    with patch.object(pc_gaming_wiki, "create_session", _fake_session(payload=payload)):
        engine = await pc_gaming_wiki.get_engine_from_steam_id("620", "https://example.invalid/api.php")
    assert engine.brand == EngineBrand.UNITY


@pytest.mark.asyncio
async def test_get_engine_no_match_is_none():
    with patch.object(pc_gaming_wiki, "create_session", _fake_session(payload={"cargoquery": []})):
        assert await pc_gaming_wiki.get_engine_from_steam_id("620", "https://example.invalid/api.php") is None


@pytest.mark.asyncio
async def test_get_engine_bad_status_raises():
    with patch.object(pc_gaming_wiki, "create_session", _fake_session(status=503)):
        with pytest.raises(ExternalNetworkError):
            await pc_gaming_wiki.get_engine_from_steam_id("620", "https://example.invalid/api.php")


@pytest.mark.asyncio
async def test_get_engine_bad_json_raises():
    with patch.object(pc_gaming_wiki, "create_session", _fake_session()) as create_session:
        response = create_session.return_value.__aenter__.return_value.get.return_value.__aenter__.return_value
        response.json.side_effect = ValueError("not json")
        with pytest.raises(ExternalNetworkError):
            await pc_gaming_wiki.get_engine_from_steam_id("620", "https://example.invalid/api.php")


@pytest.mark.asyncio
async def test_get_engine_api_error_raises():
    payload = {"error": {"code": "internal_api_error"}}
    with patch.object(pc_gaming_wiki, "create_session", _fake_session(payload=payload)):
        with pytest.raises(ExternalNetworkError):
            await pc_gaming_wiki.get_engine_from_steam_id("620", "https://example.invalid/api.php")


@pytest.mark.asyncio
async def test_unreachable_server_raises():
    with pytest.raises(ExternalNetworkError):
        await pc_gaming_wiki.get_engine_from_steam_id("620", "http://127.0.0.1:9/api.php")
