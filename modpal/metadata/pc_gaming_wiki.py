"""PCGamingWiki engine lookups.

Slow (one HTTP request per game), so results go through EngineCache.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..config import DEFAULT_PC_GAMING_WIKI_URL
from ..engines import EngineBrand, EngineVersion, GameEngine
from ..errors import ExternalNetworkError
from ..utils.http import create_session

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


def parse_engine(row: Dict[str, Any]) -> Optional[GameEngine]:
    """Turn one cargoquery row into a GameEngine.

    Engines come as 'Engine:Unity,Engine:Havok', versions as '2019.4.1f1'.
    """
    engines = row.get('Engines') or ''
    for raw_engine in engines.split(','):
        brand = EngineBrand.parse(raw_engine)
        if brand:
            version = EngineVersion.parse((row.get('Build') or '').split(',')[0])
            return GameEngine(brand=brand, version=version)
    return None


async def get_engine(where: str, api_url: str = DEFAULT_PC_GAMING_WIKI_URL) -> Optional[GameEngine]:
    """Query PCGamingWiki with a cargo `where` clause.

    Returns None only when the query went through and found no known engine.

    Raises:
        ExternalNetworkError: the request failed, timed out or returned garbage.
    """
    params = {
        'action': 'cargoquery',
        'tables': 'Infobox_game,Infobox_game_engine',
        'join_on': 'Infobox_game._pageName=Infobox_game_engine._pageName',
        'fields': 'Infobox_game.Engines=Engines,Infobox_game_engine.Build=Build',
        'where': where,
        'limit': '1',
        'format': 'json',
    }
    try:
        async with create_session(REQUEST_TIMEOUT) as session:
            async with session.get(api_url, params=params) as response:
                if response.status != 200:
                    raise ExternalNetworkError(f"PCGamingWiki query failed with status {response.status}")
                data = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.debug(f"[PCGamingWiki] Query failed for {where}: {e}")
        raise ExternalNetworkError(f"PCGamingWiki query failed: {e}") from e

    if not isinstance(data, dict):
        raise ExternalNetworkError("PCGamingWiki returned an unexpected response")
    if 'error' in data:
        raise ExternalNetworkError(f"PCGamingWiki query rejected: {data['error']}")
    results = data.get('cargoquery')
    if not results:
        return None
    return parse_engine(results[0].get('title') or {})


async def get_engine_from_game_title(title: str, api_url: str = DEFAULT_PC_GAMING_WIKI_URL) -> Optional[GameEngine]:
    escaped = title.replace('"', '\\"')
    return await get_engine(f'Infobox_game._pageName="{escaped}"', api_url)


async def get_engine_from_steam_id(steam_id: str, api_url: str = DEFAULT_PC_GAMING_WIKI_URL) -> Optional[GameEngine]:
    return await get_engine(f'Infobox_game.Steam_AppID HOLDS "{steam_id}"', api_url)
