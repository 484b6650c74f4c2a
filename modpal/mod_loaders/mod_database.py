"""Remote mod database access.

Each loader has one catalog file at <mod_database_url>/<loader_id>.json:

    {"mods": {"<mod id>": {"title": ..., "author": ..., "sourceCode": ...,
              "description": ..., "engine": "Unity", "unityBackend": "Mono",
              "downloads": [{"url": ..., "version": ...}]}}}
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..errors import ExternalNetworkError
from ..utils.http import create_session

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def get_database_url(base_url: str, loader_id: str) -> str:
    return f"{base_url.rstrip('/')}/{loader_id}.json"


async def fetch_mod_database(loader_id: str, base_url: str, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Dict[str, Any]]:
    """Fetch a loader's catalog. Returns {mod_id: entry}.

    Raises:
        ExternalNetworkError: request failed, bad status, or bad JSON.
    """
    url = get_database_url(base_url, loader_id)
    try:
        async with create_session(timeout) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise ExternalNetworkError(f"Mod database for {loader_id} returned HTTP {response.status}")
                data = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise ExternalNetworkError(f"Failed to fetch mod database for {loader_id}: {e}") from e

    mods = data.get('mods') if isinstance(data, dict) else None
    if not isinstance(mods, dict):
        raise ExternalNetworkError(f"Mod database for {loader_id} has no 'mods' object")

    logger.info(f"[ModDatabase] Got {len(mods)} mods for {loader_id}")
    return mods


async def fetch_archive(url: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[bytes]:
    """Download a mod archive into memory.

    Returns:
        The archive bytes, or None when the server answered with a non-success status.

    Raises:
        ExternalNetworkError: the request itself failed.
    """
    try:
        async with create_session(timeout) as session:
            async with session.get(url) as response:
                if response.status < 200 or response.status >= 300:
                    logger.warning(f"[ModDatabase] Download {url} failed with status {response.status}")
                    return None
                return await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise ExternalNetworkError(f"Failed to download {url}: {e}") from e
