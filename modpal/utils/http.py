"""
Shared aiohttp session setup.

Sessions verify TLS against certifi's CA bundle; some distros (and the Steam
Deck's read-only image) ship CA stores that miss the certs our hosts use.
"""
import ssl

import aiohttp
import certifi

USER_AGENT = "modpal"


def create_session(timeout: float, limit_per_host: int = 10) -> aiohttp.ClientSession:
    """New ClientSession with certifi certificates. Caller closes it (use `async with`)."""
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=limit_per_host)
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers={"User-Agent": USER_AGENT}
    )
