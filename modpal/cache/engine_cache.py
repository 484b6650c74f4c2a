"""Engine detection cache.

Stores title -> engine for one provider, so the slow PCGamingWiki lookup only
runs once per title. Lives in user data (<data>/engine-cache/<provider>.json).

A missing key means "unknown, must look up". A key mapped to null means the
lookup already ran and found no engine; that answer is cached too.
"""

import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple

from ..engines import GameEngine
from ..utils.paths import get_engine_cache_dir

logger = logging.getLogger(__name__)

EngineLookup = Callable[[str], Awaitable[Optional[GameEngine]]]


def get_engine_cache_path(provider_id: str) -> Path:
    """Get path to a provider's engine cache file."""
    return get_engine_cache_dir() / f"{provider_id.lower()}.json"


class EngineCache:
    """Best-effort, persisted memo of title -> optional engine."""

    def __init__(self, provider_id: str, entries: Optional[Dict[str, Optional[GameEngine]]] = None):
        self.provider_id = provider_id
        self._entries: Dict[str, Optional[GameEngine]] = dict(entries or {})

    @classmethod
    def load(cls, provider_id: str) -> 'EngineCache':
        """Load a provider's cache. Unreadable files give an empty cache."""
        cache_path = get_engine_cache_path(provider_id)
        entries: Dict[str, Optional[GameEngine]] = {}
        try:
            if cache_path.exists():
                with open(cache_path, "r") as f:
                    data = json.load(f)
                for title, engine in data.items():
                    try:
                        entries[title] = GameEngine.from_dict(engine) if engine else None
                    except (KeyError, TypeError, ValueError) as e:
                        logger.debug(f"[EngineCache] Skipping bad entry for {title}: {e}")
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"[EngineCache] Error loading {provider_id} engine cache: {e}")
        return cls(provider_id, entries)

    def __contains__(self, title: str) -> bool:
        return title in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, title: str) -> Optional[GameEngine]:
        return self._entries.get(title)

    def lookup_cached(self, title: str) -> Tuple[bool, Optional[GameEngine]]:
        """Return (hit, engine). A hit with engine None is a cached 'no engine'."""
        if title in self._entries:
            return True, self._entries[title]
        return False, None

    async def get_or_lookup(self, title: str, lookup: EngineLookup) -> Optional[GameEngine]:
        """Cached value if present (even None), otherwise run the lookup and remember it.

        Lookup failures are not cached, so the title is retried on the next refresh.
        """
        hit, engine = self.lookup_cached(title)
        if hit:
            return engine
        try:
            engine = await lookup(title)
        except Exception as e:
            logger.debug(f"[EngineCache] Lookup failed for {title}: {e}")
            return None
        self._entries[title] = engine
        return engine

    def update(self, entries: Iterable[Tuple[str, Optional[GameEngine]]]) -> None:
        """Fill in titles the cache doesn't know yet. Cached values win."""
        for title, engine in entries:
            self._entries.setdefault(title, engine)

    def save(self) -> bool:
        """Persist the cache. Failures are logged and otherwise ignored."""
        cache_path = get_engine_cache_path(self.provider_id)
        try:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            serializable = {
                title: engine.to_dict() if engine else None
                for title, engine in sorted(self._entries.items())
            }
            with open(cache_path, "w") as f:
                json.dump(serializable, f, indent=2)
            logger.info(f"[EngineCache] Saved {len(self._entries)} {self.provider_id} engine entries")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"[EngineCache] Error saving {self.provider_id} engine cache: {e}")
            return False
