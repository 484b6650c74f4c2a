"""
StateStore - the in-process snapshot of everything modpal knows.

Each entity collection sits behind its own lock and is only ever replaced as a
whole with a fully built mapping. Readers get a read-only view of the current
mapping, so they never see a half-updated collection.
"""
import logging
import threading
from types import MappingProxyType
from typing import Dict, Generic, Mapping, Optional, Type, TypeVar

from ..errors import (
    GameNotFoundError,
    ModLoaderNotFoundError,
    ModNotFoundError,
    ModPalError,
)
from ..events import AppEvent, EventEmitter

logger = logging.getLogger(__name__)

T = TypeVar('T')


class StateCollection(Generic[T]):
    """One entity collection: id -> item, swapped atomically."""

    def __init__(
        self,
        name: str,
        event: AppEvent,
        emitter: EventEmitter,
        not_found_error: Type[ModPalError]
    ):
        self.name = name
        self.event = event
        self._emitter = emitter
        self._not_found_error = not_found_error
        self._lock = threading.Lock()
        self._data: Mapping[str, T] = MappingProxyType({})
        self._loaded = False

    @property
    def loaded(self) -> bool:
        """False until the first set(); lets callers tell 'empty' from 'not synced yet'."""
        return self._loaded

    def get(self) -> Mapping[str, T]:
        """Current snapshot (read-only)."""
        with self._lock:
            return self._data

    def try_get(self, item_id: str) -> T:
        snapshot = self.get()
        if item_id not in snapshot:
            raise self._not_found_error(item_id)
        return snapshot[item_id]

    def find(self, item_id: str) -> Optional[T]:
        return self.get().get(item_id)

    def set(self, data: Dict[str, T]) -> None:
        """Swap in a new snapshot and notify listeners."""
        frozen = MappingProxyType(dict(data))
        with self._lock:
            self._data = frozen
            self._loaded = True
        logger.debug(f"[State] {self.name}: {len(frozen)} entries")
        self._emitter.emit(self.event)

    def replace_item(self, item_id: str, item: T) -> None:
        """Publish a copy of the snapshot with one entry replaced or added."""
        with self._lock:
            data = dict(self._data)
            data[item_id] = item
            self._data = MappingProxyType(data)
            self._loaded = True
        self._emitter.emit(self.event)

    def remove_item(self, item_id: str) -> T:
        with self._lock:
            if item_id not in self._data:
                raise self._not_found_error(item_id)
            data = dict(self._data)
            removed = data.pop(item_id)
            self._data = MappingProxyType(data)
        self._emitter.emit(self.event)
        return removed


class StateStore:
    """Authoritative snapshot of games, loaders and mods.

    Passed explicitly to every service that needs it; there is no global instance.
    """

    def __init__(self, emitter: Optional[EventEmitter] = None):
        self.emitter = emitter or EventEmitter()
        self.installed_games = StateCollection(
            "installed_games", AppEvent.SYNC_INSTALLED_GAMES, self.emitter, GameNotFoundError)
        self.owned_games = StateCollection(
            "owned_games", AppEvent.SYNC_OWNED_GAMES, self.emitter, GameNotFoundError)
        self.mod_loaders = StateCollection(
            "mod_loaders", AppEvent.SYNC_MOD_LOADERS, self.emitter, ModLoaderNotFoundError)
        self.local_mods = StateCollection(
            "local_mods", AppEvent.SYNC_LOCAL_MODS, self.emitter, ModNotFoundError)
        self.remote_mods = StateCollection(
            "remote_mods", AppEvent.SYNC_REMOTE_MODS, self.emitter, ModNotFoundError)
