"""
One-way notifications to the presentation layer.

Collection events carry no payload: receivers re-request the full snapshot.
Errors from fan-out refresh phases go through the same emitter.
"""
import logging
import threading
from enum import Enum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class AppEvent(str, Enum):
    SYNC_INSTALLED_GAMES = "SyncInstalledGames"
    SYNC_OWNED_GAMES = "SyncOwnedGames"
    SYNC_MOD_LOADERS = "SyncModLoaders"
    SYNC_LOCAL_MODS = "SyncLocalMods"
    SYNC_REMOTE_MODS = "SyncRemoteMods"
    GAME_ADDED = "GameAdded"
    GAME_REMOVED = "GameRemoved"
    ERROR = "Error"


Listener = Callable[[AppEvent, Optional[Any]], None]


class EventEmitter:
    """Fan events out to subscribed listeners. A failing listener doesn't stop the others."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: AppEvent, payload: Optional[Any] = None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, payload)
            except Exception as e:
                logger.error(f"[Events] Listener failed on {event.value}: {e}", exc_info=True)

    def emit_error(self, message: str) -> None:
        self.emit(AppEvent.ERROR, message)
