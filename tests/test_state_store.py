"""
Tests for StateStore collections and the event emitter.
"""
import pytest

from modpal.errors import GameNotFoundError, ModLoaderNotFoundError
from modpal.events import AppEvent, EventEmitter
from modpal.state import StateStore


def test_collections_start_empty_and_unloaded():
    store = StateStore()
    assert store.installed_games.get() == {}
    assert store.installed_games.loaded is False


def test_set_swaps_whole_snapshot_and_notifies():
    store = StateStore()
    events = []
    store.emitter.subscribe(lambda event, payload: events.append(event))

    source = {"a": 1}
    store.owned_games.set(source)
    snapshot = store.owned_games.get()
    source["b"] = 2

    assert dict(snapshot) == {"a": 1}
    assert store.owned_games.loaded is True
    assert events == [AppEvent.SYNC_OWNED_GAMES]
    with pytest.raises(TypeError):
        snapshot["c"] = 3


def test_readers_keep_their_snapshot_across_updates():
    store = StateStore()
    store.local_mods.set({"a": 1})
    before = store.local_mods.get()

    store.local_mods.replace_item("b", 2)

    assert dict(before) == {"a": 1}
    assert dict(store.local_mods.get()) == {"a": 1, "b": 2}


def test_try_get_raises_collection_specific_error():
    store = StateStore()
    with pytest.raises(GameNotFoundError):
        store.installed_games.try_get("nope")
    with pytest.raises(ModLoaderNotFoundError):
        store.mod_loaders.try_get("nope")
    assert store.remote_mods.find("nope") is None


def test_remove_item():
    store = StateStore()
    store.installed_games.set({"a": 1, "b": 2})
    assert store.installed_games.remove_item("a") == 1
    assert dict(store.installed_games.get()) == {"b": 2}
    with pytest.raises(GameNotFoundError):
        store.installed_games.remove_item("a")


def test_failing_listener_does_not_block_others():
    emitter = EventEmitter()
    received = []

    def broken(event, payload):
        raise RuntimeError("boom")

    emitter.subscribe(broken)
    emitter.subscribe(lambda event, payload: received.append((event, payload)))
    emitter.emit_error("something failed")

    assert received == [(AppEvent.ERROR, "something failed")]


def test_unsubscribe():
    emitter = EventEmitter()
    received = []
    unsubscribe = emitter.subscribe(lambda event, payload: received.append(event))
    unsubscribe()
    emitter.emit(AppEvent.GAME_ADDED, "Game")
    assert received == []
