"""
Tests for the ModPal command facade.
"""
from pathlib import Path

import pytest
from unittest.mock import AsyncMock, Mock, patch

from modpal import ModPal
from modpal.errors import ErrorKind, SyncInProgressError
from modpal.events import AppEvent
from modpal.services import InstallOutcome


@pytest.fixture
def modpal(settings):
    return ModPal(settings=settings)


@pytest.mark.asyncio
async def test_queries_return_serialized_snapshots(modpal, make_game_exe):
    result = await modpal.get_installed_games()
    assert result == {'success': True, 'installed_games': {}}

    added = await modpal.add_game(str(make_game_exe("Game")))
    assert added['success'] is True

    games = (await modpal.get_installed_games())['installed_games']
    assert games[added['game']['id']]['name'] == "Game"


@pytest.mark.asyncio
async def test_errors_become_result_dicts(modpal):
    result = await modpal.install_mod("missing-game", "some-mod")
    assert result['success'] is False
    assert result['error_kind'] == ErrorKind.NOT_FOUND.value
    assert "missing-game" in result['error']


@pytest.mark.asyncio
async def test_duplicate_add_is_already_exists(modpal, make_game_exe):
    exe = str(make_game_exe("Game"))
    await modpal.add_game(exe)
    result = await modpal.add_game(exe)
    assert result['success'] is False
    assert result['error_kind'] == ErrorKind.ALREADY_EXISTS.value


@pytest.mark.asyncio
async def test_update_data_in_progress(modpal):
    with patch.object(modpal.sync_service, "update_data", AsyncMock(side_effect=SyncInProgressError())):
        result = await modpal.update_data()
    assert result['success'] is False
    assert result['error_kind'] == ErrorKind.ALREADY_EXISTS.value


@pytest.mark.asyncio
async def test_install_mod_reports_outcome(modpal):
    install = AsyncMock(return_value=InstallOutcome.MANUAL_ACTION_REQUIRED)
    with patch.object(modpal.install_service, "install_mod", install):
        result = await modpal.install_mod("game", "mod")
    assert result == {'success': True, 'outcome': 'ManualActionRequired'}
    install.assert_awaited_once_with("game", "mod")


@pytest.mark.asyncio
async def test_unexpected_errors_do_not_escape(modpal):
    with patch.object(modpal.install_service, "refresh_game", AsyncMock(side_effect=RuntimeError("boom"))):
        result = await modpal.refresh_game("game")
    assert result['success'] is False
    assert result['error'] == "boom"


@pytest.mark.asyncio
async def test_start_game_uses_provider_command(modpal, make_game_exe):
    added = await modpal.add_game(str(make_game_exe("Game")))
    game_id = added['game']['id']
    modpal.state.installed_games.get()[game_id].start_command = "steam://rungameid/1"

    with patch("modpal.games.installed_game.launcher") as launcher:
        assert (await modpal.start_game(game_id))['success'] is True
        launcher.execute_command.assert_called_once_with("steam://rungameid/1")

        assert (await modpal.start_game_exe(game_id))['success'] is True
        launcher.run_executable.assert_called_once()


@pytest.mark.asyncio
async def test_open_folders(modpal, make_game_exe, data_dir):
    added = await modpal.add_game(str(make_game_exe("Game")))
    game_id = added['game']['id']

    with patch("modpal.games.installed_game.launcher") as game_launcher, \
            patch("modpal.api.launcher") as api_launcher:
        assert (await modpal.open_game_folder(game_id))['success'] is True
        assert (await modpal.open_game_mods_folder(game_id))['success'] is True
        assert (await modpal.open_logs_folder())['success'] is True
        assert (await modpal.open_mods_folder())['success'] is True

    assert game_launcher.open_path.call_count == 2
    api_launcher.open_path.assert_any_call(data_dir / "logs")
    assert (await modpal.open_mod_loader_folder("nope"))['error_kind'] == ErrorKind.NOT_FOUND.value
    assert (await modpal.open_mod_folder("nope"))['error_kind'] == ErrorKind.NOT_FOUND.value


@pytest.mark.asyncio
async def test_subscribe_receives_game_events(modpal, make_game_exe):
    listener = Mock()
    modpal.subscribe(listener)
    added = await modpal.add_game(str(make_game_exe("Game")))
    await modpal.remove_game(added['game']['id'])

    listener.assert_any_call(AppEvent.GAME_ADDED, "Game")
    listener.assert_any_call(AppEvent.GAME_REMOVED, "Game")


@pytest.mark.asyncio
async def test_delete_steam_appinfo_cache(modpal, settings):
    steam = Path(settings.steam_path)
    (steam / "steamapps").mkdir(parents=True)
    appinfo = steam / "appcache" / "appinfo.vdf"
    appinfo.parent.mkdir()
    appinfo.write_bytes(b"stale")

    assert await modpal.delete_steam_appinfo_cache() == {'success': True, 'deleted': True}
    assert not appinfo.exists()
    assert await modpal.delete_steam_appinfo_cache() == {'success': True, 'deleted': False}


@pytest.mark.asyncio
async def test_delete_steam_appinfo_cache_without_steam(modpal):
    result = await modpal.delete_steam_appinfo_cache()
    assert result['success'] is False
    assert result['error_kind'] == ErrorKind.EXTERNAL_IO.value
