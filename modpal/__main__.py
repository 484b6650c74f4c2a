"""
Command line entry point.

    python -m modpal sync
    python -m modpal games
    python -m modpal install <game_id> <mod_id>
"""
import argparse
import asyncio
import json
import logging
import sys

from .api import ModPal
from .utils.logs import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modpal", description="Manage mods for installed games")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Refresh games, loaders and mods")
    subparsers.add_parser("games", help="Refresh, then list installed games")
    subparsers.add_parser("owned", help="Refresh, then list owned games")
    subparsers.add_parser("mods", help="Refresh, then list local and remote mods")

    add = subparsers.add_parser("add-game", help="Track a game executable manually")
    add.add_argument("path")
    remove = subparsers.add_parser("remove-game", help="Stop tracking a manual game")
    remove.add_argument("game_id")

    for name, help_text in (("install", "Install a mod into a game"), ("uninstall", "Remove a mod from a game")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("game_id")
        sub.add_argument("mod_id")

    download = subparsers.add_parser("download", help="Download a mod without installing it")
    download.add_argument("mod_id")
    start = subparsers.add_parser("start", help="Start a game")
    start.add_argument("game_id")
    return parser


async def run(args: argparse.Namespace) -> dict:
    modpal = ModPal()

    def log_event(event, payload):
        if payload:
            logger.info(f"[{event.value}] {payload}")

    modpal.subscribe(log_event)

    result = await modpal.update_data()
    if not result['success'] or args.command == "sync":
        return result

    if args.command == "games":
        return await modpal.get_installed_games()
    if args.command == "owned":
        return await modpal.get_owned_games()
    if args.command == "mods":
        local = await modpal.get_local_mods()
        remote = await modpal.get_remote_mods()
        return {**local, **remote}
    if args.command == "add-game":
        return await modpal.add_game(args.path)
    if args.command == "remove-game":
        return await modpal.remove_game(args.game_id)
    if args.command == "install":
        return await modpal.install_mod(args.game_id, args.mod_id)
    if args.command == "uninstall":
        return await modpal.uninstall_mod(args.game_id, args.mod_id)
    if args.command == "download":
        return await modpal.download_mod(args.mod_id)
    if args.command == "start":
        return await modpal.start_game(args.game_id)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    result = asyncio.run(run(args))
    print(json.dumps(result, indent=2))
    return 0 if result.get('success') else 1


if __name__ == "__main__":
    sys.exit(main())
