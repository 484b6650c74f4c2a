"""
Epic Games Store provider.

Reads the launcher's own data folder: one JSON manifest per installed game
under Manifests/*.item, and the owned catalog in Catalog/catcache.bin
(base64-encoded JSON).
"""
import asyncio
import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..engines import GameEngine
from ..errors import ExternalIOError
from ..games.installed_game import InstalledGame
from ..games.owned_game import OwnedGame
from ..metadata.pc_gaming_wiki import get_engine_from_game_title
from .base import Provider, ProviderId

logger = logging.getLogger(__name__)

ENGINE_LOOKUP_CONCURRENCY = 8


@dataclass
class EpicManifest:
    display_name: str
    launch_executable: str
    install_location: str
    catalog_namespace: str
    catalog_item_id: str
    app_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EpicManifest':
        """Raises KeyError when a field is missing."""
        return cls(
            display_name=data['DisplayName'],
            launch_executable=data['LaunchExecutable'],
            install_location=data['InstallLocation'],
            catalog_namespace=data['CatalogNamespace'],
            catalog_item_id=data['CatalogItemId'],
            app_name=data['AppName'],
        )

    @property
    def executable_path(self) -> Path:
        return Path(self.install_location) / self.launch_executable.replace('\\', '/')


@dataclass
class EpicCatalogItem:
    id: str
    namespace: str
    title: str
    categories: List[str] = field(default_factory=list)
    release_info: List[Dict[str, Any]] = field(default_factory=list)
    key_images: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EpicCatalogItem':
        return cls(
            id=data['id'],
            namespace=data.get('namespace', ''),
            title=data.get('title', ''),
            categories=[c.get('path', '') for c in data.get('categories') or []],
            release_info=list(data.get('releaseInfo') or []),
            key_images=list(data.get('keyImages') or []),
        )

    @property
    def is_game(self) -> bool:
        return 'games' in self.categories

    @property
    def app_id(self) -> str:
        return self.release_info[0].get('appId', '') if self.release_info else ''

    def get_release_date(self) -> Optional[int]:
        if not self.release_info:
            return None
        date_added = self.release_info[0].get('dateAdded')
        if not date_added:
            return None
        try:
            return int(datetime.fromisoformat(date_added.replace('Z', '+00:00')).timestamp())
        except ValueError:
            return None

    def get_thumbnail_url(self) -> Optional[str]:
        """Image sizes vary a lot between items, so take the smallest one."""
        images = [img for img in self.key_images if img.get('url')]
        if not images:
            return None
        return min(images, key=lambda img: img.get('height') or 0)['url']


def read_catalog(catalog_path: Path) -> List[EpicCatalogItem]:
    try:
        raw = catalog_path.read_bytes()
        items = json.loads(base64.b64decode(raw))
    except (OSError, binascii.Error, ValueError) as e:
        raise ExternalIOError(f"Failed to read Epic catalog {catalog_path}: {e}") from e

    catalog = []
    for item in items if isinstance(items, list) else []:
        try:
            catalog.append(EpicCatalogItem.from_dict(item))
        except (KeyError, TypeError, AttributeError) as e:
            logger.debug(f"[Epic] Skipping bad catalog item: {e}")
    return catalog


class EpicProvider(Provider):
    ID = ProviderId.EPIC

    def __init__(self, settings, app_data_path: Path):
        super().__init__(settings)
        self.app_data_path = app_data_path

    @classmethod
    def create(cls, settings) -> 'EpicProvider':
        app_data_path = Path(settings.epic_app_data_path)
        if not app_data_path.is_dir():
            raise ExternalIOError(f"Epic launcher data not found at {app_data_path}")
        return cls(settings, app_data_path)

    def list_installed(self) -> List[InstalledGame]:
        games = []
        for manifest_path in sorted((self.app_data_path / "Manifests").glob("*.item")):
            try:
                with open(manifest_path, 'r', encoding='utf-8') as f:
                    manifest = EpicManifest.from_dict(json.load(f))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error(f"[Epic] Failed to read manifest {manifest_path.name}: {e}")
                continue

            game = InstalledGame.new(manifest.executable_path, manifest.display_name, self.ID.value)
            if game is None:
                continue
            game.start_command = f"com.epicgames.launcher://apps/{manifest.app_name}?action=launch&silent=true"
            game.provider_game_id = manifest.catalog_item_id
            games.append(game)

        logger.info(f"[Epic] Found {len(games)} installed games")
        return games

    async def list_owned(self) -> List[OwnedGame]:
        catalog = await asyncio.to_thread(read_catalog, self.app_data_path / "Catalog" / "catcache.bin")
        semaphore = asyncio.Semaphore(ENGINE_LOOKUP_CONCURRENCY)
        api_url = self.settings.pc_gaming_wiki_url

        async def lookup(title: str) -> Optional[GameEngine]:
            async with semaphore:
                return await get_engine_from_game_title(title, api_url)

        async def build(item: EpicCatalogItem) -> OwnedGame:
            return OwnedGame(
                id=item.id,
                provider_id=self.ID.value,
                name=item.title,
                thumbnail_url=item.get_thumbnail_url(),
                release_date=item.get_release_date(),
                engine=await self.engine_cache.get_or_lookup(item.title, lookup),
                install_command=(
                    f"com.epicgames.launcher://apps/{item.namespace}%3A{item.id}%3A{item.app_id}?action=install"
                ),
            )

        owned_games = list(await asyncio.gather(*(build(item) for item in catalog if item.is_game)))
        self.engine_cache.save()
        logger.info(f"[Epic] Found {len(owned_games)} owned games")
        return owned_games
