"""Mods as listed in the remote mod database, independent of local installs."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..engines import EngineBrand, UnityScriptingBackend
from .common import CommonModData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModDownload:
    url: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {'url': self.url, 'version': self.version}


@dataclass
class RemoteModData:
    title: str
    author: str = ""
    source_code: str = ""
    description: str = ""
    downloads: List[ModDownload] = field(default_factory=list)

    @property
    def latest_version(self) -> Optional[ModDownload]:
        return self.downloads[0] if self.downloads else None


@dataclass
class RemoteMod:
    common: CommonModData
    data: RemoteModData

    @property
    def id(self) -> str:
        return self.common.id

    @classmethod
    def from_database_entry(cls, mod_id: str, loader_id: str, entry: Dict[str, Any]) -> 'RemoteMod':
        """Build from one mod database entry (camelCase JSON keys).

        Accepts a 'downloads' list or a single 'latestVersion' object.
        """
        raw_downloads = entry.get('downloads')
        if raw_downloads is None and entry.get('latestVersion'):
            raw_downloads = [entry['latestVersion']]

        downloads = []
        for raw in raw_downloads or []:
            if isinstance(raw, dict) and raw.get('url'):
                downloads.append(ModDownload(url=str(raw['url']), version=str(raw.get('version', ''))))
            else:
                logger.debug(f"[ModDatabase] Ignoring bad download entry for {mod_id}: {raw!r}")

        return cls(
            common=CommonModData(
                id=mod_id,
                loader_id=loader_id,
                engine=EngineBrand.parse(entry.get('engine')),
                unity_backend=UnityScriptingBackend.parse(entry.get('unityBackend'))
            ),
            data=RemoteModData(
                title=entry.get('title') or mod_id,
                author=entry.get('author') or "",
                source_code=entry.get('sourceCode') or "",
                description=entry.get('description') or "",
                downloads=downloads
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'common': self.common.to_dict(),
            'data': {
                'title': self.data.title,
                'author': self.data.author,
                'sourceCode': self.data.source_code,
                'description': self.data.description,
                'downloads': [d.to_dict() for d in self.data.downloads],
            },
        }
