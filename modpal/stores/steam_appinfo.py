"""Steam appinfo.vdf reader.

Steam keeps metadata for every app it knows about in appcache/appinfo.vdf
(binary VDF, formats v27-v29). We only read it: launch options, names,
release dates and OS lists all come from here.
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ExternalIOError

logger = logging.getLogger(__name__)

APPINFO_V27 = 0x07564427
APPINFO_V28 = 0x07564428
APPINFO_V29 = 0x07564429

# Binary VDF value types
_SECTION = 0x00
_STRING = 0x01
_INT32 = 0x02
_FLOAT32 = 0x03
_POINTER = 0x04
_COLOR = 0x06
_UINT64 = 0x07
_SECTION_END = 0x08
_INT64 = 0x0A
_SECTION_END_ALT = 0x0B


@dataclass
class SteamLaunchOption:
    launch_id: str
    app_id: int
    description: Optional[str] = None
    executable: Optional[str] = None
    arguments: Optional[str] = None
    launch_type: Optional[str] = None
    os_list: Optional[str] = None
    os_arch: Optional[str] = None
    beta_key: Optional[str] = None


@dataclass
class SteamAppInfo:
    app_id: int
    name: str
    app_type: str = ""
    is_free: bool = False
    original_release_date: Optional[int] = None
    steam_release_date: Optional[int] = None
    launch_options: List[SteamLaunchOption] = None

    def __post_init__(self):
        if self.launch_options is None:
            self.launch_options = []


def read_appinfo(steam_path: Path) -> Dict[int, SteamAppInfo]:
    """Read <steam>/appcache/appinfo.vdf. Returns {} if missing or unsupported."""
    appinfo_path = Path(steam_path) / "appcache" / "appinfo.vdf"
    if not appinfo_path.exists():
        logger.warning(f"Steam appinfo.vdf not found at {appinfo_path}")
        return {}

    try:
        with open(appinfo_path, 'rb') as f:
            data = f.read()
        raw_apps = parse_appinfo(data)
    except (OSError, struct.error, ValueError, IndexError) as e:
        logger.error(f"Failed to read appinfo.vdf: {e}")
        return {}

    return {app_id: build_app_info(app_id, sections) for app_id, sections in raw_apps.items()}


def delete_appinfo(steam_path: Path) -> bool:
    """Remove <steam>/appcache/appinfo.vdf so Steam rebuilds it on next start.

    Returns False if there was nothing to delete.
    """
    appinfo_path = Path(steam_path) / "appcache" / "appinfo.vdf"
    if not appinfo_path.exists():
        return False
    try:
        appinfo_path.unlink()
    except OSError as e:
        raise ExternalIOError(f"Failed to delete {appinfo_path}: {e}") from e
    logger.info(f"Deleted Steam appinfo cache at {appinfo_path}")
    return True


def parse_appinfo(data: bytes) -> Dict[int, Dict]:
    magic = struct.unpack_from('<I', data, 0)[0]
    if magic == APPINFO_V29:
        return _parse_appinfo_v29(data)
    if magic in (APPINFO_V27, APPINFO_V28):
        return _parse_appinfo_v27(data, header_size=64 if magic == APPINFO_V28 else 44)
    raise ValueError(f"Unsupported appinfo.vdf version: 0x{magic:08x}")


def _parse_appinfo_v29(data: bytes) -> Dict[int, Dict]:
    """Parse appinfo.vdf v29 format (string table + indexed keys)."""
    string_table_offset = struct.unpack_from('<Q', data, 8)[0]

    st_offset = string_table_offset
    string_count = struct.unpack_from('<I', data, st_offset)[0]
    st_offset += 4
    strings = []
    for _ in range(string_count):
        end = data.index(b'\x00', st_offset)
        strings.append(data[st_offset:end].decode('utf-8', errors='replace'))
        st_offset = end + 1

    def read_key(offset: int) -> Tuple[str, int]:
        key_idx = struct.unpack_from('<I', data, offset)[0]
        key = strings[key_idx] if key_idx < len(strings) else f'_unknown_{key_idx}'
        return key, offset + 4

    result = {}
    offset = 16
    while offset < string_table_offset:
        app_id = struct.unpack_from('<I', data, offset)[0]
        if app_id == 0:
            break
        offset += 4
        # size(4)+state(4)+last_update(4)+access_token(8)+sha1(20)+change_number(4)+sha1_binary(20)
        offset += 64
        sections, offset = _parse_sections(data, offset, read_key)
        result[app_id] = sections

    logger.info(f"Parsed {len(result)} apps from appinfo.vdf v29")
    return result


def _parse_appinfo_v27(data: bytes, header_size: int) -> Dict[int, Dict]:
    """Parse appinfo.vdf v27/v28 format (inline string keys)."""
    def read_key(offset: int) -> Tuple[str, int]:
        end = data.index(b'\x00', offset)
        return data[offset:end].decode('utf-8', errors='replace'), end + 1

    result = {}
    offset = 8
    while offset + 4 <= len(data):
        app_id = struct.unpack_from('<I', data, offset)[0]
        if app_id == 0:
            break
        offset += 4 + header_size
        sections, offset = _parse_sections(data, offset, read_key)
        result[app_id] = sections

    logger.info(f"Parsed {len(result)} apps from appinfo.vdf")
    return result


def _parse_sections(data: bytes, offset: int, read_key) -> Tuple[Dict[str, Any], int]:
    result: Dict[str, Any] = {}
    while offset < len(data):
        type_byte = data[offset]
        offset += 1
        if type_byte in (_SECTION_END, _SECTION_END_ALT):
            break
        key, offset = read_key(offset)

        if type_byte == _SECTION:
            result[key], offset = _parse_sections(data, offset, read_key)
        elif type_byte == _STRING:
            end = data.index(b'\x00', offset)
            result[key] = data[offset:end].decode('utf-8', errors='replace')
            offset = end + 1
        elif type_byte in (_INT32, _POINTER, _COLOR):
            result[key] = struct.unpack_from('<i', data, offset)[0]
            offset += 4
        elif type_byte == _FLOAT32:
            result[key] = struct.unpack_from('<f', data, offset)[0]
            offset += 4
        elif type_byte == _UINT64:
            result[key] = struct.unpack_from('<Q', data, offset)[0]
            offset += 8
        elif type_byte == _INT64:
            result[key] = struct.unpack_from('<q', data, offset)[0]
            offset += 8
        else:
            raise ValueError(f"Unknown binary VDF type 0x{type_byte:02x} at {offset - 1}")
    return result, offset


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, '') else None
    except (TypeError, ValueError):
        return None


def build_app_info(app_id: int, sections: Dict[str, Any]) -> SteamAppInfo:
    """Pick the fields we use out of one app's raw sections."""
    root = sections.get('appinfo', sections)
    common = root.get('common') or {}
    launch_sections = (root.get('config') or {}).get('launch') or {}

    launch_options = []
    for launch_id, launch in launch_sections.items():
        if not isinstance(launch, dict):
            continue
        config = launch.get('config') or {}
        launch_options.append(SteamLaunchOption(
            launch_id=str(launch_id),
            app_id=app_id,
            description=launch.get('description') or None,
            executable=launch.get('executable') or None,
            arguments=launch.get('arguments') or None,
            launch_type=launch.get('type') or None,
            os_list=config.get('oslist') or None,
            os_arch=config.get('osarch') or None,
            beta_key=config.get('betakey') or None,
        ))
    launch_options.sort(key=lambda option: (_optional_int(option.launch_id) or 0, option.launch_id))

    return SteamAppInfo(
        app_id=app_id,
        name=common.get('name', ''),
        app_type=str(common.get('type', '')),
        is_free=str(common.get('isfreeapp', '0')) == '1',
        original_release_date=_optional_int(common.get('original_release_date')),
        steam_release_date=_optional_int(common.get('steam_release_date')),
        launch_options=launch_options
    )
