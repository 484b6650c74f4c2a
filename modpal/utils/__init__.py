# Utils package
from .paths import (
    get_data_dir,
    get_logs_path,
    get_installed_mods_path,
    hash_path,
    normalize_path,
)

__all__ = [
    'get_data_dir',
    'get_logs_path',
    'get_installed_mods_path',
    'hash_path',
    'normalize_path',
]
