"""OS helpers for opening folders/URLs and launching executables."""
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Sequence, Union

from ..errors import ExternalIOError

logger = logging.getLogger(__name__)


def _opener_command(target: str) -> list:
    if sys.platform.startswith('win'):
        return ['explorer', target]
    if sys.platform == 'darwin':
        return ['open', target]
    return ['xdg-open', target]


def open_path(target: Union[str, Path]) -> None:
    """Open a folder, file or URL with the desktop's default handler (detached)."""
    target = str(target)
    logger.info(f"[Launcher] Opening {target}")
    try:
        subprocess.Popen(
            _opener_command(target),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True
        )
    except OSError as e:
        raise ExternalIOError(f"Failed to open {target}: {e}") from e


def execute_command(command: str) -> None:
    """Run an opaque launch command string, e.g. steam://rungameid/620."""
    open_path(command)


def run_executable(path: Union[str, Path], args: Sequence[str] = ()) -> None:
    """Start an executable from its own folder without waiting for it."""
    path = Path(path)
    logger.info(f"[Launcher] Starting {path} {' '.join(args)}".rstrip())
    try:
        subprocess.Popen(
            [str(path), *args],
            cwd=str(path.parent),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            env=os.environ.copy()
        )
    except OSError as e:
        raise ExternalIOError(f"Failed to start {path}: {e}") from e
