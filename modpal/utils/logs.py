"""
Logging setup for modpal.

Every module logs through ``logging.getLogger(__name__)``; this only wires the
root handlers once, for the CLI and for hosts that don't configure logging.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .paths import LOG_FILE, get_logs_path

LOG_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)8s] %(name)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: int = logging.INFO, log_dir: Optional[Path] = None) -> Optional[Path]:
    """Configure console + rotating file logging.

    Returns:
        Path of the log file, or None if the file handler couldn't be created.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if not any(getattr(h, '_modpal', False) for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler._modpal = True
        root_logger.addHandler(console_handler)

    log_dir = log_dir or get_logs_path()
    log_file_path = log_dir / LOG_FILE
    if any(isinstance(h, RotatingFileHandler) and Path(h.baseFilename) == log_file_path
           for h in root_logger.handlers):
        return log_file_path

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=2 * 1024 * 1024,
            backupCount=3,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as e:
        logging.getLogger(__name__).warning(f"File logging disabled: {e}")
        return None

    return log_file_path
