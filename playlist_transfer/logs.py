"""
File logging for the host application.

Levels: 'debug' writes everything, 'release' only warnings and errors, 'off'
writes nothing. One file per day, files older than LOG_RETENTION_DAYS are
removed when logging is set up.
"""

import logging
import time
from datetime import datetime
from pathlib import Path

from playlist_transfer.config import LOG_FILE_PREFIX, LOG_RETENTION_DAYS

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'release': logging.WARNING,
    'off': None,
}
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Loggers this application writes through; werkzeug emits the per-request access log
APP_LOGGERS = ('playlist_transfer', 'werkzeug')

logger = logging.getLogger(__name__)


def parse_log_level(name):
    """Normalizes a level name; anything unknown falls back to 'release'."""
    name = (name or '').lower()
    return name if name in LOG_LEVELS else 'release'


def clean_old_logs(log_dir, max_age_days=LOG_RETENTION_DAYS):
    cutoff = time.time() - max_age_days * 86400
    for log_file in Path(log_dir).glob('*.log'):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
        except OSError as e:
            logger.warning(f"Could not remove old log file {log_file}: {e}")


def setup_logging(level_name, log_dir):
    """
    Attaches a daily file handler to the application loggers.
    Returns the handler, or None when logging is off.
    """
    level_name = parse_log_level(level_name)
    level = LOG_LEVELS[level_name]
    if level is None:
        return None

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    clean_old_logs(log_dir)

    log_path = log_dir / f"{LOG_FILE_PREFIX}{datetime.now():%Y%m%d}.log"
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Restored by teardown_logging
    handler.previous_levels = {name: logging.getLogger(name).level for name in APP_LOGGERS}
    for name in APP_LOGGERS:
        app_logger = logging.getLogger(name)
        app_logger.addHandler(handler)
        app_logger.setLevel(level)

    logger.warning("=" * 40)
    logger.warning(f"Application start - {datetime.now():%Y-%m-%d %H:%M:%S}, log level: {level_name}")
    logger.warning("=" * 40)
    return handler


def teardown_logging(handler):
    if handler is None:
        return
    for name in APP_LOGGERS:
        app_logger = logging.getLogger(name)
        app_logger.removeHandler(handler)
        app_logger.setLevel(handler.previous_levels.get(name, logging.NOTSET))
    handler.close()
