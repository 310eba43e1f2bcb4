"""
Explicit bundle of the host application's shared collaborators.

Initialization order matters: preferences come first because they hold the
log level, logging comes next so everything after it is logged, then the
platform is detected and finally the database is opened. close() tears down
in reverse.
"""

import json
import logging
import platform
from pathlib import Path

from playlist_transfer.config import (
    PREFERENCES_FILENAME,
    DATABASE_FILENAME,
    LOG_DIRNAME,
    DEFAULT_LOG_LEVEL,
)
from playlist_transfer.logs import setup_logging, teardown_logging
from playlist_transfer.store import PlaylistStore

logger = logging.getLogger(__name__)


class Preferences:
    """Small JSON-file key/value store."""

    def __init__(self, path):
        self.path = Path(path)
        self._values = {}

    def load(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                self._values = json.load(f)
        except FileNotFoundError:
            self._values = {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read preferences {self.path}: {e}")
            self._values = {}
        return self

    def get(self, key, default=None):
        return self._values.get(key, default)

    def set(self, key, value):
        self._values[key] = value

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._values, f, indent=2)


class AppContext:
    def __init__(self, data_dir, log_level=None):
        self.data_dir = Path(data_dir)
        # Overrides and persists the stored log level when given
        self.log_level = log_level
        self.prefs = None
        self.log_handler = None
        self.platform = None
        self.store = None

    def init(self):
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.prefs = Preferences(self.data_dir / PREFERENCES_FILENAME).load()
        if self.log_level:
            self.prefs.set('log_level', self.log_level)
            self.prefs.save()

        self.log_handler = setup_logging(
            self.prefs.get('log_level', DEFAULT_LOG_LEVEL),
            self.data_dir / LOG_DIRNAME,
        )

        self.platform = platform.system()
        logger.info(f"Running on {self.platform}")

        self.store = PlaylistStore(self.data_dir / DATABASE_FILENAME)
        self.store.initialize()
        return self

    def close(self):
        if self.store is not None:
            self.store.close()
            self.store = None
        teardown_logging(self.log_handler)
        self.log_handler = None

    def __enter__(self):
        return self.init()

    def __exit__(self, exc_type, exc, tb):
        self.close()
