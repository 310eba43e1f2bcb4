import json
import logging
import os
import time
from datetime import datetime

from playlist_transfer.context import AppContext, Preferences
from playlist_transfer.logs import parse_log_level, setup_logging, teardown_logging


def test_preferences_roundtrip(tmp_path):
    prefs = Preferences(tmp_path / 'prefs.json').load()
    assert prefs.get('log_level') is None
    prefs.set('log_level', 'debug')
    prefs.save()
    assert Preferences(tmp_path / 'prefs.json').load().get('log_level') == 'debug'


def test_corrupt_preferences_fall_back_to_defaults(tmp_path, caplog):
    path = tmp_path / 'prefs.json'
    path.write_text('{broken', encoding='utf-8')
    with caplog.at_level(logging.WARNING, logger='playlist_transfer.context'):
        prefs = Preferences(path).load()
    assert prefs.get('log_level', 'off') == 'off'
    assert any('Could not read preferences' in r.getMessage() for r in caplog.records)


def test_context_initializes_in_order_and_closes(tmp_path):
    with AppContext(tmp_path / 'data') as context:
        assert context.prefs is not None
        assert context.platform
        assert context.store.list_playlists() == []
        # logging defaults to off
        assert context.log_handler is None
    assert context.store is None


def test_log_level_override_is_persisted(tmp_path):
    context = AppContext(tmp_path, log_level='debug').init()
    try:
        assert context.log_handler is not None
        logging.getLogger('playlist_transfer.test').debug('hello from the test')
        log_files = list((tmp_path / 'logs').glob('playlist_transfer_*.log'))
        assert len(log_files) == 1
    finally:
        context.close()

    saved = json.loads((tmp_path / 'preferences.json').read_text(encoding='utf-8'))
    assert saved['log_level'] == 'debug'
    assert 'hello from the test' in log_files[0].read_text(encoding='utf-8')


def test_parse_log_level():
    assert parse_log_level('DEBUG') == 'debug'
    assert parse_log_level('off') == 'off'
    assert parse_log_level('verbose') == 'release'
    assert parse_log_level(None) == 'release'


def test_old_logs_are_removed(tmp_path):
    old = tmp_path / 'playlist_transfer_20000101.log'
    old.write_text('old', encoding='utf-8')
    ten_days_ago = time.time() - 10 * 86400
    os.utime(old, (ten_days_ago, ten_days_ago))

    handler = setup_logging('release', tmp_path)
    try:
        assert not old.exists()
        assert (tmp_path / f"playlist_transfer_{datetime.now():%Y%m%d}.log").exists()
    finally:
        teardown_logging(handler)


def test_teardown_restores_logger_levels(tmp_path):
    app_logger = logging.getLogger('playlist_transfer')
    werkzeug_logger = logging.getLogger('werkzeug')
    before = (app_logger.level, werkzeug_logger.level)

    handler = setup_logging('debug', tmp_path)
    assert app_logger.level == logging.DEBUG
    teardown_logging(handler)

    assert (app_logger.level, werkzeug_logger.level) == before
    assert handler not in app_logger.handlers
