import threading
from types import SimpleNamespace

import pytest

from playlist_transfer.app import create_app
from playlist_transfer.server import TransferServer


class Recorder:
    """Collects (value, name) pairs from the callback slots."""

    def __init__(self):
        self.urls = []
        self.contents = []
        self._lock = threading.Lock()

    def url(self, url, name):
        with self._lock:
            self.urls.append((url, name))

    def content(self, content, name):
        with self._lock:
            self.contents.append((content, name))


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def client(recorder):
    holder = SimpleNamespace(
        on_url_received=recorder.url,
        on_content_received=recorder.content,
        is_running=True,
    )
    app = create_app(holder)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def running_server(recorder):
    server = TransferServer(port=0, address_selector=lambda: '127.0.0.1')
    server.on_url_received = recorder.url
    server.on_content_received = recorder.content
    assert server.start(), server.last_error
    yield server
    server.stop()


@pytest.fixture
def base_url(running_server):
    return f"http://127.0.0.1:{running_server.port}"
