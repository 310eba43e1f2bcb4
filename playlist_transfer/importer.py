import logging
import threading

from playlist_transfer.server import PlaylistSink

logger = logging.getLogger(__name__)


class PlaylistImporter(PlaylistSink):
    """
    Imports submitted playlists into a PlaylistStore.

    Each import runs on its own thread so the phone gets its acknowledgment
    without waiting for a download. Only one import runs at a time; anything
    submitted meanwhile is dropped.
    """

    def __init__(self, store, on_imported=None, on_failed=None):
        self.store = store
        self.on_imported = on_imported
        self.on_failed = on_failed
        self.status_message = None
        self._busy = threading.Lock()
        self._worker = None

    @property
    def is_importing(self):
        return self._busy.locked()

    def receive_url(self, url, name):
        self._start(name, self.store.add_playlist_from_url, url)

    def receive_content(self, content, name):
        self._start(name, self.store.add_playlist_from_content, content)

    def _start(self, name, add_playlist, payload):
        if not self._busy.acquire(blocking=False):
            logger.warning(f"Import of '{name}' ignored, another import is in progress")
            return False

        self.status_message = f"Importing: {name}"
        self._worker = threading.Thread(
            target=self._run,
            args=(name, add_playlist, payload),
            name="playlist-import",
            daemon=True,
        )
        self._worker.start()
        return True

    def _run(self, name, add_playlist, payload):
        try:
            playlist = add_playlist(name, payload)
        except Exception as e:
            logger.exception(f"Import of '{name}' failed: {e}")
            self._finish_failed(name, str(e))
            return
        finally:
            self._busy.release()

        if playlist is None:
            self._finish_failed(name, "No channels could be imported")
            return

        self.status_message = f"Imported: {playlist['name']}"
        self._notify(self.on_imported, playlist)

    def _finish_failed(self, name, message):
        self.status_message = f"Import failed: {message}"
        self._notify(self.on_failed, name, message)

    def _notify(self, hook, *args):
        if hook is None:
            return
        try:
            hook(*args)
        except Exception as e:
            logger.exception(f"Import notification {getattr(hook, '__name__', hook)} failed: {e}")

    def wait(self, timeout=None):
        """Blocks until the current import (if any) has finished."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
