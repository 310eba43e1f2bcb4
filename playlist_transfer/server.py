"""
Local HTTP server that receives playlists from a phone on the same network.

The host application starts a TransferServer, shows ``server_url`` (usually as
a QR code) and waits. The phone opens the upload page, posts a URL or the text
of an M3U file to /submit, and the matching callback is invoked.
"""

import errno
import logging
import socket
import threading

from werkzeug.serving import ThreadedWSGIServer

from playlist_transfer.app import create_app
from playlist_transfer.config import DEFAULT_PORT, BIND_HOST
from playlist_transfer.netscan import select_advertised_address

logger = logging.getLogger(__name__)

_ADDRESS_IN_USE = {errno.EADDRINUSE, getattr(errno, 'WSAEADDRINUSE', errno.EADDRINUSE)}
_ACCESS_DENIED = {errno.EACCES, errno.EPERM, getattr(errno, 'WSAEACCES', errno.EACCES)}


# --- Start errors ---
class StartError(Exception):
    """Base class for failures of TransferServer.start(). ``str()`` is user-facing."""


class NoAddressFound(StartError):
    def __init__(self):
        super().__init__("No usable network connection found. Connect to Wi-Fi or Ethernet and try again.")


class PortInUse(StartError):
    def __init__(self, port):
        self.port = port
        super().__init__(f"Port {port} is already in use. Close the application using it and try again.")


class PermissionDenied(StartError):
    def __init__(self, port):
        self.port = port
        super().__init__(f"Permission denied while opening port {port}. Check firewall or network permissions.")


class NetworkError(StartError):
    def __init__(self, detail):
        self.detail = detail
        super().__init__(f"Network error while starting the server: {detail}")


def classify_bind_error(error, port):
    """Maps an OSError raised while binding to the matching StartError."""
    if error.errno in _ADDRESS_IN_USE:
        return PortInUse(port)
    if error.errno in _ACCESS_DENIED:
        return PermissionDenied(port)
    return NetworkError(error.strerror or str(error))


def bind_listener(host, port):
    """Creates a listening IPv4 TCP socket with SO_REUSEADDR set."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(socket.SOMAXCONN)
    except OSError:
        sock.close()
        raise
    return sock


class TransferWSGIServer(ThreadedWSGIServer):
    """
    Threaded werkzeug server that remembers its open connections so stop()
    can cut them off. Handler threads are daemons and are never joined.
    """

    def __init__(self, *args, **kwargs):
        self._connections = set()
        self._connections_lock = threading.Lock()
        super().__init__(*args, **kwargs)

    def process_request(self, request, client_address):
        with self._connections_lock:
            self._connections.add(request)
        super().process_request(request, client_address)

    def shutdown_request(self, request):
        with self._connections_lock:
            self._connections.discard(request)
        super().shutdown_request(request)

    def close_connections(self):
        with self._connections_lock:
            connections = list(self._connections)
            self._connections.clear()
        for connection in connections:
            try:
                connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            connection.close()
        return len(connections)


class PlaylistSink:
    """
    Receiver for submitted playlists. Host applications subclass this and pass
    an instance as ``TransferServer(sink=...)``.
    """

    def receive_url(self, url, name):
        raise NotImplementedError

    def receive_content(self, content, name):
        raise NotImplementedError


class TransferServer:
    def __init__(self, port=DEFAULT_PORT, sink=None, host=BIND_HOST, address_selector=None):
        self.host = host
        self._requested_port = port
        self._address_selector = address_selector or select_advertised_address

        # Callback slots: on_url_received(url, name), on_content_received(content, name)
        self.on_url_received = None
        self.on_content_received = None
        if sink is not None:
            self.on_url_received = sink.receive_url
            self.on_content_received = sink.receive_content

        self._lock = threading.Lock()
        self._http_server = None
        self._thread = None
        self._local_ip = None
        self.last_error = None
        self.start_error = None

    @property
    def is_running(self):
        return self._http_server is not None

    @property
    def local_ip(self):
        return self._local_ip

    @property
    def port(self):
        server = self._http_server
        if server is not None:
            return server.server_address[1]
        return self._requested_port

    @property
    def server_url(self):
        return f"http://{self._local_ip}:{self.port}"

    def _fail(self, error):
        self.start_error = error
        self.last_error = str(error)
        logger.error(f"Failed to start transfer server: {error}")
        return False

    def start(self):
        """
        Binds the listener and starts serving in a background thread.
        Returns True when running. On failure returns False and leaves the
        reason in ``last_error`` (message) and ``start_error`` (StartError).
        Calling start() while already running does nothing and returns True.
        """
        with self._lock:
            if self._http_server is not None:
                logger.info(f"Transfer server already running at {self.server_url}")
                return True

            self.last_error = None
            self.start_error = None

            local_ip = self._address_selector()
            if local_ip is None:
                return self._fail(NoAddressFound())

            try:
                sock = bind_listener(self.host, self._requested_port)
            except OSError as e:
                return self._fail(classify_bind_error(e, self._requested_port))

            try:
                # werkzeug works on a dup of the descriptor; ours is closed below
                http_server = TransferWSGIServer(
                    self.host,
                    sock.getsockname()[1],
                    create_app(self),
                    fd=sock.fileno(),
                )
            except OSError as e:
                return self._fail(NetworkError(e.strerror or str(e)))
            finally:
                sock.close()

            self._local_ip = local_ip
            self._http_server = http_server
            self._thread = threading.Thread(
                target=http_server.serve_forever,
                name="playlist-transfer-server",
                daemon=True,
            )
            self._thread.start()

        logger.info(f"Transfer server listening on {self.host}:{self.port}, advertised as {self.server_url}")
        return True

    def stop(self):
        """
        Closes the listener and every open connection. In-flight requests are
        cut off without a response.
        Safe to call repeatedly and from any thread except the serving thread.
        """
        with self._lock:
            http_server, self._http_server = self._http_server, None
            thread, self._thread = self._thread, None
            if http_server is None:
                return

            http_server.shutdown()
            http_server.server_close()
            dropped = http_server.close_connections()
            if thread is not None:
                thread.join(timeout=5)

        logger.info(f"Transfer server stopped ({dropped} open connections closed)")
