"""Receive IPTV playlists from a phone over the local network."""

from playlist_transfer.server import (
    TransferServer,
    PlaylistSink,
    StartError,
    NoAddressFound,
    PortInUse,
    PermissionDenied,
    NetworkError,
)
from playlist_transfer.netscan import select_advertised_address

__version__ = "0.1.0"
