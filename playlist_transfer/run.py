"""Entry point: serve the upload page and import whatever the phone sends."""

import argparse
import sys
import time
from pathlib import Path

import qrcode

from playlist_transfer.config import DEFAULT_PORT
from playlist_transfer.context import AppContext
from playlist_transfer.importer import PlaylistImporter
from playlist_transfer.logs import LOG_LEVELS
from playlist_transfer.server import TransferServer

DEFAULT_DATA_DIR = Path.home() / ".playlist_transfer"


def build_parser():
    parser = argparse.ArgumentParser(
        description="Receive IPTV playlists from a phone on the same network."
    )
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Port to listen on (default: {DEFAULT_PORT})")
    parser.add_argument("--data-dir", type=Path, default=DEFAULT_DATA_DIR, help="Where preferences, logs and the playlist database live")
    parser.add_argument("--log-level", choices=sorted(LOG_LEVELS), help="Log level to use and remember")
    parser.add_argument("--no-qr", action="store_true", help="Do not print a QR code")
    return parser


def print_qr(url):
    qr = qrcode.QRCode(border=1, error_correction=qrcode.constants.ERROR_CORRECT_L)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def main(argv=None):
    args = build_parser().parse_args(argv)

    with AppContext(args.data_dir, log_level=args.log_level) as context:
        importer = PlaylistImporter(
            context.store,
            on_imported=lambda p: print(f"✓ Imported '{p['name']}' ({p['channel_count']} channels)"),
            on_failed=lambda name, message: print(f"✗ Import of '{name}' failed: {message}"),
        )
        server = TransferServer(port=args.port, sink=importer)

        if not server.start():
            print(f"Could not start the transfer server: {server.last_error}", file=sys.stderr)
            return 1

        print("--- Playlist transfer server started ---")
        print(f"Open this address on your phone (same network): {server.server_url}")
        if not args.no_qr:
            print_qr(server.server_url)
        print("Press Ctrl+C to stop.")

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\nStopping...")
        finally:
            server.stop()
            importer.wait(timeout=5)

    return 0


if __name__ == "__main__":
    sys.exit(main())
