"""Configuration constants for the playlist transfer server and its host application."""

# --- Server ---
DEFAULT_PORT = 8899
# All IPv4 interfaces, so phones on the LAN can reach the advertised address
BIND_HOST = "0.0.0.0"
DEFAULT_PLAYLIST_NAME = "Imported Playlist"

# --- Interface scoring ---
# Case-insensitive substrings of interface names. Virtual adapters (VPN,
# container bridges, hypervisor NAT) are rarely reachable from a phone.
VIRTUAL_INTERFACE_MARKERS = (
    'vethernet', 'virtual', 'wsl', 'docker', 'bridge', 'vmware',
    'box', 'pseudo', 'host-only', 'tap', 'tun',
)
WIFI_INTERFACE_MARKERS = ('wi-fi', 'wlan', 'wlp')
ETHERNET_INTERFACE_MARKERS = ('ethernet', '以太网', 'lan-verbindung', 'eth', 'enp', 'eno')

VIRTUAL_PENALTY = -100
WIFI_BONUS = 50
ETHERNET_BONUS = 40
SUBNET_192_168_BONUS = 20
SUBNET_172_16_BONUS = 15
SUBNET_10_BONUS = 10

# --- Playlist import ---
FETCH_TIMEOUT = 10  # seconds
FALLBACK_GROUP_TITLE = "Unsorted"

# --- Host application ---
PREFERENCES_FILENAME = "preferences.json"
DATABASE_FILENAME = "playlists.db"
LOG_DIRNAME = "logs"
LOG_FILE_PREFIX = "playlist_transfer_"
LOG_RETENTION_DAYS = 7
DEFAULT_LOG_LEVEL = "off"
