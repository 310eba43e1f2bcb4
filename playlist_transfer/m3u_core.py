import re

import requests

from playlist_transfer.config import FETCH_TIMEOUT, FALLBACK_GROUP_TITLE

EXTINF_PATTERN = re.compile(r'#EXTINF:(-?\d+(?:\.\d+)?)\s*([^,]*),(.*)')
ATTRIBUTE_PATTERN = re.compile(r'(\S+)="([^"]*)"')


def fetch_content(source_type, source_value):
    """
    Fetches playlist text from raw bytes, a file-like object or a URL.
    Returns (content_string, list_of_errors).
    """
    if source_type == 'file':
        try:
            data = source_value if isinstance(source_value, bytes) else source_value.read()
            return data.decode('utf-8', errors='ignore'), []
        except Exception as e:
            return None, [f"Error reading file: {e}"]
    elif source_type == 'url':
        try:
            response = requests.get(source_value, timeout=FETCH_TIMEOUT)
            response.raise_for_status()
            return response.text, []
        except requests.exceptions.RequestException as e:
            return None, [f"Error fetching URL '{source_value}': {e}"]
    return None, ["Invalid source type provided."]


def get_clean_display_name(raw_channel_name, attributes):
    """
    Derives a short display name for a channel.
    Prefers tvg-name, then the text before a '--' / ' - ' / ':' description,
    and truncates anything still overly long.
    """
    tvg_name = attributes.get('tvg-name', '').strip()
    if tvg_name:
        return tvg_name

    clean_name = re.sub(r'[\"\']', '', raw_channel_name).strip()
    clean_name = re.sub(r'\s+--\s+.*$', '', clean_name).strip()
    clean_name = re.sub(r'\s+-\s+.*$', '', clean_name).strip()
    clean_name = re.sub(r'\s*:\s+.*$', '', clean_name).strip()

    if len(clean_name) > 50:
        clean_name = clean_name[:47].strip() + '...'

    return clean_name if clean_name else "Unknown Channel"


def _parse_attributes(attributes_str):
    return {key.lower(): value for key, value in ATTRIBUTE_PATTERN.findall(attributes_str)}


def parse_m3u(file_content):
    """
    Parses M3U content into channels.
    Returns (list_of_errors, list_of_channels). Entries without a stream URL
    are reported and skipped.
    """
    errors = []
    channels = []
    lines = file_content.splitlines()

    first_line = next((l.strip() for l in lines if l.strip()), '')
    if not first_line.lstrip('\ufeff').startswith('#EXTM3U'):
        errors.append("M3U Warning: Missing '#EXTM3U' header on the first line.")

    pending = None  # (line number, channel dict) waiting for its stream URL
    for line_num, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith('#EXTINF:'):
            if pending:
                errors.append(f"M3U Error: Missing stream URL for channel '{pending[1]['name']}' (Line {pending[0]}).")
                pending = None

            match = EXTINF_PATTERN.match(line)
            if not match:
                errors.append(f"M3U Error: Malformed EXTINF line (Line {line_num}): {line}")
                continue

            attributes = _parse_attributes(match.group(2))
            channel_name = match.group(3).strip()
            if not channel_name:
                channel_name = attributes.get('tvg-name', '').strip()
            if not channel_name:
                errors.append(f"M3U Error: Channel name missing in EXTINF line (Line {line_num}).")
                channel_name = "Unknown Channel"

            pending = (line_num, {
                'name': channel_name,
                'tvg_id': attributes.get('tvg-id', '').strip(),
                'tvg_name': get_clean_display_name(channel_name, attributes),
                'tvg_logo': attributes.get('tvg-logo', '').strip(),
                'group_title': attributes.get('group-title', '').strip() or FALLBACK_GROUP_TITLE,
                'stream_url': '',
            })

        elif line.startswith('#'):
            # #EXTM3U, #EXTVLCOPT, #EXTGRP and friends carry no channel of their own
            continue

        elif pending:
            channel = pending[1]
            channel['stream_url'] = line
            channels.append(channel)
            pending = None

        else:
            errors.append(f"M3U Warning: Stream URL without EXTINF line ignored (Line {line_num}): {line}")

    if pending:
        errors.append(f"M3U Error: Missing stream URL for channel '{pending[1]['name']}' (Line {pending[0]}).")

    return errors, channels
