import io

import requests

from playlist_transfer import m3u_core
from playlist_transfer.m3u_core import fetch_content, parse_m3u, get_clean_display_name

SAMPLE = """#EXTM3U
#EXTINF:-1 tvg-id="news.one" tvg-logo="http://logo/n1.png" group-title="News",News One HD
http://streams.example/news1.m3u8
#EXTINF:-1,Movie Channel -- all movies, all day
#EXTVLCOPT:http-user-agent=Test
http://streams.example/movies.ts
"""


def test_parse_channels():
    errors, channels = parse_m3u(SAMPLE)
    assert errors == []
    assert channels == [
        {
            'name': 'News One HD',
            'tvg_id': 'news.one',
            'tvg_name': 'News One HD',
            'tvg_logo': 'http://logo/n1.png',
            'group_title': 'News',
            'stream_url': 'http://streams.example/news1.m3u8',
        },
        {
            'name': 'Movie Channel -- all movies, all day',
            'tvg_id': '',
            'tvg_name': 'Movie Channel',
            'tvg_logo': '',
            'group_title': 'Unsorted',
            'stream_url': 'http://streams.example/movies.ts',
        },
    ]


def test_missing_header_and_missing_url_are_reported():
    content = "#EXTINF:-1,First\n#EXTINF:-1,Second\nhttp://s/2\n"
    errors, channels = parse_m3u(content)
    assert [c['name'] for c in channels] == ['Second']
    assert any("#EXTM3U" in e for e in errors)
    assert any("Missing stream URL for channel 'First'" in e for e in errors)


def test_malformed_extinf_and_stray_url():
    content = "#EXTM3U\n#EXTINF:abc\nhttp://s/orphan\n"
    errors, channels = parse_m3u(content)
    assert channels == []
    assert any("Malformed EXTINF" in e for e in errors)
    assert any("without EXTINF" in e for e in errors)


def test_trailing_entry_without_url():
    errors, channels = parse_m3u("#EXTM3U\n#EXTINF:-1,Last\n")
    assert channels == []
    assert any("'Last'" in e for e in errors)


def test_bom_before_header_is_accepted():
    errors, channels = parse_m3u("\ufeff#EXTM3U\n#EXTINF:-1,A\nhttp://s/a\n")
    assert errors == []
    assert len(channels) == 1


def test_clean_display_name():
    assert get_clean_display_name('Sports 1: live football', {}) == 'Sports 1'
    assert get_clean_display_name('anything', {'tvg-name': 'Given'}) == 'Given'
    assert get_clean_display_name('""', {}) == 'Unknown Channel'
    assert get_clean_display_name('x' * 80, {}).endswith('...')


def test_fetch_content_from_bytes_and_file():
    assert fetch_content('file', b'#EXTM3U\n') == ('#EXTM3U\n', [])
    assert fetch_content('file', io.BytesIO(b'#EXTM3U\n')) == ('#EXTM3U\n', [])


def test_fetch_content_from_url(monkeypatch):
    class FakeResponse:
        text = '#EXTM3U\n'

        def raise_for_status(self):
            pass

    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse()

    monkeypatch.setattr(m3u_core.requests, 'get', fake_get)
    assert fetch_content('url', 'http://example.com/list.m3u') == ('#EXTM3U\n', [])
    assert calls == [('http://example.com/list.m3u', 10)]


def test_fetch_content_url_error(monkeypatch):
    def fake_get(url, timeout):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(m3u_core.requests, 'get', fake_get)
    content, errors = fetch_content('url', 'http://unreachable/list.m3u')
    assert content is None
    assert "Error fetching URL 'http://unreachable/list.m3u'" in errors[0]


def test_fetch_content_invalid_source():
    assert fetch_content('ftp', 'x') == (None, ["Invalid source type provided."])
