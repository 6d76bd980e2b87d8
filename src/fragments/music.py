"""Service music fragment built from a streaming playlist."""

from __future__ import annotations

import logging
import re
from html import escape
from typing import List, Sequence
from urllib.parse import urlparse

from ..core.errors import ConfigurationError
from ..providers.contracts import PlaylistProvider

LOGGER = logging.getLogger(__name__)

# Performance annotations that do not belong in the bulletin.
SUFFIX_PATTERNS = [
    re.compile(r"\s+-\s+live\b.*$", re.IGNORECASE),
    re.compile(r"\s+-\s+acoustic\b.*$", re.IGNORECASE),
    re.compile(r"\s*\((?:live|acoustic)\b[^)]*\)\s*$", re.IGNORECASE),
    re.compile(r"\s*\[(?:live|acoustic)\b[^\]]*\]\s*$", re.IGNORECASE),
]

PLAYLIST_LINKS_TEMPLATE = (
    "<b>This week's playlist, on <a href=\"{spotify_url}\">Spotify</a>"
    " and <a href=\"{youtube_url}\">YouTube</a></b><br />"
)


def clean_track_name(name: str) -> str:
    cleaned = name.strip()
    for pattern in SUFFIX_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip() or name.strip()


def playlist_id_from_url(url: str) -> str:
    """``https://open.spotify.com/playlist/<id>`` -> ``<id>``."""
    segments = [segment for segment in urlparse(url).path.split("/") if segment]
    if not segments:
        raise ConfigurationError(f"Playlist URL has no id: {url!r}")
    return segments[-1]


def render_music_html(tracks: Sequence[str], spotify_url: str, youtube_url: str) -> str:
    links = PLAYLIST_LINKS_TEMPLATE.format(spotify_url=escape(spotify_url), youtube_url=escape(youtube_url))
    return f"{links}<br />{'<br />'.join(escape(track) for track in tracks)}"


async def build_music_fragment(provider: PlaylistProvider, playlist_url: str, youtube_url: str) -> str:
    playlist_id = playlist_id_from_url(playlist_url)
    raw_names = await provider.get_track_names(playlist_id)
    tracks: List[str] = [clean_track_name(name) for name in raw_names if name and name.strip()]
    LOGGER.info("Playlist %s has %s tracks.", playlist_id, len(tracks))
    return render_music_html(tracks, f"https://open.spotify.com/playlist/{playlist_id}", youtube_url)
