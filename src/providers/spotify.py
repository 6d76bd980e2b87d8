"""Spotify playlist provider using the spotipy library."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List

import requests
import spotipy
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from ..core.errors import ProviderError
from .contracts import SecretProvider

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 100

# Token requests fail with SpotifyOauthError, transport failures surface from requests.
SPOTIFY_ERRORS = (spotipy.SpotifyException, SpotifyOauthError, requests.exceptions.RequestException)


def create_spotify_client(client_id: str, client_secret: str) -> spotipy.Spotify:
    """Client Credentials flow; enough for public playlists."""
    auth_manager = SpotifyClientCredentials(client_id=client_id, client_secret=client_secret)
    return spotipy.Spotify(auth_manager=auth_manager)


class SpotifyPlaylistClient:
    """Lists track names of a public playlist in playlist order."""

    def __init__(
        self,
        secrets: SecretProvider,
        client_id_secret: str = "SpotifyClientId",
        client_secret_secret: str = "SpotifyClientSecret",
        client_factory: Callable[[str, str], Any] = create_spotify_client,
    ) -> None:
        self.secrets = secrets
        self.client_id_secret = client_id_secret
        self.client_secret_secret = client_secret_secret
        self.client_factory = client_factory

    async def get_track_names(self, playlist_id: str) -> List[str]:
        LOGGER.info("Getting Spotify tracks for playlist %s", playlist_id)
        client_id = await self.secrets.read(self.client_id_secret)
        client_secret = await self.secrets.read(self.client_secret_secret)
        try:
            client = self.client_factory(client_id, client_secret)
            # spotipy is blocking; keep the event loop free.
            return await asyncio.to_thread(_fetch_all_track_names, client, playlist_id)
        except SPOTIFY_ERRORS as exc:
            raise ProviderError("spotify", f"playlist {playlist_id} could not be read: {exc}") from exc


def _fetch_all_track_names(client: Any, playlist_id: str) -> List[str]:
    names: List[str] = []
    offset = 0
    while True:
        results = client.playlist_tracks(
            playlist_id,
            offset=offset,
            limit=PAGE_SIZE,
            fields="items(track(name,is_local)),next",
        )
        items = results.get("items", [])
        for item in items:
            track = item.get("track")
            if track and track.get("name"):
                names.append(track["name"])
        if not items or not results.get("next"):
            return names
        offset += PAGE_SIZE
