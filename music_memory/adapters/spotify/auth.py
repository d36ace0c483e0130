"""Spotify OAuth2 authentication using spotipy."""

import spotipy
from spotipy.oauth2 import SpotifyOAuth

from music_memory.config import DEFAULT_REDIRECT_URI, SPOTIFY_CACHE_PATH, SPOTIFY_SCOPE


def get_spotify_client(
    client_id: str,
    client_secret: str,
    redirect_uri: str = DEFAULT_REDIRECT_URI,
) -> spotipy.Spotify:
    auth_manager = SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        scope=SPOTIFY_SCOPE,
        cache_path=SPOTIFY_CACHE_PATH,
    )
    return spotipy.Spotify(auth_manager=auth_manager)
