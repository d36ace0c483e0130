"""Configuration: constants and app settings."""

import os

# Spotify API
SPOTIFY_SCOPE = "user-library-read playlist-read-private user-top-read"
SPOTIFY_CACHE_PATH = "spotify_auth_cache.json"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"

# Session persistence
SESSIONS_FILE = os.getenv("MUSIC_MEMORY_SESSIONS_FILE", "sort_sessions.json")
SESSIONS_STORE_KEY = "saved_sort_sessions"
EXPORT_CSV_FILE = "ranking.csv"

# Artwork snapshot captured once per session
ARTWORK_SNAPSHOT_TIMEOUT_S = 5.0

# Results
SHARE_TOP_N = 10

LOG_LEVEL = os.getenv("MUSIC_MEMORY_LOG_LEVEL", "INFO")
