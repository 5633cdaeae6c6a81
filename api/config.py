"""
Paceify configuration.

Everything is read from the environment (a local .env is loaded if present).
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


# Spotify app (PKCE: no client secret needed)
SPOTIPY_CLIENT_ID = os.environ.get("SPOTIPY_CLIENT_ID")
SPOTIPY_REDIRECT_URI = os.environ.get("SPOTIPY_REDIRECT_URI", "http://127.0.0.1:5173/dashboard")
SPOTIFY_SCOPES = os.environ.get(
    "SPOTIFY_SCOPES",
    "user-library-read playlist-modify-private playlist-modify-public user-read-private user-read-email",
)
SPOTIFY_REQUESTS_TIMEOUT = int(os.environ.get("SPOTIFY_REQUESTS_TIMEOUT", "10"))
# 0 so 401/429 reach the caller instead of being retried by spotipy
SPOTIFY_RETRIES = int(os.environ.get("SPOTIFY_RETRIES", "0"))

# Frontend origins allowed by CORS ("*" for any)
CORS_ORIGINS = _env_list("FRONTEND_URL", "*")

# Matching
DEFAULT_TOLERANCE = float(os.environ.get("PACEIFY_DEFAULT_TOLERANCE", "10"))
RECOMMENDATION_LIMIT = int(os.environ.get("PACEIFY_RECOMMENDATION_LIMIT", "20"))
# Seed genres for recommendations when the library has no tracks to seed from
FALLBACK_SEED_GENRES = _env_list("PACEIFY_FALLBACK_GENRES", "pop,rock,electronic")

# Saved-tracks paging (50 is Spotify's max page size)
LIBRARY_PAGE_SIZE = int(os.environ.get("PACEIFY_LIBRARY_PAGE_SIZE", "50"))
LIBRARY_MAX_PAGES = int(os.environ.get("PACEIFY_LIBRARY_MAX_PAGES", "5"))

# Serve requests without a Spotify token from the bundled demo catalog
DEMO_MODE = _env_bool("PACEIFY_DEMO_MODE", True)
DEMO_DATA_DIR = Path(os.environ.get("PACEIFY_DEMO_DATA_DIR", str(PROJECT_ROOT / "data")))
