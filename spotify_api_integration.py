"""
Spotify API Integration for Paceify

This module handles:
1. PKCE login: building the authorize URL and exchanging the returned code for tokens
2. Reading the user's saved tracks with their audio features (tempo, energy, danceability)
3. Fetching tempo-constrained recommendations when the library has no matching tracks
4. Creating a playlist from matched track URIs

Every call is made with an explicit access token passed by the caller; nothing is cached
between requests. Spotify errors (401 expired token, 429 rate limit, ...) are raised as
SpotifyException and left for the caller to report.
"""

import base64
import hashlib
import logging
from typing import Any, Dict, List, Optional, Sequence

import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyPKCE

from cadence.tempo_matcher import Track

log = logging.getLogger("paceify_spotify")

# Spotify accepts at most 5 seeds in total, tracks and genres combined
MAX_SEEDS = 5
AUDIO_FEATURES_BATCH_SIZE = 100
PLAYLIST_ADD_BATCH_SIZE = 100
MAX_RECOMMENDATIONS = 100


def configure_spotipy_logging() -> None:
    """spotipy logs every HTTP error itself; we log and report them once, at the API layer."""
    for logger_name in ("spotipy", "spotipy.client", "spotipy.oauth2"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


configure_spotipy_logging()


# =============================================================================
# PKCE login
# =============================================================================


def code_challenge_for(code_verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def build_pkce_auth_manager(client_id: str, redirect_uri: str, scope: str) -> SpotifyPKCE:
    # Memory cache: tokens go back to the client, never to disk
    return SpotifyPKCE(
        client_id=client_id,
        redirect_uri=redirect_uri,
        scope=scope,
        cache_handler=MemoryCacheHandler(),
        open_browser=False,
    )


def get_login_url(client_id: str, redirect_uri: str, scope: str) -> Dict[str, str]:
    """
    Start a PKCE login.

    Returns the Spotify authorize URL and the code verifier; the client keeps the
    verifier and sends it back with the code to exchange_code().
    """
    auth_manager = build_pkce_auth_manager(client_id, redirect_uri, scope)
    url = auth_manager.get_authorize_url()
    return {"url": url, "codeVerifier": auth_manager.code_verifier}


def exchange_code(
    code: str,
    code_verifier: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
) -> Dict[str, Any]:
    """
    Exchange an authorization code + verifier for tokens.

    Raises spotipy.oauth2.SpotifyOauthError if Spotify rejects the code.
    """
    auth_manager = build_pkce_auth_manager(client_id, redirect_uri, scope)
    auth_manager.code_verifier = code_verifier
    auth_manager.code_challenge = code_challenge_for(code_verifier)
    auth_manager.get_access_token(code=code, check_cache=False)

    token_info = auth_manager.cache_handler.get_cached_token() or {}
    return {
        "access_token": token_info.get("access_token"),
        "refresh_token": token_info.get("refresh_token"),
        "expires_in": token_info.get("expires_in"),
    }


# =============================================================================
# Track conversion
# =============================================================================


def _feature(features: Optional[Dict[str, Any]], key: str) -> Optional[float]:
    if not features or features.get(key) is None:
        return None
    return float(features[key])


def track_from_spotify(
    raw_track: Dict[str, Any],
    features: Optional[Dict[str, Any]],
    is_recommended: bool = False,
) -> Track:
    """Build a Track from a Spotify track object and its audio-features object."""
    album = raw_track.get("album") or {}
    artists = tuple(
        a.get("name", "") for a in raw_track.get("artists", []) if isinstance(a, dict) and a.get("name")
    )
    return Track(
        id=raw_track["id"],
        name=raw_track.get("name", ""),
        artists=artists,
        album=album.get("name", "") if isinstance(album, dict) else str(album),
        duration_ms=int(raw_track.get("duration_ms") or 0),
        tempo=_feature(features, "tempo"),
        energy=_feature(features, "energy"),
        danceability=_feature(features, "danceability"),
        uri=raw_track.get("uri"),
        is_recommended=is_recommended,
    )


# =============================================================================
# Spotify client
# =============================================================================


class SpotifyIntegration:
    """
    Spotify catalog access for one user request.

    The access token is passed in explicitly (Authorization header on /api/filter and
    /api/playlists/create); there is no stored session.
    """

    def __init__(
        self,
        access_token: str,
        requests_timeout: int = 10,
        retries: int = 0,
        page_size: int = 50,
        max_pages: int = 5,
    ):
        if not access_token:
            raise ValueError("Spotify access token required")

        self.page_size = page_size
        self.max_pages = max_pages
        self.sp = spotipy.Spotify(
            auth=access_token,
            requests_timeout=requests_timeout,
            retries=retries,
            status_retries=retries,
        )

    # ------------------------------------------------------------------ library

    def get_user_saved_tracks(self) -> List[Dict[str, Any]]:
        """Saved ("liked") track objects, paging until exhausted or max_pages is reached."""
        tracks: List[Dict[str, Any]] = []
        page = self.sp.current_user_saved_tracks(limit=self.page_size)
        pages_fetched = 1

        while page:
            for item in page.get("items", []):
                track = item.get("track")
                if track and track.get("id"):
                    tracks.append(track)
            if not page.get("next") or pages_fetched >= self.max_pages:
                break
            page = self.sp.next(page)
            pages_fetched += 1

        log.info("Fetched %d saved tracks (%d pages)", len(tracks), pages_fetched)
        return tracks

    def get_audio_features(self, track_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """Audio features keyed by track id, requested in batches of 100."""
        features_by_id: Dict[str, Dict[str, Any]] = {}
        track_ids = list(track_ids)

        for i in range(0, len(track_ids), AUDIO_FEATURES_BATCH_SIZE):
            batch = track_ids[i:i + AUDIO_FEATURES_BATCH_SIZE]
            for features in self.sp.audio_features(batch) or []:
                if features and features.get("id"):
                    features_by_id[features["id"]] = features
            log.debug("Retrieved audio features batch of %d", len(batch))

        return features_by_id

    def _with_audio_features(
        self, raw_tracks: List[Dict[str, Any]], is_recommended: bool = False
    ) -> List[Track]:
        """Attach audio features; tracks Spotify has no features for are dropped."""
        features_by_id = self.get_audio_features([t["id"] for t in raw_tracks])
        return [
            track_from_spotify(t, features_by_id[t["id"]], is_recommended=is_recommended)
            for t in raw_tracks
            if t["id"] in features_by_id
        ]

    def fetch_primary_pool(self) -> List[Track]:
        return self._with_audio_features(self.get_user_saved_tracks())

    # ------------------------------------------------------------ recommendations

    def get_recommendations(
        self,
        seed_track_ids: Sequence[str] = (),
        min_tempo: Optional[float] = None,
        max_tempo: Optional[float] = None,
        target_tempo: Optional[float] = None,
        limit: int = 20,
        seed_genres: Sequence[str] = (),
    ) -> List[Dict[str, Any]]:
        """Recommended track objects, seeded by up to 5 tracks, or by genres when there are none."""
        seed_tracks = list(seed_track_ids)[:MAX_SEEDS]
        params: Dict[str, Any] = {"limit": min(limit, MAX_RECOMMENDATIONS)}
        # Spotify rejects negative tempos; a low target can push the window below 0
        if target_tempo is not None:
            params["target_tempo"] = max(0, target_tempo)
        if min_tempo is not None:
            params["min_tempo"] = max(0, min_tempo)
        if max_tempo is not None:
            params["max_tempo"] = max(0, max_tempo)

        if seed_tracks:
            response = self.sp.recommendations(seed_tracks=seed_tracks, **params)
        else:
            response = self.sp.recommendations(seed_genres=list(seed_genres)[:MAX_SEEDS], **params)

        tracks = [t for t in (response or {}).get("tracks", []) if t and t.get("id")]
        log.info("Spotify returned %d recommendations", len(tracks))
        return tracks

    def fetch_fallback_pool(
        self,
        seed_track_ids: Sequence[str],
        min_bpm: float,
        max_bpm: float,
        target_bpm: float,
        limit: int = 20,
        seed_genres: Sequence[str] = (),
    ) -> List[Track]:
        raw_tracks = self.get_recommendations(
            seed_track_ids=seed_track_ids,
            min_tempo=min_bpm,
            max_tempo=max_bpm,
            target_tempo=target_bpm,
            limit=limit,
            seed_genres=seed_genres,
        )
        return self._with_audio_features(raw_tracks, is_recommended=True)

    # ---------------------------------------------------------------- playlists

    def get_current_user_id(self) -> str:
        return self.sp.current_user()["id"]

    def create_playlist(
        self,
        name: str,
        public: bool = False,
        description: str = "",
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        user_id = user_id or self.get_current_user_id()
        playlist = self.sp.user_playlist_create(
            user_id, name, public=public, description=description
        )
        log.info("Created playlist %s for user %s", playlist.get("id"), user_id)
        return playlist

    def add_tracks_to_playlist(self, playlist_id: str, track_uris: Sequence[str]) -> List[Dict[str, Any]]:
        """Add URIs in chunks of 100 (Spotify's per-request maximum)."""
        track_uris = list(track_uris)
        responses = []
        for i in range(0, len(track_uris), PLAYLIST_ADD_BATCH_SIZE):
            chunk = track_uris[i:i + PLAYLIST_ADD_BATCH_SIZE]
            responses.append(self.sp.playlist_add_items(playlist_id, chunk))
        return responses
