#!/usr/bin/env python3
"""
Paceify API Backend
Flask endpoints to:
1. Log in to Spotify (PKCE) and exchange the code for tokens
2. Convert a running pace (or a direct cadence) into a target BPM
3. Filter the user's saved tracks to that BPM, falling back to recommendations
4. Save matched tracks as a Spotify playlist
"""

import logging
import os
import sys
import threading
from typing import Optional, Union

import requests
from flask import Flask, jsonify, request
from flask_cors import CORS
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

# Add project root to path so the api, cadence and catalog modules import when run directly
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

from api import config
from cadence.filter_request import InvalidFilterRequestError, parse_filter_request
from cadence.pace_to_cadence import pace_table
from cadence.tempo_matcher import format_track, match_tracks, tempo_window
from demo_catalog import DemoCatalog
from spotify_api_integration import SpotifyIntegration, exchange_code, get_login_url

logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
log = logging.getLogger("paceify_api")

DEFAULT_PLAYLIST_NAME = "Paceify Running Mix"

app = Flask(__name__)
CORS(app, origins=config.CORS_ORIGINS)

# Loaded on first use; the CSVs never change while the server runs
_demo_catalog: Optional[DemoCatalog] = None
_demo_catalog_lock = threading.Lock()

Catalog = Union[SpotifyIntegration, DemoCatalog]


def _get_demo_catalog() -> DemoCatalog:
    global _demo_catalog
    if _demo_catalog is None:
        with _demo_catalog_lock:
            if _demo_catalog is None:
                _demo_catalog = DemoCatalog(config.DEMO_DATA_DIR)
    return _demo_catalog


def _bearer_token() -> Optional[str]:
    """Access token from 'Authorization: Bearer <token>', or None."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def _spotify_client(access_token: str) -> SpotifyIntegration:
    return SpotifyIntegration(
        access_token,
        requests_timeout=config.SPOTIFY_REQUESTS_TIMEOUT,
        retries=config.SPOTIFY_RETRIES,
        page_size=config.LIBRARY_PAGE_SIZE,
        max_pages=config.LIBRARY_MAX_PAGES,
    )


def _get_catalog(access_token: Optional[str]) -> Optional[Catalog]:
    """Spotify when a token is given, the demo catalog when demo mode is on, else None."""
    if access_token:
        return _spotify_client(access_token)
    if config.DEMO_MODE:
        return _get_demo_catalog()
    return None


def _spotify_error_response(error: SpotifyException):
    """Pass Spotify's status (401 expired token, 429 rate limited, ...) through unchanged."""
    status = error.http_status if error.http_status and error.http_status >= 400 else 502
    log.error("Spotify API error (%s): %s", status, error.msg)
    return jsonify({"success": False, "error": error.msg, "status": status}), status


@app.route('/api/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "ok",
        "spotify_configured": bool(config.SPOTIPY_CLIENT_ID),
        "demo_mode": config.DEMO_MODE,
    })


# =============================================================================
# Spotify PKCE Auth Endpoints
# =============================================================================

@app.route('/api/auth/login', methods=['GET'])
def auth_login():
    """
    Return the Spotify authorize URL plus the PKCE code verifier.

    The frontend stores the verifier, redirects the user to the URL, and sends the
    verifier back with the returned code to /api/auth/token.
    """
    if not config.SPOTIPY_CLIENT_ID:
        log.error("Missing SPOTIPY_CLIENT_ID")
        return jsonify({"success": False, "error": "Spotify client ID not configured"}), 503

    login = get_login_url(config.SPOTIPY_CLIENT_ID, config.SPOTIPY_REDIRECT_URI, config.SPOTIFY_SCOPES)
    log.info("Generated Spotify auth URL: %s", login["url"][:80] + "...")
    return jsonify(login)


@app.route('/api/auth/token', methods=['POST'])
def auth_token():
    """Exchange code + codeVerifier for access/refresh tokens."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}
    code = data.get("code")
    code_verifier = data.get("codeVerifier")
    if not code or not code_verifier:
        return jsonify({"success": False, "error": "Missing code or codeVerifier"}), 400

    if not config.SPOTIPY_CLIENT_ID:
        log.error("Missing SPOTIPY_CLIENT_ID")
        return jsonify({"success": False, "error": "Spotify client ID not configured"}), 503

    try:
        tokens = exchange_code(
            code,
            code_verifier,
            config.SPOTIPY_CLIENT_ID,
            config.SPOTIPY_REDIRECT_URI,
            config.SPOTIFY_SCOPES,
        )
    except SpotifyOauthError as e:
        message = getattr(e, "error_description", None) or str(e)
        log.warning("Spotify token exchange rejected: %s", message)
        return jsonify({"success": False, "error": message}), 400
    except requests.RequestException as e:
        log.error("Token exchange request failed: %r", e)
        return jsonify({"success": False, "error": "Token exchange failed"}), 502

    if not tokens.get("access_token"):
        log.error("Token exchange returned no access token")
        return jsonify({"success": False, "error": "Token exchange failed"}), 502

    log.info("Spotify token exchange successful")
    return jsonify(tokens)


# =============================================================================
# Filter Endpoints
# =============================================================================

@app.route('/api/filter', methods=['POST'])
def filter_tracks():
    """
    Filter tracks by running cadence.
    Body: paceMinutes (+ paceSeconds, strideLengthFeet) or targetCadence; tolerance; limit.
    Header: Authorization: Bearer <spotify token> (optional in demo mode).
    """
    data = request.get_json(silent=True) or {}
    try:
        filter_request = parse_filter_request(
            data,
            default_tolerance=config.DEFAULT_TOLERANCE,
            default_limit=config.RECOMMENDATION_LIMIT,
        )
    except InvalidFilterRequestError as e:
        log.warning("Invalid filter request: %s", e.message)
        return jsonify(e.to_dict()), 400

    catalog = _get_catalog(_bearer_token())
    if catalog is None:
        return jsonify({"success": False, "error": "Access token required"}), 401

    try:
        target_cadence = filter_request.resolve_cadence()
        tolerance = filter_request.tolerance
        min_bpm, max_bpm = tempo_window(target_cadence, tolerance)
        log.info("Filtering tracks for cadence: %s ± %s BPM", target_cadence, tolerance)

        library = catalog.fetch_primary_pool()

        def fetch_recommendations():
            log.info("No tracks found in user library, adding recommendations...")
            return catalog.fetch_fallback_pool(
                seed_track_ids=[t.id for t in library],
                min_bpm=min_bpm,
                max_bpm=max_bpm,
                target_bpm=target_cadence,
                limit=filter_request.limit,
                seed_genres=config.FALLBACK_SEED_GENRES,
            )

        result = match_tracks(
            target_cadence,
            tolerance,
            library,
            fetch_recommendations,
            original_pace=filter_request.original_pace,
        )
    except SpotifyException as e:
        return _spotify_error_response(e)
    except requests.RequestException as e:
        log.error("Spotify request failed: %r", e)
        return jsonify({"success": False, "error": "Could not reach Spotify"}), 502
    except Exception:
        log.exception("Error filtering tracks")
        return jsonify({"success": False, "error": "Failed to filter tracks"}), 500

    log.info(
        "Matched %d library tracks, %d recommendations (%s)",
        result.filtered_count, result.recommendations_added, result.bpm_range,
    )
    return jsonify({"success": True, **result.to_dict()})


@app.route('/api/filter/pace-table', methods=['GET'])
def filter_pace_table():
    """Pace → BPM conversion examples for common paces."""
    return jsonify({
        "message": "Pace to BPM conversion table",
        "note": "BPM estimates based on average stride length. Actual cadence varies by individual.",
        "conversions": pace_table(),
    })


@app.route('/api/filter/test', methods=['GET'])
def filter_test():
    """Check the filter service and the demo catalog are working."""
    try:
        catalog = _get_demo_catalog()
        library = catalog.fetch_primary_pool()
    except (FileNotFoundError, ValueError) as e:
        log.error("Demo catalog unavailable: %s", e)
        return jsonify({"success": False, "error": str(e)}), 500

    return jsonify({
        "success": True,
        "message": "Filter service is working!",
        "demoTracksCount": catalog.library_size,
        "sampleTrack": format_track(library[0]) if library else None,
    })


# =============================================================================
# Playlist Endpoints
# =============================================================================

@app.route('/api/playlists/create', methods=['POST'])
def playlists_create():
    """
    Create a private playlist from track URIs. Requires Spotify OAuth (user).
    Body: name, trackUris — list of Spotify URIs or track ids.
    """
    access_token = _bearer_token()
    if not access_token:
        log.warning("No access token provided")
        return jsonify({"success": False, "error": "Access token required"}), 401

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}
    track_uris = data.get("trackUris") or []
    if not isinstance(track_uris, list) or not track_uris:
        log.warning("No track URIs provided")
        return jsonify({"success": False, "error": "No track URIs provided"}), 400
    # Ensure spotify:track: form
    track_uris = [u if u.startswith("spotify:") else f"spotify:track:{u}" for u in map(str, track_uris)]
    name = data.get("name") or DEFAULT_PLAYLIST_NAME

    try:
        spotify = _spotify_client(access_token)
        playlist = spotify.create_playlist(name, public=False, description=data.get("description", ""))
        spotify.add_tracks_to_playlist(playlist["id"], track_uris)
        log.info("Added %d tracks to playlist %s", len(track_uris), playlist["id"])
    except SpotifyException as e:
        return _spotify_error_response(e)
    except requests.RequestException as e:
        log.error("Spotify request failed: %r", e)
        return jsonify({"success": False, "error": "Could not reach Spotify"}), 502
    except Exception as e:
        log.exception("Error creating playlist")
        return jsonify({"success": False, "error": "Failed to create playlist", "details": str(e)}), 500

    return jsonify({
        "success": True,
        "id": playlist["id"],
        "name": playlist.get("name", name),
        "uri": playlist.get("uri"),
        "tracksCount": len(track_uris),
    })


@app.errorhandler(404)
def not_found(error):
    """Handle 404 errors."""
    return jsonify({
        "success": False,
        "error": f"Route not found: {request.path}",
        "available_routes": [
            "/api/health",
            "/api/auth/login",
            "/api/auth/token",
            "/api/filter",
            "/api/filter/pace-table",
            "/api/filter/test",
            "/api/playlists/create",
        ]
    }), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    host = "127.0.0.1"
    print(f"\n🏃 Paceify API Server")
    print(f"📍 Running on http://{host}:{port}")
    print(f"🔗 Health check: http://localhost:{port}/api/health")
    print(f"\nAvailable endpoints:")
    print(f"  GET  /api/auth/login")
    print(f"  POST /api/auth/token        (code, codeVerifier)")
    print(f"  POST /api/filter            (paceMinutes+paceSeconds or targetCadence, tolerance)")
    print(f"  GET  /api/filter/pace-table")
    print(f"  GET  /api/filter/test")
    print(f"  POST /api/playlists/create  (name, trackUris)")
    print(f"\nDemo mode: {'on' if config.DEMO_MODE else 'off'}\n")
    app.run(host=host, port=port, debug=True)
