#!/usr/bin/env python3
"""
Smoke-test a running Paceify API.

Prerequisites:
  - API server running (python run_api.py)
  - Either demo mode on (default), or a Spotify access token passed with --token

Usage:
  python scripts/smoke_test_api.py
  python scripts/smoke_test_api.py --base http://localhost:5001 --token <spotify access token>
"""

from __future__ import annotations

import argparse
import sys

import requests

DEFAULT_BASE = "http://localhost:5001"


def check_health(base: str) -> bool:
    """Test health endpoint."""
    try:
        response = requests.get(f"{base}/api/health", timeout=5)
        print(f"✅ Health check: {response.status_code}")
        print(f"   Response: {response.json()}")
        return response.ok
    except requests.exceptions.ConnectionError:
        print("❌ Connection failed: API server is not running")
        print("   Start it with: python3 run_api.py")
        return False


def check_filter(base: str, body: dict, token: str | None) -> bool:
    """POST /api/filter and print a summary."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    response = requests.post(f"{base}/api/filter", json=body, headers=headers, timeout=30)
    print(f"\n{'✅' if response.ok else '❌'} Filter {body}: {response.status_code}")
    result = response.json()
    if not response.ok:
        print(f"   Error: {result.get('error')}")
        return False

    print(f"   Target cadence: {result['targetCadence']} (pace {result['originalPace']})")
    print(f"   Range: {result['bpmRange']}")
    print(f"   Library: {result['filteredCount']}/{result['totalTracks']} matched")
    print(f"   Recommendations added: {result['recommendationsAdded']}")
    for track in result["tracks"][:10]:
        print(f"     {track['bpm']:>6} BPM  {track['name']} - {track['artists']}")
    return True


def check_bad_request(base: str) -> bool:
    response = requests.post(f"{base}/api/filter", json={}, timeout=10)
    ok = response.status_code == 400
    print(f"\n{'✅' if ok else '❌'} Empty body rejected: {response.status_code}")
    return ok


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke-test the Paceify API")
    parser.add_argument("--base", default=DEFAULT_BASE, help="API base URL")
    parser.add_argument("--token", default=None, help="Spotify access token (omit to use demo mode)")
    args = parser.parse_args()
    base = args.base.rstrip("/")

    print(f"API URL: {base}\n")
    if not check_health(base):
        sys.exit(1)

    print("\n" + "=" * 50)
    results = [
        check_filter(base, {"paceMinutes": 10, "paceSeconds": 30}, args.token),
        check_filter(base, {"targetCadence": 120, "tolerance": 5}, args.token),
        check_bad_request(base),
    ]
    sys.exit(0 if all(results) else 1)


if __name__ == "__main__":
    main()
