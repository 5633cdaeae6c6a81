"""
Offline demo catalog.

Serves the same pool operations as SpotifyIntegration from two bundled CSVs, so the
API can be exercised without a Spotify login:

- data/demo_library.csv          "saved tracks" (primary pool)
- data/demo_recommendations.csv  "recommendations" (fallback pool)

Columns: id, name, artists (';'-separated), album, duration_ms, tempo, energy,
danceability, uri. Empty cells are treated as missing.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd

from cadence.tempo_matcher import Track

log = logging.getLogger("demo_catalog")

LIBRARY_CSV = "demo_library.csv"
RECOMMENDATIONS_CSV = "demo_recommendations.csv"

REQUIRED_COLS = ["id", "name", "artists", "album", "duration_ms", "tempo"]
OPTIONAL_COLS = ["energy", "danceability", "uri"]


def _optional_float(value) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def _optional_str(value) -> Optional[str]:
    return None if pd.isna(value) or value == "" else str(value)


def load_tracks_csv(csv_path: Union[str, Path], is_recommended: bool = False) -> pd.DataFrame:
    """Load a track CSV, checking required columns and adding any missing optional ones."""
    if not os.path.exists(csv_path):
        raise FileNotFoundError(f"Track CSV not found: {csv_path}")

    df = pd.read_csv(csv_path, dtype={"id": str, "name": str, "artists": str, "album": str, "uri": str})
    missing = [c for c in REQUIRED_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing required columns: {missing}")
    for col in OPTIONAL_COLS:
        if col not in df.columns:
            df[col] = None

    df["tempo"] = pd.to_numeric(df["tempo"], errors="coerce").astype(float)
    df["is_recommended"] = is_recommended
    return df


def tracks_from_df(df: pd.DataFrame) -> List[Track]:
    tracks = []
    for row in df.to_dict("records"):
        artists = _optional_str(row.get("artists")) or ""
        tracks.append(Track(
            id=str(row["id"]),
            name=_optional_str(row.get("name")) or "",
            artists=tuple(a.strip() for a in artists.split(";") if a.strip()),
            album=_optional_str(row.get("album")) or "",
            duration_ms=int(row["duration_ms"]) if not pd.isna(row.get("duration_ms")) else 0,
            tempo=_optional_float(row.get("tempo")),
            energy=_optional_float(row.get("energy")),
            danceability=_optional_float(row.get("danceability")),
            uri=_optional_str(row.get("uri")),
            is_recommended=bool(row.get("is_recommended", False)),
        ))
    return tracks


class DemoCatalog:
    """CSV-backed stand-in for the Spotify catalog; loads both CSVs once."""

    def __init__(self, data_dir: Union[str, Path]):
        data_dir = Path(data_dir)
        self.library_df = load_tracks_csv(data_dir / LIBRARY_CSV)
        self.recommendations_df = load_tracks_csv(data_dir / RECOMMENDATIONS_CSV, is_recommended=True)
        log.info(
            "Demo catalog loaded: %d library tracks, %d recommendations",
            len(self.library_df),
            len(self.recommendations_df),
        )

    @property
    def library_size(self) -> int:
        return len(self.library_df)

    def fetch_primary_pool(self) -> List[Track]:
        return tracks_from_df(self.library_df)

    def fetch_fallback_pool(
        self,
        seed_track_ids: Sequence[str],
        min_bpm: float,
        max_bpm: float,
        target_bpm: float,
        limit: int = 20,
        seed_genres: Sequence[str] = (),
    ) -> List[Track]:
        """Recommendations already constrained to the window, closest tempo first (like Spotify's target_tempo)."""
        df = self.recommendations_df
        window = df[df["tempo"].between(min_bpm, max_bpm)].copy()
        window["tempo_diff"] = (window["tempo"] - target_bpm).abs()
        picks = window.sort_values("tempo_diff", kind="stable").head(limit)
        log.info(
            "Demo recommendations: %d in %s-%s (seeds=%s, genres=%s)",
            len(picks), min_bpm, max_bpm, list(seed_track_ids)[:5], list(seed_genres),
        )
        return tracks_from_df(picks.drop(columns=["tempo_diff"]))
