"""
Tempo matching: filter a track pool by a cadence window, with recommendation fallback.

The user's own library (primary pool) is always preferred. Recommendations (fallback pool)
are only used when the library has no track inside the window; the two are never merged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from cadence.pace_to_cadence import round_half_up

DEFAULT_TOLERANCE = 10.0

FallbackPool = Union[Sequence["Track"], Callable[[], Sequence["Track"]], None]


@dataclass(frozen=True)
class Track:
    id: str
    name: str
    artists: Tuple[str, ...] = ()
    album: str = ""
    duration_ms: int = 0
    tempo: Optional[float] = None
    energy: Optional[float] = None
    danceability: Optional[float] = None
    uri: Optional[str] = None
    is_recommended: bool = False

    @property
    def has_tempo(self) -> bool:
        return self.tempo is not None and math.isfinite(self.tempo)


@dataclass(frozen=True)
class MatchResult:
    target_cadence: float
    tolerance: float
    min_bpm: float
    max_bpm: float
    total_tracks: int
    filtered_count: int
    recommendations_added: int
    tracks: List[Track] = field(default_factory=list)
    original_pace: Optional[str] = None

    @property
    def bpm_range(self) -> str:
        return f"{format_number(self.min_bpm)}-{format_number(self.max_bpm)}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetCadence": json_number(self.target_cadence),
            "originalPace": self.original_pace,
            "tolerance": json_number(self.tolerance),
            "bpmRange": self.bpm_range,
            "totalTracks": self.total_tracks,
            "filteredCount": self.filtered_count,
            "recommendationsAdded": self.recommendations_added,
            "tracks": [format_track(t) for t in self.tracks],
        }


# -----------------------------------------------------------------------------
# Number / track formatting
# -----------------------------------------------------------------------------


def json_number(value: float) -> Union[int, float]:
    """Whole floats become ints so 168.0 serializes as 168."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_number(value: float) -> str:
    return str(json_number(value))


def format_duration(duration_ms: int) -> str:
    """298000 -> '4:58'"""
    minutes, remainder = divmod(int(duration_ms or 0), 60000)
    return f"{minutes}:{remainder // 1000:02d}"


def format_track(track: Track) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": track.id,
        "name": track.name,
        "artists": ", ".join(track.artists),
        "album": track.album,
        "duration_ms": track.duration_ms,
        "duration": format_duration(track.duration_ms),
        "bpm": round_half_up(track.tempo * 10) / 10 if track.has_tempo else None,
        "energy": track.energy,
        "danceability": track.danceability,
        "isRecommended": track.is_recommended,
    }
    if track.uri:
        out["uri"] = track.uri
    return out


# -----------------------------------------------------------------------------
# Matching
# -----------------------------------------------------------------------------


def tempo_window(target_cadence: float, tolerance: float = DEFAULT_TOLERANCE) -> Tuple[float, float]:
    """Inclusive (min_bpm, max_bpm) around the target."""
    return target_cadence - tolerance, target_cadence + tolerance


def filter_by_tempo(tracks: Iterable[Track], min_bpm: float, max_bpm: float) -> List[Track]:
    """Tracks with min_bpm <= tempo <= max_bpm, in input order. Tracks without a tempo never match."""
    return [t for t in tracks if t.has_tempo and min_bpm <= t.tempo <= max_bpm]


def match_tracks(
    target_cadence: float,
    tolerance: float = DEFAULT_TOLERANCE,
    primary_pool: Sequence[Track] = (),
    fallback_pool: FallbackPool = None,
    original_pace: Optional[str] = None,
) -> MatchResult:
    """
    Match tracks to a target cadence.

    fallback_pool may be a sequence or a zero-arg callable returning one; a callable is
    only invoked when the primary pool yields nothing, so recommendations are fetched lazily.
    """
    min_bpm, max_bpm = tempo_window(target_cadence, tolerance)
    primary_pool = list(primary_pool or [])

    matched = filter_by_tempo(primary_pool, min_bpm, max_bpm)
    final_tracks = matched
    recommendations_added = 0

    if not matched:
        fallback = fallback_pool() if callable(fallback_pool) else fallback_pool
        final_tracks = filter_by_tempo(fallback or [], min_bpm, max_bpm)
        recommendations_added = len(final_tracks)

    return MatchResult(
        target_cadence=target_cadence,
        tolerance=tolerance,
        min_bpm=min_bpm,
        max_bpm=max_bpm,
        total_tracks=len(primary_pool),
        filtered_count=len(matched),
        recommendations_added=recommendations_added,
        tracks=final_tracks,
        original_pace=original_pace,
    )
