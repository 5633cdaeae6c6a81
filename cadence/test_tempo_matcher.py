"""
Tests for tempo-window matching and recommendation fallback.

Run: pytest cadence/test_tempo_matcher.py -v
"""

import pytest

from cadence.tempo_matcher import (
    MatchResult,
    Track,
    filter_by_tempo,
    format_duration,
    format_track,
    match_tracks,
    tempo_window,
)


def make_track(track_id: str, tempo, recommended: bool = False) -> Track:
    return Track(
        id=track_id,
        name=f"Song {track_id}",
        artists=("Artist A", "Artist B"),
        album="Album",
        duration_ms=214000,
        tempo=tempo,
        energy=0.8,
        danceability=0.7,
        uri=f"spotify:track:{track_id}",
        is_recommended=recommended,
    )


@pytest.fixture
def library():
    return [make_track("track1", 125.9), make_track("track2", 109.0)]


# -----------------------------------------------------------------------------
# Window
# -----------------------------------------------------------------------------


def test_tempo_window_bounds():
    assert tempo_window(120, 5) == (115, 125)
    assert tempo_window(168, 0) == (168, 168)


@pytest.mark.parametrize("target,tolerance", [(120, 10), (168, 5), (90.5, 2.5), (150, 0)])
def test_window_bounds_inclusive(target, tolerance):
    tracks = [
        make_track("low_edge", target - tolerance),
        make_track("high_edge", target + tolerance),
        make_track("below", target - tolerance - 1),
        make_track("above", target + tolerance + 1),
    ]
    result = match_tracks(target, tolerance, tracks)
    assert [t.id for t in result.tracks] == ["low_edge", "high_edge"]


def test_zero_tolerance_exact_match_only():
    tracks = [make_track("exact", 119.0), make_track("close", 119.01)]
    result = match_tracks(119.0, 0, tracks)
    assert [t.id for t in result.tracks] == ["exact"]
    assert result.filtered_count == 1


# -----------------------------------------------------------------------------
# Primary matching
# -----------------------------------------------------------------------------


def test_primary_match_suppresses_fallback(library):
    """120 ± 10 → [110, 130] → only the 125.9 track matches."""
    recs = [make_track("rec1", 120.0, recommended=True)]
    result = match_tracks(120, 10, library, recs)
    assert [t.id for t in result.tracks] == ["track1"]
    assert result.filtered_count == 1
    assert result.recommendations_added == 0
    assert result.total_tracks == 2


def test_lazy_fallback_not_called_when_primary_matches(library):
    def fetch_recs():
        raise AssertionError("fallback should not be fetched")

    result = match_tracks(120, 10, library, fetch_recs)
    assert result.filtered_count == 1


def test_order_preserved():
    tracks = [make_track(str(i), tempo) for i, tempo in enumerate([130, 121, 128, 119, 125])]
    result = match_tracks(125, 5, tracks)
    assert [t.id for t in result.tracks] == ["0", "1", "2", "4"]


def test_null_tempo_never_matches():
    tracks = [make_track("none", None), make_track("nan", float("nan")), make_track("ok", 160.0)]
    result = match_tracks(160, 1000, tracks)
    assert [t.id for t in result.tracks] == ["ok"]
    # total counts the pool before tempo exclusion
    assert result.total_tracks == 3


def test_no_result_cap():
    tracks = [make_track(str(i), 150.0) for i in range(500)]
    assert len(match_tracks(150, 0, tracks).tracks) == 500


def test_match_is_deterministic(library):
    assert match_tracks(120, 10, library) == match_tracks(120, 10, library)


# -----------------------------------------------------------------------------
# Fallback
# -----------------------------------------------------------------------------


def test_fallback_used_when_primary_empty(library):
    """120 ± 5 → [115, 125]; 125.9 and 109 both miss so recommendations are consulted."""
    recs = [
        make_track("rec1", 120.0, recommended=True),
        make_track("rec2", 113.0, recommended=True),
        make_track("rec3", None, recommended=True),
        make_track("rec4", 124.0, recommended=True),
    ]
    result = match_tracks(120, 5, library, recs)
    assert result.filtered_count == 0
    assert result.recommendations_added == 2
    assert [t.id for t in result.tracks] == ["rec1", "rec4"]


def test_lazy_fallback_called_once(library):
    calls = []

    def fetch_recs():
        calls.append(1)
        return [make_track("rec1", 120.0, recommended=True)]

    result = match_tracks(120, 5, library, fetch_recs)
    assert calls == [1]
    assert result.recommendations_added == 1


def test_empty_pools_is_empty_result():
    result = match_tracks(168, 10, [], [])
    assert result.tracks == []
    assert result.filtered_count == 0
    assert result.recommendations_added == 0
    assert result.total_tracks == 0


def test_missing_fallback_pool(library):
    result = match_tracks(200, 5, library, None)
    assert result.tracks == []
    assert result.recommendations_added == 0


def test_filter_by_tempo_skips_missing():
    tracks = [make_track("a", None), make_track("b", 100.0)]
    assert [t.id for t in filter_by_tempo(tracks, 90, 110)] == ["b"]


# -----------------------------------------------------------------------------
# Result formatting
# -----------------------------------------------------------------------------


def test_result_to_dict(library):
    result = match_tracks(120.0, 10.0, library, original_pace=None)
    out = result.to_dict()
    assert out["targetCadence"] == 120
    assert out["tolerance"] == 10
    assert out["bpmRange"] == "110-130"
    assert out["originalPace"] is None
    assert out["totalTracks"] == 2
    assert out["filteredCount"] == 1
    assert out["recommendationsAdded"] == 0
    assert out["tracks"][0]["id"] == "track1"


def test_bpm_range_keeps_fractions():
    result = MatchResult(
        target_cadence=168, tolerance=2.5, min_bpm=165.5, max_bpm=170.5,
        total_tracks=0, filtered_count=0, recommendations_added=0,
    )
    assert result.bpm_range == "165.5-170.5"


def test_format_track():
    track = make_track("abc", 125.94, recommended=True)
    out = format_track(track)
    assert out["artists"] == "Artist A, Artist B"
    assert out["bpm"] == 125.9
    assert out["uri"] == "spotify:track:abc"
    assert out["isRecommended"] is True
    assert out["duration"] == "3:34"


def test_format_track_bpm_rounds_half_up():
    """125.25 → 125.3, not the half-to-even 125.2"""
    assert format_track(Track(id="x", name="x", tempo=125.25))["bpm"] == 125.3
    assert format_track(Track(id="y", name="y", tempo=119.0))["bpm"] == 119.0


def test_format_track_without_uri():
    track = Track(id="x", name="X", tempo=100.0)
    out = format_track(track)
    assert "uri" not in out
    assert out["energy"] is None


def test_format_duration():
    assert format_duration(298000) == "4:58"
    assert format_duration(0) == "0:00"
