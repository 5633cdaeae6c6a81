"""
Tests for the CSV-backed demo catalog.

Run: pytest test_demo_catalog.py -v
"""

from pathlib import Path

import pytest

from demo_catalog import DemoCatalog, load_tracks_csv

DATA_DIR = Path(__file__).resolve().parent / "data"

HEADER = "id,name,artists,album,duration_ms,tempo,energy,danceability,uri\n"


@pytest.fixture
def catalog():
    return DemoCatalog(DATA_DIR)


def test_bundled_library(catalog):
    pool = catalog.fetch_primary_pool()
    assert catalog.library_size == 5
    assert [t.id for t in pool] == ["track1", "track2", "track3", "track4", "track5"]
    assert pool[0].tempo == 125.9
    assert pool[3].artists == ("Mark Ronson", "Bruno Mars")
    assert pool[0].uri is None
    assert not any(t.is_recommended for t in pool)


def test_fallback_constrained_to_window_closest_first(catalog):
    pool = catalog.fetch_fallback_pool([], min_bpm=100, max_bpm=125, target_bpm=115)
    # 113 (diff 2), 120 (diff 5), 103 (diff 12); 164 is outside the window
    assert [t.id for t in pool] == ["rec2", "rec1", "rec4"]
    assert all(t.is_recommended for t in pool)


def test_fallback_respects_limit(catalog):
    pool = catalog.fetch_fallback_pool(["track1"], min_bpm=0, max_bpm=300, target_bpm=120, limit=2)
    assert len(pool) == 2


def test_missing_tempo_loaded_as_none(tmp_path):
    (tmp_path / "demo_library.csv").write_text(HEADER + "x1,No Tempo,Someone,Album,1000,,0.5,0.5,spotify:track:x1\n")
    (tmp_path / "demo_recommendations.csv").write_text(HEADER)
    catalog = DemoCatalog(tmp_path)
    (track,) = catalog.fetch_primary_pool()
    assert track.tempo is None
    assert track.uri == "spotify:track:x1"
    assert catalog.fetch_fallback_pool([], 0, 300, 150) == []


def test_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("id,name\nx,y\n")
    with pytest.raises(ValueError):
        load_tracks_csv(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_tracks_csv(tmp_path / "nope.csv")
