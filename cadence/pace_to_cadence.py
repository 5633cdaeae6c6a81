"""
Pace → Cadence (stride-length model).

Estimates a runner's step cadence (steps per minute) from pace in min:sec per mile,
using a speed-dependent stride length. The result is the tempo target for matching music.

No input validation happens here: callers must ensure pace_minutes >= 1 before calling,
or use FALLBACK_CADENCE when no usable pace is available.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

FEET_PER_MILE = 5280

# (min_speed_mph, stride_length_feet), evaluated top-down, first match wins
DEFAULT_STRIDE_BANDS: tuple[tuple[float, float], ...] = (
    (8.0, 3.5),   # fast runner, longer stride
    (6.5, 3.2),   # moderate pace
    (5.0, 3.0),   # casual jogging (10:30 pace falls here)
)
DEFAULT_MIN_STRIDE_FEET = 2.8  # walking / very slow

# Cadence for the reference 10:30 pace; used when no valid pace is supplied
FALLBACK_CADENCE = 168

COMMON_PACES: tuple[tuple[int, int], ...] = (
    (6, 0),
    (7, 0),
    (8, 0),
    (9, 0),
    (10, 0),
    (10, 30),
    (11, 0),
    (12, 0),
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 always going up (round() would go to even)."""
    return int(math.floor(value + 0.5))


def format_pace(minutes: int, seconds: int = 0) -> str:
    """10, 5 -> '10:05'"""
    return f"{int(minutes)}:{int(seconds):02d}"


def pace_to_speed_mph(pace_minutes: float, pace_seconds: float = 0) -> float:
    """
    Convert a per-mile pace to miles per hour.

    total_seconds = minutes * 60 + seconds
    miles_per_minute = 1 / (total_seconds / 60)
    mph = miles_per_minute * 60
    """
    total_seconds_per_mile = pace_minutes * 60 + pace_seconds
    miles_per_minute = 1 / (total_seconds_per_mile / 60)
    return miles_per_minute * 60


def estimate_stride_length(
    speed_mph: float,
    stride_bands: Sequence[tuple[float, float]] = DEFAULT_STRIDE_BANDS,
    min_stride_feet: float = DEFAULT_MIN_STRIDE_FEET,
) -> float:
    """Stride length (feet) for a speed, from the first band whose threshold the speed reaches."""
    for min_speed, stride_feet in stride_bands:
        if speed_mph >= min_speed:
            return stride_feet
    return min_stride_feet


# -----------------------------------------------------------------------------
# Main API
# -----------------------------------------------------------------------------


def pace_to_cadence(
    pace_minutes: int,
    pace_seconds: int = 0,
    stride_length_feet: Optional[float] = None,
    *,
    stride_bands: Sequence[tuple[float, float]] = DEFAULT_STRIDE_BANDS,
    min_stride_feet: float = DEFAULT_MIN_STRIDE_FEET,
) -> dict[str, Any]:
    """
    Estimate cadence from pace and return the intermediate values as well.

    Returns a dict with pace, speed_mph, stride_length_feet, stride_estimated,
    cadence_raw and cadence (rounded to the nearest whole step).
    """
    pace_seconds = pace_seconds or 0
    total_seconds_per_mile = pace_minutes * 60 + pace_seconds
    miles_per_minute = 1 / (total_seconds_per_mile / 60)
    speed_mph = miles_per_minute * 60

    if stride_length_feet:
        stride = float(stride_length_feet)
        estimated = False
    else:
        stride = estimate_stride_length(speed_mph, stride_bands, min_stride_feet)
        estimated = True

    cadence_raw = (miles_per_minute * FEET_PER_MILE) / stride

    return {
        "pace": format_pace(pace_minutes, pace_seconds),
        "speed_mph": speed_mph,
        "stride_length_feet": stride,
        "stride_estimated": estimated,
        "cadence_raw": cadence_raw,
        "cadence": round_half_up(cadence_raw),
    }


def estimate_cadence(
    pace_minutes: int,
    pace_seconds: int = 0,
    stride_length_feet: Optional[float] = None,
    *,
    stride_bands: Sequence[tuple[float, float]] = DEFAULT_STRIDE_BANDS,
    min_stride_feet: float = DEFAULT_MIN_STRIDE_FEET,
) -> int:
    """Steps per minute for a per-mile pace. 10:30 with no stride override -> 168."""
    result = pace_to_cadence(
        pace_minutes,
        pace_seconds,
        stride_length_feet,
        stride_bands=stride_bands,
        min_stride_feet=min_stride_feet,
    )
    return result["cadence"]


def pace_table(paces: Sequence[tuple[int, int]] = COMMON_PACES) -> list[dict[str, Any]]:
    """Cadence estimates for a list of (minutes, seconds) paces."""
    rows = []
    for minutes, seconds in paces:
        rows.append({
            "pace": f"{format_pace(minutes, seconds)} per mile",
            "estimatedBPM": estimate_cadence(minutes, seconds),
            "mph": f"{pace_to_speed_mph(minutes, seconds):.1f}",
        })
    return rows
