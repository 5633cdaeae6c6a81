"""
cadence: pace → step cadence estimation + tempo-window track matching.
"""

from cadence.pace_to_cadence import (
    COMMON_PACES,
    DEFAULT_MIN_STRIDE_FEET,
    DEFAULT_STRIDE_BANDS,
    FALLBACK_CADENCE,
    estimate_cadence,
    estimate_stride_length,
    format_pace,
    pace_table,
    pace_to_cadence,
    pace_to_speed_mph,
)
from cadence.tempo_matcher import (
    DEFAULT_TOLERANCE,
    MatchResult,
    Track,
    filter_by_tempo,
    format_track,
    match_tracks,
    tempo_window,
)
from cadence.filter_request import (
    BpmTarget,
    FilterRequest,
    InvalidFilterRequestError,
    PaceTarget,
    parse_filter_request,
)

__all__ = [
    "COMMON_PACES",
    "DEFAULT_MIN_STRIDE_FEET",
    "DEFAULT_STRIDE_BANDS",
    "FALLBACK_CADENCE",
    "estimate_cadence",
    "estimate_stride_length",
    "format_pace",
    "pace_table",
    "pace_to_cadence",
    "pace_to_speed_mph",
    "DEFAULT_TOLERANCE",
    "MatchResult",
    "Track",
    "filter_by_tempo",
    "format_track",
    "match_tracks",
    "tempo_window",
    "BpmTarget",
    "FilterRequest",
    "InvalidFilterRequestError",
    "PaceTarget",
    "parse_filter_request",
]
