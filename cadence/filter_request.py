"""
Filter request parsing.

A /filter body comes in one of two shapes:
  - pace mode:   {"paceMinutes": 10, "paceSeconds": 30, "strideLengthFeet": 3.2, "tolerance": 10}
  - direct mode: {"targetCadence": 165, "tolerance": 10}

parse_filter_request() turns either into a FilterRequest whose target is a PaceTarget or a
BpmTarget, so the cadence is resolved exactly once.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from cadence.pace_to_cadence import format_pace, pace_to_cadence
from cadence.tempo_matcher import DEFAULT_TOLERANCE

log = logging.getLogger("paceify_cadence")

DEFAULT_RECOMMENDATION_LIMIT = 20
MAX_RECOMMENDATION_LIMIT = 100

REQUEST_EXAMPLES = {
    "paceExample": {
        "paceMinutes": 10,
        "paceSeconds": 30,
        "strideLengthFeet": 3.5,  # optional
    },
    "bpmExample": {"targetCadence": 165},
}
REQUEST_NOTE = "Pace like 10:30 per mile gets converted to ~168 BPM based on estimated stride length"


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------


class InvalidFilterRequestError(ValueError):
    """Body has neither a usable pace nor a usable cadence, or a field is out of range."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.examples = REQUEST_EXAMPLES
        self.note = REQUEST_NOTE

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "examples": self.examples,
            "note": self.note,
        }


# -----------------------------------------------------------------------------
# Request model
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PaceTarget:
    minutes: int
    seconds: int = 0
    stride_length_feet: Optional[float] = None

    mode = "pace"


@dataclass(frozen=True)
class BpmTarget:
    cadence: float

    mode = "bpm"


@dataclass(frozen=True)
class FilterRequest:
    target: Union[PaceTarget, BpmTarget]
    tolerance: float = DEFAULT_TOLERANCE
    limit: int = DEFAULT_RECOMMENDATION_LIMIT

    @property
    def original_pace(self) -> Optional[str]:
        if isinstance(self.target, PaceTarget):
            return format_pace(self.target.minutes, self.target.seconds)
        return None

    def resolve_cadence(self) -> float:
        """Target cadence: estimated from pace, or the direct value as given."""
        target = self.target
        if isinstance(target, BpmTarget):
            log.info("Using direct BPM input: %s", target.cadence)
            return target.cadence

        result = pace_to_cadence(target.minutes, target.seconds, target.stride_length_feet)
        log.info(
            "Pace calculation: %s → %.1f mph → %d SPM (stride: %sft)",
            result["pace"],
            result["speed_mph"],
            result["cadence"],
            result["stride_length_feet"],
        )
        return result["cadence"]


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def _number(data: Mapping[str, Any], key: str) -> Optional[float]:
    """Read a numeric field; numeric strings are accepted, null/'' means absent."""
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidFilterRequestError(f"{key} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidFilterRequestError(f"{key} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidFilterRequestError(f"{key} must be finite, got {value!r}")
    return number


def _whole(value: float, key: str) -> int:
    if not value.is_integer():
        raise InvalidFilterRequestError(f"{key} must be a whole number, got {value}")
    return int(value)


def parse_filter_request(
    data: Optional[Mapping[str, Any]],
    default_tolerance: float = DEFAULT_TOLERANCE,
    default_limit: int = DEFAULT_RECOMMENDATION_LIMIT,
) -> FilterRequest:
    """
    Validate a /filter body. Pace wins when both paceMinutes and targetCadence are present.

    Raises InvalidFilterRequestError before anything touches a catalog.
    """
    data = data or {}
    if not isinstance(data, Mapping):
        raise InvalidFilterRequestError("Request body must be a JSON object")

    tolerance = _number(data, "tolerance")
    if tolerance is None:
        tolerance = default_tolerance
    if tolerance < 0:
        raise InvalidFilterRequestError(f"tolerance must be >= 0, got {tolerance}")

    limit = _number(data, "limit")
    limit = default_limit if limit is None else _whole(limit, "limit")
    if limit < 1:
        raise InvalidFilterRequestError(f"limit must be >= 1, got {limit}")
    limit = min(limit, MAX_RECOMMENDATION_LIMIT)

    pace_minutes = _number(data, "paceMinutes")
    if pace_minutes is not None:
        minutes = _whole(pace_minutes, "paceMinutes")
        if minutes < 1:
            raise InvalidFilterRequestError(f"paceMinutes must be >= 1, got {minutes}")

        pace_seconds = _number(data, "paceSeconds")
        seconds = 0 if pace_seconds is None else _whole(pace_seconds, "paceSeconds")
        if not 0 <= seconds <= 59:
            raise InvalidFilterRequestError(f"paceSeconds must be between 0 and 59, got {seconds}")

        stride = _number(data, "strideLengthFeet")
        if stride is not None and stride <= 0:
            raise InvalidFilterRequestError(f"strideLengthFeet must be positive, got {stride}")

        return FilterRequest(
            target=PaceTarget(minutes=minutes, seconds=seconds, stride_length_feet=stride),
            tolerance=tolerance,
            limit=limit,
        )

    cadence = _number(data, "targetCadence")
    if cadence is not None:
        if cadence < 1:
            raise InvalidFilterRequestError(f"targetCadence must be >= 1, got {cadence}")
        return FilterRequest(target=BpmTarget(cadence=cadence), tolerance=tolerance, limit=limit)

    raise InvalidFilterRequestError("Either pace (paceMinutes, paceSeconds) or targetCadence is required")
