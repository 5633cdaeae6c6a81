"""
Tests for /filter body parsing.

Run: pytest cadence/test_filter_request.py -v
"""

import pytest

from cadence.filter_request import (
    BpmTarget,
    InvalidFilterRequestError,
    PaceTarget,
    parse_filter_request,
)


# -----------------------------------------------------------------------------
# Pace mode
# -----------------------------------------------------------------------------


def test_pace_mode():
    req = parse_filter_request({"paceMinutes": 10, "paceSeconds": 30})
    assert req.target == PaceTarget(minutes=10, seconds=30, stride_length_feet=None)
    assert req.tolerance == 10
    assert req.original_pace == "10:30"
    assert req.resolve_cadence() == 168


def test_pace_mode_seconds_default_and_string_numbers():
    req = parse_filter_request({"paceMinutes": "9", "tolerance": "4"})
    assert req.target == PaceTarget(minutes=9, seconds=0)
    assert req.tolerance == 4.0
    assert req.original_pace == "9:00"


def test_pace_mode_with_stride():
    req = parse_filter_request({"paceMinutes": 8, "strideLengthFeet": 4.0})
    assert req.resolve_cadence() == 165


def test_pace_wins_over_cadence():
    req = parse_filter_request({"paceMinutes": 10, "paceSeconds": 30, "targetCadence": 120})
    assert isinstance(req.target, PaceTarget)


# -----------------------------------------------------------------------------
# Direct mode
# -----------------------------------------------------------------------------


def test_direct_mode():
    req = parse_filter_request({"targetCadence": 120, "tolerance": 5})
    assert req.target == BpmTarget(cadence=120.0)
    assert req.original_pace is None
    assert req.resolve_cadence() == 120.0
    assert req.tolerance == 5.0


def test_zero_tolerance_allowed():
    assert parse_filter_request({"targetCadence": 119, "tolerance": 0}).tolerance == 0


def test_default_tolerance_override():
    req = parse_filter_request({"targetCadence": 160}, default_tolerance=7)
    assert req.tolerance == 7


def test_limit_is_capped():
    assert parse_filter_request({"targetCadence": 160}).limit == 20
    assert parse_filter_request({"targetCadence": 160, "limit": 500}).limit == 100


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "body",
    [
        None,
        {},
        {"tolerance": 10},
        {"paceMinutes": 0, "paceSeconds": 30},
        {"paceMinutes": -1},
        {"paceMinutes": 10, "paceSeconds": 60},
        {"paceMinutes": 10, "paceSeconds": -1},
        {"paceMinutes": 10.5},
        {"paceMinutes": 10, "strideLengthFeet": -2},
        {"targetCadence": 0},
        {"targetCadence": "fast"},
        {"targetCadence": True},
        {"targetCadence": float("inf")},
        {"targetCadence": 160, "tolerance": -1},
        {"targetCadence": 160, "limit": 0},
    ],
)
def test_invalid_bodies(body):
    with pytest.raises(InvalidFilterRequestError):
        parse_filter_request(body)


def test_error_payload_has_examples():
    with pytest.raises(InvalidFilterRequestError) as exc_info:
        parse_filter_request({})
    payload = exc_info.value.to_dict()
    assert payload["success"] is False
    assert "targetCadence" in payload["error"]
    assert payload["examples"]["paceExample"]["paceMinutes"] == 10
    assert payload["examples"]["bpmExample"] == {"targetCadence": 165}
    assert isinstance(exc_info.value, ValueError)
