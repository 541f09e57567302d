from __future__ import annotations

import json

import pytest

from household_energy.planner.proposal import (
    coerce_hours,
    extract_json_object,
    parse_emission_ratings,
    parse_proposal,
)

DEVICES = ["ac", "fan"]


def test_nested_plan_shape() -> None:
    payload = {
        "plan": {
            "day1": {"devices": {"ac": {"hours": 3, "cost": 90}, "fan": {"hours": 6}}, "totalCost": 95},
            "day2": {"devices": {"ac": {"hours": "2.5"}}},
        },
        "deviceTips": {"ac": "Raise the set point"},
    }
    proposals = parse_proposal(payload, DEVICES, 3)

    assert proposals[0] == {"ac": 3.0, "fan": 6.0}
    assert proposals[1] == {"ac": 2.5, "fan": 0.0}
    assert proposals[2] is None


def test_flat_hours_shape() -> None:
    proposals = parse_proposal({"hours": {"day_2": {"ac": 4, "fan": 1}}}, DEVICES, 2)
    assert proposals == [None, {"ac": 4.0, "fan": 1.0}]


def test_free_text_with_fenced_json() -> None:
    body = json.dumps({"plan": {"day1": {"devices": {" ac ": {"hours": 2}}}}})
    text = f"Here is your plan:\n```json\n{body}\n```\nEnjoy!"
    assert parse_proposal(text, DEVICES, 1) == [{"ac": 2.0, "fan": 0.0}]


def test_untrusted_values_are_sanitised() -> None:
    payload = {
        "plan": {
            "day1": {
                "devices": {
                    "ac": {"hours": "lots"},
                    "fan": {"hours": 30},
                    "ghost": {"hours": 5},
                }
            },
            "day2": {"devices": {"ac": {"hours": -2}, "fan": {"hours": None}}},
            "day99": {"devices": {"ac": {"hours": 1}}},
            "summary": "ignored",
        }
    }
    proposals = parse_proposal(payload, DEVICES, 2)
    assert proposals == [{"ac": 0.0, "fan": 24.0}, {"ac": 0.0, "fan": 0.0}]


@pytest.mark.parametrize("payload", [None, "no json here", "{not valid", {"other": 1}])
def test_unusable_replies_fall_back(payload: object) -> None:
    assert parse_proposal(payload, DEVICES, 2) == [None, None]  # type: ignore[arg-type]


def test_extract_json_object_from_prose() -> None:
    assert extract_json_object('Sure! {"a": 1} Hope that helps.') == {"a": 1}
    assert extract_json_object("[1, 2]") is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [(3, 3.0), ("4.5", 4.5), (True, 0.0), (float("nan"), 0.0), ({"hours": 2}, 2.0), (25, 24.0)],
)
def test_coerce_hours(value: object, expected: float) -> None:
    assert coerce_hours(value) == expected


def test_parse_emission_ratings() -> None:
    payload = {
        "emissionRatings": {
            "ac": 5,
            " fan ": "2",
            "ghost": 3,
        }
    }
    assert parse_emission_ratings(payload, DEVICES) == {"ac": 5, "fan": 2}
    assert parse_emission_ratings({"emissionRatings": {"ac": 9, "fan": "x"}}, DEVICES) == {}
    assert parse_emission_ratings(None, DEVICES) == {}
