from __future__ import annotations

import pytest

from household_energy.lib.slug import slugify, unique_slug


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Living Room AC", "living_room_ac"),
        ("  Fridge #2 ", "fridge_2"),
        ("!!!", "device"),
    ],
)
def test_slugify(name: str, expected: str) -> None:
    assert slugify(name) == expected


def test_unique_slug_appends_counter() -> None:
    assert unique_slug("Fan", []) == "fan"
    assert unique_slug("Fan", ["fan"]) == "fan_2"
    assert unique_slug("Fan", ["fan", "fan_2"]) == "fan_3"
