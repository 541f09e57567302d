from __future__ import annotations

import re
from collections.abc import Iterable

_slug_pattern = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    slug = _slug_pattern.sub("_", value.strip().lower())
    slug = slug.strip("_")
    return slug or "device"


def unique_slug(name: str, existing: Iterable[str]) -> str:
    used = set(existing)
    base = slugify(name)
    if base not in used:
        return base
    counter = 2
    slug = f"{base}_{counter}"
    while slug in used:
        counter += 1
        slug = f"{base}_{counter}"
    return slug
