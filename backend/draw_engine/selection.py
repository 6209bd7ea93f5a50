"""Random choice of a place among the candidates of a meal slot."""

from __future__ import annotations

import random
from typing import Iterable, Mapping, Optional

from common.models.coordinates import CLOSE_PLACE_RADIUS_METERS, Coordinates


def close_candidates(
    meal_keys: Iterable[str],
    located_places: Mapping[str, Coordinates],
    origin: Coordinates,
    radius_meters: float = CLOSE_PLACE_RADIUS_METERS,
) -> list:
    """Keys of the meal slot whose stored coordinates lie within the radius."""
    keys = set(meal_keys)
    return [
        key
        for key, coordinates in located_places.items()
        if key in keys and coordinates.distance(origin) <= radius_meters
    ]


def pick_candidate(candidates: Iterable[str], rng: random.Random) -> Optional[str]:
    """Uniform pick; candidates are sorted so a seeded source is reproducible."""
    ordered = sorted(set(candidates))
    if not ordered:
        return None
    return rng.choice(ordered)
