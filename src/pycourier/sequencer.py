"""Greedy nearest-neighbour stop ordering.

Starting at the origin, repeatedly visit the closest remaining stop.  The
metric is planar Euclidean distance on raw degrees, not haversine.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from pycourier.models.geo import Coordinate, Stop


def planar_distance(a: Coordinate, b: Coordinate) -> float:
    return math.sqrt((a.lat - b.lat) ** 2 + (a.lng - b.lng) ** 2)


def order_stops(stops: Sequence[Stop], origin: Coordinate) -> list[Stop]:
    """Return *stops* reordered nearest-first from *origin*.

    The result is a permutation of the input: nothing is added, dropped or
    modified.  Ties go to the candidate that appears first in *stops*.
    """
    remaining = list(stops)
    if len(remaining) < 2:
        return remaining

    ordered: list[Stop] = []
    cursor = origin
    while remaining:
        closest_index = 0
        min_distance = math.inf
        for index, candidate in enumerate(remaining):
            dist = planar_distance(candidate.coordinate, cursor)
            if dist < min_distance:
                min_distance = dist
                closest_index = index
        chosen = remaining.pop(closest_index)
        ordered.append(chosen)
        cursor = chosen.coordinate
    return ordered
