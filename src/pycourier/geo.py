"""Great-circle distance and arrival-time projection.

Display-side math.  Route *ordering* uses planar distance instead (see
:mod:`pycourier.sequencer`); the two are not interchangeable.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, time, timedelta

from pycourier._constants import DEFAULT_MINUTES_PER_KM, EARTH_RADIUS_KM
from pycourier.models.geo import Coordinate, RouteLeg, Stop


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between *a* and *b* in km, rounded to 0.1 km."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Clamp: floating error can push h marginally above 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_KM * c, 1)


def eta(start: datetime, cumulative_km: float, *, minutes_per_km: float = DEFAULT_MINUTES_PER_KM) -> time:
    """Project the wall-clock arrival after *cumulative_km* from *start*.

    Minutes are rounded half up; the result wraps at midnight.
    """
    minutes = int(_round_half_up(cumulative_km * minutes_per_km))
    return (start + timedelta(minutes=minutes)).time().replace(second=0, microsecond=0)


def format_clock(value: time) -> str:
    """Render *value* as ``H:MM`` (hour unpadded)."""
    return f"{value.hour}:{value.minute:02d}"


def route_legs(
    stops: Sequence[Stop],
    origin: Coordinate | None,
    start: datetime,
    *,
    minutes_per_km: float = DEFAULT_MINUTES_PER_KM,
) -> list[RouteLeg]:
    """Per-stop distance, running total and ETA in the given order.

    The first leg is measured from *origin*.  Without an origin the first
    stop is its own predecessor, so its leg is 0 km.  ``cumulative_km`` is
    rounded for display; the ETA is projected from the unrounded total.
    """
    legs: list[RouteLeg] = []
    total = 0.0
    previous: Coordinate | None = origin
    for index, stop in enumerate(stops):
        source = previous if previous is not None else stop.coordinate
        leg_km = distance_km(source, stop.coordinate)
        total += leg_km
        legs.append(
            RouteLeg(
                position=index + 1,
                stop=stop,
                distance_km=leg_km,
                cumulative_km=round(total, 1),
                eta=eta(start, total, minutes_per_km=minutes_per_km),
            )
        )
        previous = stop.coordinate
    return legs
