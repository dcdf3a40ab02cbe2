"""Coordinate, stop and route leg models."""

from __future__ import annotations

import uuid
from datetime import time

from pydantic import Field

from pycourier.models._base import CourierBaseModel


def _new_stop_id() -> str:
    return uuid.uuid4().hex


class Coordinate(CourierBaseModel):
    """A WGS84 position in degrees.

    Range is validated on construction; downstream math assumes valid input.
    """

    lat: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False)

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)

    def label(self) -> str:
        """``"lat, lng"`` with five decimals, used when no address is known."""
        return f"{self.lat:.5f}, {self.lng:.5f}"


class Stop(CourierBaseModel):
    """A confirmed delivery destination.

    Parameters
    ----------
    id : str
        Opaque unique identifier (uuid4 hex by default).
    address : str
        Display text.
    coordinate : Coordinate
        Where the stop is.
    """

    id: str = Field(default_factory=_new_stop_id)
    address: str
    coordinate: Coordinate

    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @property
    def lng(self) -> float:
        return self.coordinate.lng


class SelectedPoint(CourierBaseModel):
    """A provisional, unconfirmed destination picked on the map."""

    coordinate: Coordinate
    address: str | None = None

    def display_text(self) -> str:
        if self.address and self.address.strip():
            return self.address.strip()
        return self.coordinate.label()


class RouteLeg(CourierBaseModel):
    """Incremental distance and projected arrival for one stop."""

    position: int = Field(ge=1)
    stop: Stop
    distance_km: float
    cumulative_km: float
    eta: time
