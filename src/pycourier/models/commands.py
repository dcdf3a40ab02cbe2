"""Outbound bridge commands (host → rendering surface).

The ``kind`` of each command is the name of the global entry point the
surface page defines for it.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from pycourier.models._base import CourierBaseModel
from pycourier.models.geo import Coordinate


class MoveTo(CourierBaseModel):
    kind: Literal["moveTo"] = "moveTo"
    lat: float = Field(allow_inf_nan=False)
    lng: float = Field(allow_inf_nan=False)


class AddMarker(CourierBaseModel):
    """A numbered marker; ``label`` is the stop's 1-based position."""

    kind: Literal["addNumberedMarker"] = "addNumberedMarker"
    lat: float = Field(allow_inf_nan=False)
    lng: float = Field(allow_inf_nan=False)
    label: str


class ClearMarkers(CourierBaseModel):
    kind: Literal["clearAllMarkers"] = "clearAllMarkers"


class DrawRoute(CourierBaseModel):
    kind: Literal["drawPolyline"] = "drawPolyline"
    points: tuple[Coordinate, ...] = ()


Command = Annotated[MoveTo | AddMarker | ClearMarkers | DrawRoute, Field(discriminator="kind")]
"""Discriminated union of every outbound command."""
