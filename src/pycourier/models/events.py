"""Inbound bridge events (rendering surface → host).

Wire shapes::

    {"type": "mapReady"}
    {"type": "mapError", "message": "...", "retryable": false}
    {"type": "mapClick", "lat": 37.5, "lng": 127.0}

``retryable`` is optional and only set by the page's SDK ``<script onerror>``
handler.  ``kind`` and ``fatal`` never travel on the wire: the bridge
session fills them in before forwarding an error to the host.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal

from pydantic import Field

from pycourier.models._base import CourierBaseModel
from pycourier.models.geo import Coordinate


class ErrorKind(enum.StrEnum):
    """Classification of a map failure."""

    TRANSPORT = "transport"
    INIT = "init"
    TIMEOUT = "timeout"
    RUNTIME = "runtime"


class Ready(CourierBaseModel):
    type: Literal["mapReady"] = "mapReady"


class MapError(CourierBaseModel):
    type: Literal["mapError"] = "mapError"
    message: str = "Unknown map error"
    retryable: bool = False
    kind: ErrorKind | None = None
    fatal: bool = False


class PointTapped(CourierBaseModel):
    type: Literal["mapClick"] = "mapClick"
    lat: float = Field(strict=True, ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float = Field(strict=True, ge=-180.0, le=180.0, allow_inf_nan=False)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


BridgeEvent = Annotated[Ready | MapError | PointTapped, Field(discriminator="type")]
"""Discriminated union of every inbound event."""
