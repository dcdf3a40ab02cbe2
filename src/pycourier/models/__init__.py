"""Data models for pycourier."""

from pycourier.models._base import CourierBaseModel
from pycourier.models.alert import Alert
from pycourier.models.commands import AddMarker, ClearMarkers, Command, DrawRoute, MoveTo
from pycourier.models.events import BridgeEvent, ErrorKind, MapError, PointTapped, Ready
from pycourier.models.geo import Coordinate, RouteLeg, SelectedPoint, Stop
from pycourier.models.places import PlaceCandidate, PlaceSource

__all__ = [
    "AddMarker",
    "Alert",
    "BridgeEvent",
    "ClearMarkers",
    "Command",
    "Coordinate",
    "CourierBaseModel",
    "DrawRoute",
    "ErrorKind",
    "MapError",
    "MoveTo",
    "PlaceCandidate",
    "PlaceSource",
    "PointTapped",
    "Ready",
    "RouteLeg",
    "SelectedPoint",
    "Stop",
]
