"""pycourier - Route planning for couriers on an embedded Kakao map."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycourier")
except PackageNotFoundError:
    __version__ = "0+local"
from pycourier.bridge import BridgeSession, RenderingSurface, SessionPhase, SessionState, build_surface_page
from pycourier.config import CourierConfig
from pycourier.exceptions import (
    BridgeError,
    CourierConfigError,
    CourierError,
    CourierTransportError,
    GeocodingError,
)
from pycourier.geo import distance_km, eta, format_clock, route_legs
from pycourier.handoff import navigation_candidates, open_first
from pycourier.models import (
    AddMarker,
    Alert,
    BridgeEvent,
    ClearMarkers,
    Command,
    Coordinate,
    DrawRoute,
    ErrorKind,
    MapError,
    MoveTo,
    PlaceCandidate,
    PlaceSource,
    PointTapped,
    Ready,
    RouteLeg,
    SelectedPoint,
    Stop,
)
from pycourier.planner import RoutePlanner
from pycourier.sequencer import order_stops

__all__ = [
    "AddMarker",
    "Alert",
    "BridgeError",
    "BridgeEvent",
    "BridgeSession",
    "ClearMarkers",
    "Command",
    "Coordinate",
    "CourierConfig",
    "CourierConfigError",
    "CourierError",
    "CourierTransportError",
    "DrawRoute",
    "ErrorKind",
    "GeocodingError",
    "MapError",
    "MoveTo",
    "PlaceCandidate",
    "PlaceSource",
    "PointTapped",
    "Ready",
    "RenderingSurface",
    "RouteLeg",
    "RoutePlanner",
    "SelectedPoint",
    "SessionPhase",
    "SessionState",
    "Stop",
    "__version__",
    "build_surface_page",
    "distance_km",
    "eta",
    "format_clock",
    "navigation_candidates",
    "open_first",
    "order_stops",
    "route_legs",
]
