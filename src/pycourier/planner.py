"""Host-side orchestrator for a courier's stop list."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

import aiohttp

from pycourier.bridge.session import BridgeSession, RenderingSurface, Scheduler
from pycourier.config import CourierConfig
from pycourier.exceptions import BridgeError, CourierTransportError, GeocodingError
from pycourier.geo import route_legs
from pycourier.geocoding import PlaceResolver, ReverseResolver, default_resolvers
from pycourier.handoff import UrlOpener, default_opener, navigation_candidates, open_first
from pycourier.models.alert import Alert
from pycourier.models.commands import AddMarker, ClearMarkers, Command, DrawRoute, MoveTo
from pycourier.models.events import BridgeEvent, ErrorKind, MapError, PointTapped, Ready
from pycourier.models.geo import Coordinate, RouteLeg, SelectedPoint, Stop
from pycourier.models.places import PlaceCandidate
from pycourier.sequencer import order_stops

_logger = logging.getLogger(__name__)

_MIN_QUERY_LENGTH = 2


class RoutePlanner:
    """Owns the stops, the selected point and one map bridge session.

    The planner is the single source of truth for the stop order.  Every
    change is mirrored to the map as commands; the marker labelled ``i``
    is always the stop at 1-based position ``i``.

    Usage::

        async with RoutePlanner(config, origin=here) as planner:
            planner.mount(surface)
            for candidate in await planner.search("Seoul Station"):
                ...
    """

    def __init__(
        self,
        config: CourierConfig,
        *,
        origin: Coordinate | None = None,
        primary_resolver: PlaceResolver | None = None,
        secondary_resolver: PlaceResolver | None = None,
        reverse_resolver: ReverseResolver | None = None,
        http_session: aiohttp.ClientSession | None = None,
        opener: UrlOpener | None = None,
        on_alert: Callable[[Alert], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._origin = origin
        self._primary = primary_resolver
        self._secondary = secondary_resolver
        self._reverse = reverse_resolver
        self._external_session = http_session is not None
        self._http_session = http_session
        self._opener = opener or default_opener
        self._on_alert = on_alert
        self._clock = clock

        self._stops: list[Stop] = []
        self._selected: SelectedPoint | None = None
        self._session: BridgeSession | None = None
        self._map_error: str | None = None
        self._map_error_alerted = False
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RoutePlanner:
        if self._primary is None or self._secondary is None or self._reverse is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            kakao, nominatim = default_resolvers(self._config, self._http_session)
            self._primary = self._primary or kakao
            self._secondary = self._secondary or nominatim
            self._reverse = self._reverse or kakao
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel background lookups and close the owned HTTP session."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    async def wait_for_background(self) -> None:
        """Wait until pending reverse-geocoding lookups have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def stops(self) -> tuple[Stop, ...]:
        return tuple(self._stops)

    @property
    def selected_point(self) -> SelectedPoint | None:
        return self._selected

    @property
    def origin(self) -> Coordinate | None:
        return self._origin

    @property
    def session(self) -> BridgeSession | None:
        return self._session

    @property
    def map_degraded(self) -> bool:
        """True after the map session failed; cleared by a later ready signal."""
        return self._map_error is not None

    @property
    def map_error(self) -> str | None:
        return self._map_error

    def set_origin(self, origin: Coordinate | None) -> None:
        self._origin = origin

    def get_stop(self, stop_id: str) -> Stop | None:
        for stop in self._stops:
            if stop.id == stop_id:
                return stop
        return None

    # ------------------------------------------------------------------
    # Bridge session
    # ------------------------------------------------------------------

    def mount(
        self,
        surface: RenderingSurface,
        *,
        scheduler: Scheduler | None = None,
        center: Coordinate | None = None,
    ) -> BridgeSession:
        """Create a session on *surface*, start it and replay the markers.

        A previously mounted session is reset and its events are ignored
        from then on.
        """
        session: BridgeSession | None = None

        def forward(event: BridgeEvent) -> None:
            if session is None or session is not self._session:
                _logger.debug("Dropping %s from a detached session", event.type)
                return
            self.handle_event(event)

        session = BridgeSession.from_config(
            surface,
            self._config,
            on_event=forward,
            center=center or self._selected_or_origin(),
            scheduler=scheduler,
        )
        self.attach(session)
        return session

    def attach(self, session: BridgeSession) -> None:
        """Bind an externally built *session* (its ``on_event`` must reach :meth:`handle_event`).

        The session it replaces, if any, is reset first.
        """
        previous = self._session
        if previous is not None and previous is not session:
            previous.reset()
        self._session = session
        self._map_error = None
        self._map_error_alerted = False
        session.start()
        self._replay_markers()

    def remount(self) -> None:
        """Reset and restart the current session, replaying the full marker set."""
        session = self._require_session()
        session.reset()
        self._map_error = None
        self._map_error_alerted = False
        session.start()
        self._replay_markers()

    def _require_session(self) -> BridgeSession:
        if self._session is None:
            raise BridgeError("No bridge session attached; call mount() first")
        return self._session

    def _selected_or_origin(self) -> Coordinate | None:
        if self._selected is not None:
            return self._selected.coordinate
        return self._origin

    def _send(self, command: Command) -> None:
        if self._session is None:
            # Nothing mounted: the next mount replays the stop list.
            _logger.debug("No bridge session; %s not sent", command.kind)
            return
        self._session.dispatch(command)

    def _replay_markers(self) -> None:
        self._send(ClearMarkers())
        for index, stop in enumerate(self._stops):
            self._send(AddMarker(lat=stop.lat, lng=stop.lng, label=str(index + 1)))

    def handle_event(self, event: BridgeEvent) -> None:
        """React to an event forwarded by the bridge session."""
        if isinstance(event, PointTapped):
            self._select(SelectedPoint(coordinate=event.coordinate))
        elif isinstance(event, Ready):
            self._map_error = None
        elif isinstance(event, MapError):
            self._handle_map_error(event)

    def _handle_map_error(self, event: MapError) -> None:
        if not event.fatal:
            _logger.debug("Non-fatal map error (%s): %s", event.kind, event.message)
            return
        self._map_error = event.message
        if self._map_error_alerted:
            return
        self._map_error_alerted = True
        title = "Map timed out" if event.kind == ErrorKind.TIMEOUT else "Map failed to load"
        self._alert(title, event.message)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _select(self, point: SelectedPoint) -> None:
        self._selected = point
        if point.address is None:
            self._schedule_reverse(point)

    def _schedule_reverse(self, point: SelectedPoint) -> None:
        if self._reverse is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.debug("No running loop; skipping reverse geocoding")
            return
        task = loop.create_task(self._resolve_address(point))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resolve_address(self, point: SelectedPoint) -> None:
        reverse = self._reverse
        if reverse is None:
            return
        try:
            address = await reverse.reverse(point.coordinate)
        except Exception:
            _logger.debug("Reverse geocoding failed", exc_info=True)
            return
        current = self._selected
        if not address or current is None or current.coordinate != point.coordinate:
            return
        self._selected = current.model_copy(update={"address": address})

    def cancel_selection(self) -> None:
        self._selected = None

    def confirm_selection(self, address: str | None = None) -> Stop | None:
        """Turn the selected point into a stop at the end of the list.

        *address* overrides the resolved address (e.g. text edited by the
        courier).  Without any address the coordinate itself is used.
        """
        selected = self._selected
        if selected is None:
            self._alert("Selection required", "Pick a location on the map first.")
            return None
        text = address.strip() if address and address.strip() else selected.display_text()
        stop = self._append_stop(text, selected.coordinate)
        self._selected = None
        return stop

    def _append_stop(self, address: str, coordinate: Coordinate) -> Stop:
        return self.add_stop(Stop(address=address, coordinate=coordinate))

    def add_stop(self, stop: Stop) -> Stop:
        """Append an already built stop (e.g. restored from storage)."""
        if self.get_stop(stop.id) is not None:
            raise ValueError(f"duplicate stop id: {stop.id}")
        self._stops.append(stop)
        self._send(AddMarker(lat=stop.lat, lng=stop.lng, label=str(len(self._stops))))
        return stop

    # ------------------------------------------------------------------
    # Stop list
    # ------------------------------------------------------------------

    def remove_stop(self, stop_id: str) -> bool:
        """Delete a stop and redraw every marker in the new numbering."""
        remaining = [stop for stop in self._stops if stop.id != stop_id]
        if len(remaining) == len(self._stops):
            return False
        self._stops = remaining
        self._replay_markers()
        return True

    def optimize(self) -> bool:
        """Reorder stops nearest-first from the origin and redraw markers.

        Returns ``False`` (and changes nothing) without an origin or stops.
        """
        if self._origin is None or not self._stops:
            _logger.debug("Optimize skipped (origin=%s, stops=%d)", self._origin, len(self._stops))
            return False
        self._stops = order_stops(self._stops, self._origin)
        self._replay_markers()
        self._alert("Route optimized", "Stops are now ordered nearest first.")
        return True

    def legs(self, now: datetime | None = None) -> list[RouteLeg]:
        """Per-stop distance and ETA in the current order."""
        start = now if now is not None else self._clock()
        return route_legs(self._stops, self._origin, start, minutes_per_km=self._config.minutes_per_km)

    def draw_route(self) -> None:
        """Draw a polyline from the origin (if known) through every stop."""
        points: list[Coordinate] = [self._origin] if self._origin is not None else []
        points.extend(stop.coordinate for stop in self._stops)
        if not points:
            return
        self._send(DrawRoute(points=tuple(points)))

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str) -> list[PlaceCandidate]:
        """Resolve free text with the primary resolver, falling back once.

        Provider failures and empty answers are treated alike.
        """
        trimmed = query.strip()
        if len(trimmed) < _MIN_QUERY_LENGTH:
            return []

        primary_error: Exception | None = None
        results: list[PlaceCandidate] = []
        if self._primary is not None:
            try:
                results = await self._primary.search(trimmed)
            except (CourierTransportError, GeocodingError) as exc:
                _logger.debug("Primary search failed", exc_info=True)
                primary_error = exc
        if results:
            return results

        fallback: list[PlaceCandidate] = []
        if self._secondary is not None:
            try:
                fallback = await self._secondary.search(trimmed)
            except (CourierTransportError, GeocodingError):
                _logger.debug("Secondary search failed", exc_info=True)
        if fallback:
            self._alert("Alternate search used", "Showing results from the alternate search provider.")
            return fallback

        if primary_error is not None:
            self._alert("Search failed", f"Check the network or API settings. ({primary_error})")
        else:
            self._alert("No results", "Try a different keyword.")
        return []

    def add_candidate(self, candidate: PlaceCandidate) -> Stop:
        """Append a search result as a stop and center the map on it."""
        stop = self._append_stop(candidate.address, candidate.coordinate)
        self._selected = None
        self._send(MoveTo(lat=stop.lat, lng=stop.lng))
        return stop

    def focus_candidate(self, candidate: PlaceCandidate) -> None:
        """Preview a search result as the selected point without adding it."""
        self._select(SelectedPoint(coordinate=candidate.coordinate, address=candidate.address))
        self._send(MoveTo(lat=candidate.coordinate.lat, lng=candidate.coordinate.lng))

    # ------------------------------------------------------------------
    # Navigation handoff
    # ------------------------------------------------------------------

    async def start_navigation(self, stop_id: str) -> str | None:
        """Open the external navigation app for a stop; returns the URL used."""
        stop = self.get_stop(stop_id)
        if stop is None:
            _logger.debug("start_navigation: unknown stop %s", stop_id)
            return None
        opened = await open_first(navigation_candidates(stop, self._config.platform), self._opener)
        if opened is None:
            self._alert("Navigation unavailable", f"Could not open a navigation app for {stop.address}.")
        return opened

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def _alert(self, title: str, message: str) -> None:
        alert = Alert(title=title, message=message)
        _logger.info("%s: %s", title, message)
        if self._on_alert is None:
            return
        try:
            self._on_alert(alert)
        except Exception:
            _logger.debug("on_alert callback failed", exc_info=True)


def stops_from_records(records: Sequence[dict[str, Any]]) -> list[Stop]:
    """Build stops from ``{"address", "lat", "lng"[, "id"]}`` mappings."""
    stops: list[Stop] = []
    for record in records:
        coordinate = Coordinate(lat=record["lat"], lng=record["lng"])
        kwargs: dict[str, Any] = {"address": str(record.get("address") or coordinate.label()), "coordinate": coordinate}
        if record.get("id"):
            kwargs["id"] = str(record["id"])
        stops.append(Stop(**kwargs))
    return stops
