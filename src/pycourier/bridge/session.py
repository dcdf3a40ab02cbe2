"""Bridge session: lifecycle manager for one mounted rendering surface.

Owns the only writable :class:`~pycourier.bridge.state.SessionState`.
Transitions::

    uninitialized --start()--------------------------> loading(0)
    loading(i) --load failure, i+1 < n---------------> loading(i+1)
    loading(i) --load failure on last / init error---> failed
    loading(i) --readiness timeout-------------------> failed
    loading(i) --mapReady----------------------------> ready
    any --reset()------------------------------------> uninitialized

Commands dispatched before ``ready`` are queued and drained in order on the
transition; commands dispatched after ``failed`` are dropped.  The failure
is reported to the host exactly once per session.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import deque
from collections.abc import Callable, Sequence
from typing import Protocol

from pycourier._constants import DEFAULT_CENTER, DEFAULT_PAGE_ORIGIN, DEFAULT_READY_TIMEOUT_S, DOMAIN_HINT
from pycourier._redact import redact_url
from pycourier.bridge.codec import decode_event, encode_command
from pycourier.bridge.page import build_surface_page
from pycourier.bridge.state import SessionPhase, SessionState
from pycourier.config import CourierConfig
from pycourier.exceptions import BridgeError
from pycourier.models.commands import Command
from pycourier.models.events import BridgeEvent, ErrorKind, MapError, PointTapped, Ready
from pycourier.models.geo import Coordinate

_logger = logging.getLogger(__name__)


class RenderingSurface(Protocol):
    """The embedded, sandboxed view hosting the map page.

    Both calls are fire-and-forget.  Transport-level load errors detected by
    the view itself should be fed back via
    :meth:`BridgeSession.report_load_failure`, and every message the page
    posts via :meth:`BridgeSession.handle_message`.
    """

    def load_document(self, html: str, base_url: str) -> None:
        ...

    def inject(self, script: str) -> None:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Anything with ``call_later``; an asyncio event loop qualifies."""

    def call_later(self, delay: float, callback: Callable[..., object], *args: object) -> TimerHandle:
        ...


PageBuilder = Callable[[str], str]
"""Maps an SDK URL candidate to the HTML document to load."""


class BridgeSession:
    """State machine guarding command delivery to a rendering surface.

    Parameters
    ----------
    surface : RenderingSurface
        View the page is loaded into and scripts are injected into.
    candidate_urls : Sequence[str]
        SDK URLs tried in order until one boots.
    on_event : Callable[[BridgeEvent], None]
        Receives ``Ready``, ``PointTapped`` and classified ``MapError`` events.
    page_builder : PageBuilder or None
        Renders the page for a candidate URL.  Defaults to
        :func:`~pycourier.bridge.page.build_surface_page` centred on
        *center*.
    center : Coordinate or None
        Initial map center for the default page builder.
    timeout : float
        Seconds from :meth:`start` until a missing ``mapReady`` fails the session.
    base_url : str
        Origin the page is loaded under.
    scheduler : Scheduler or None
        Timer source.  Defaults to the running asyncio loop at :meth:`start`.
    """

    def __init__(
        self,
        surface: RenderingSurface,
        candidate_urls: Sequence[str],
        *,
        on_event: Callable[[BridgeEvent], None],
        page_builder: PageBuilder | None = None,
        center: Coordinate | None = None,
        timeout: float = DEFAULT_READY_TIMEOUT_S,
        base_url: str = DEFAULT_PAGE_ORIGIN,
        scheduler: Scheduler | None = None,
    ) -> None:
        if not candidate_urls:
            raise ValueError("at least one SDK URL candidate is required")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if page_builder is None:
            page_center = center or Coordinate(lat=DEFAULT_CENTER[0], lng=DEFAULT_CENTER[1])
            page_builder = functools.partial(build_surface_page, center=page_center)
        self._surface = surface
        self._urls: tuple[str, ...] = tuple(candidate_urls)
        self._on_event = on_event
        self._page_builder = page_builder
        self._timeout = timeout
        self._base_url = base_url
        self._scheduler = scheduler
        self._state = SessionState.uninitialized()
        self._pending: deque[Command] = deque()
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._failure_reported = False
        self._attempts: list[tuple[str, str | None]] = []

    @classmethod
    def from_config(
        cls,
        surface: RenderingSurface,
        config: CourierConfig,
        *,
        on_event: Callable[[BridgeEvent], None],
        center: Coordinate | None = None,
        scheduler: Scheduler | None = None,
    ) -> BridgeSession:
        """Build a session from :class:`CourierConfig` (SDK URLs, timeout, page)."""
        if center is None:
            lat, lng = config.default_center
            center = Coordinate(lat=lat, lng=lng)
        page_builder = functools.partial(build_surface_page, center=center, level=config.map_level)
        return cls(
            surface,
            config.sdk_urls(),
            on_event=on_event,
            page_builder=page_builder,
            timeout=config.ready_timeout,
            base_url=config.page_origin,
            scheduler=scheduler,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pending(self) -> tuple[Command, ...]:
        """Commands waiting for readiness, oldest first."""
        return tuple(self._pending)

    @property
    def attempted_urls(self) -> list[str]:
        return [url for url, _reason in self._attempts]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Arm the readiness timer and load the first candidate."""
        if self._state.phase is not SessionPhase.UNINITIALIZED:
            _logger.debug("Bridge start ignored in phase=%s", self._state.phase)
            return
        scheduler = self._scheduler
        if scheduler is None:
            try:
                scheduler = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise BridgeError(
                    "BridgeSession.start() needs a running event loop or an explicit scheduler"
                ) from exc
        self._timer = scheduler.call_later(self._timeout, self._on_timeout, self._generation)
        self._begin_attempt(0)

    def reset(self) -> None:
        """Forget everything (surface re-mount); :meth:`start` must follow."""
        self._cancel_timer()
        self._generation += 1
        self._pending.clear()
        self._attempts.clear()
        self._failure_reported = False
        self._state = SessionState.uninitialized()
        _logger.debug("Bridge session reset")

    def report_load_failure(self, reason: str) -> None:
        """Signal that the current candidate could not be loaded."""
        if self._state.phase is not SessionPhase.LOADING:
            _logger.debug("Load failure ignored in phase=%s: %s", self._state.phase, reason)
            return
        self._advance(reason)

    def _begin_attempt(self, index: int) -> None:
        url = self._urls[index]
        self._state = SessionState.loading(index)
        self._attempts.append((url, None))
        _logger.debug("Loading map SDK attempt=%d/%d url=%s", index + 1, len(self._urls), redact_url(url))
        try:
            html = self._page_builder(url)
            self._surface.load_document(html, self._base_url)
        except Exception as exc:
            _logger.debug("Surface load raised for attempt=%d", index + 1, exc_info=True)
            self._advance(f"{type(exc).__name__}: {exc}")

    def _advance(self, reason: str) -> None:
        attempt = self._state.attempt or 0
        url, _ = self._attempts[-1]
        self._attempts[-1] = (url, reason)
        _logger.debug("Map SDK attempt=%d failed: %s", attempt + 1, reason)
        if attempt + 1 < len(self._urls):
            self._begin_attempt(attempt + 1)
            return
        tried = "; ".join(f"{u} ({r})" if r else u for u, r in self._attempts)
        self._fail(ErrorKind.TRANSPORT, f"Map SDK could not be loaded from any candidate URL: {tried}")

    def _become_ready(self) -> None:
        self._cancel_timer()
        self._state = SessionState.ready()
        drained = len(self._pending)
        while self._pending:
            self._deliver(self._pending.popleft())
        _logger.debug("Bridge ready; delivered %d queued command(s)", drained)
        self._emit(Ready())

    def _fail(self, kind: ErrorKind, reason: str) -> None:
        if self._failure_reported:
            _logger.debug("Suppressed repeated bridge failure: %s", reason)
            return
        self._cancel_timer()
        self._pending.clear()
        self._state = SessionState.failed(reason)
        self._failure_reported = True
        _logger.warning("Map bridge failed (%s): %s", kind, redact_url(reason))
        self._emit(MapError(message=reason, kind=kind, fatal=True))

    def _on_timeout(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._timer = None
        if self._state.phase is not SessionPhase.LOADING:
            return
        tried = ", ".join(self.attempted_urls)
        self._fail(
            ErrorKind.TIMEOUT,
            f"Map did not become ready within {self._timeout:g}s (tried: {tried}). {DOMAIN_HINT}",
        )

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def handle_message(self, raw: str | bytes | bytearray) -> None:
        """Feed one raw message posted by the page."""
        event = decode_event(raw)
        if event is not None:
            self.handle_event(event)

    def handle_event(self, event: BridgeEvent) -> None:
        phase = self._state.phase

        if isinstance(event, Ready):
            if phase is SessionPhase.LOADING:
                self._become_ready()
            else:
                _logger.debug("mapReady ignored in phase=%s", phase)
            return

        if isinstance(event, MapError):
            if phase is SessionPhase.LOADING:
                if event.retryable:
                    self._advance(event.message)
                else:
                    self._fail(ErrorKind.INIT, event.message)
            elif phase is SessionPhase.READY:
                _logger.warning("Map runtime error: %s", event.message)
                self._emit(event.model_copy(update={"kind": ErrorKind.RUNTIME, "fatal": False}))
            else:
                _logger.debug("mapError suppressed in phase=%s: %s", phase, event.message)
            return

        if isinstance(event, PointTapped):
            if phase is SessionPhase.READY:
                self._emit(event)
            else:
                _logger.debug("mapClick ignored in phase=%s", phase)

    def _emit(self, event: BridgeEvent) -> None:
        try:
            self._on_event(event)
        except Exception:
            _logger.debug("Bridge on_event callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def dispatch(self, command: Command) -> None:
        """Send *command* now, queue it until ready, or drop it after failure."""
        phase = self._state.phase
        if phase is SessionPhase.READY:
            self._deliver(command)
        elif phase is SessionPhase.FAILED:
            _logger.debug("Dropping %s: bridge failed", command.kind)
        else:
            self._pending.append(command)

    def _deliver(self, command: Command) -> None:
        try:
            self._surface.inject(encode_command(command))
        except Exception:
            _logger.debug("Surface inject failed for %s", command.kind, exc_info=True)
