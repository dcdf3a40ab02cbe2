from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from pycourier.bridge.session import BridgeSession
from pycourier.bridge.state import SessionPhase
from pycourier.config import CourierConfig
from pycourier.exceptions import BridgeError
from pycourier.models.commands import AddMarker, ClearMarkers, MoveTo
from pycourier.models.events import BridgeEvent, ErrorKind, MapError, PointTapped, Ready

URL_A = "https://maps.example/sdk.js?appkey=k"
URL_B = "http://maps.example/sdk.js?appkey=k"


class _FakeSurface:
    def __init__(self) -> None:
        self.loaded: list[tuple[str, str]] = []
        self.injected: list[str] = []

    def load_document(self, html: str, base_url: str) -> None:
        self.loaded.append((html, base_url))

    def inject(self, script: str) -> None:
        self.injected.append(script)


class _FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _FakeScheduler:
    """Records timers; tests fire them explicitly."""

    def __init__(self) -> None:
        self.timers: list[tuple[float, Callable[..., object], tuple[Any, ...], _FakeHandle]] = []

    def call_later(self, delay: float, callback: Callable[..., object], *args: Any) -> _FakeHandle:
        handle = _FakeHandle()
        self.timers.append((delay, callback, args, handle))
        return handle

    def fire_all(self) -> None:
        for _delay, callback, args, handle in list(self.timers):
            if not handle.cancelled:
                callback(*args)


def _session(
    urls: tuple[str, ...] = (URL_A, URL_B),
) -> tuple[BridgeSession, _FakeSurface, _FakeScheduler, list[BridgeEvent]]:
    surface = _FakeSurface()
    scheduler = _FakeScheduler()
    events: list[BridgeEvent] = []
    session = BridgeSession(
        surface,
        urls,
        on_event=events.append,
        page_builder=lambda url: f"<page {url}>",
        scheduler=scheduler,
    )
    return session, surface, scheduler, events


def _fatal_errors(events: list[BridgeEvent]) -> list[MapError]:
    return [e for e in events if isinstance(e, MapError) and e.fatal]


def test_start_loads_first_candidate_and_arms_timer() -> None:
    session, surface, scheduler, _events = _session()

    session.start()

    assert session.state.phase is SessionPhase.LOADING
    assert session.state.attempt == 0
    assert surface.loaded == [(f"<page {URL_A}>", "https://localhost")]
    assert [delay for delay, *_ in scheduler.timers] == [8.0]


def test_start_twice_is_a_noop() -> None:
    session, surface, scheduler, _events = _session()

    session.start()
    session.start()

    assert len(surface.loaded) == 1
    assert len(scheduler.timers) == 1


def test_commands_queue_until_ready_then_drain_in_order_once() -> None:
    session, surface, scheduler, events = _session()
    session.start()

    session.dispatch(ClearMarkers())
    session.dispatch(AddMarker(lat=37.5, lng=127.0, label="1"))
    session.dispatch(MoveTo(lat=37.5, lng=127.0))

    assert surface.injected == []
    assert len(session.pending) == 3

    session.handle_message('{"type": "mapReady"}')

    assert session.state.is_ready
    assert session.pending == ()
    assert len(surface.injected) == 3
    assert "window.clearAllMarkers()" in surface.injected[0]
    assert "window.addNumberedMarker(" in surface.injected[1]
    assert "window.moveTo(" in surface.injected[2]
    assert events == [Ready()]
    assert scheduler.timers[0][3].cancelled

    # A duplicate ready signal neither re-drains nor re-emits.
    session.handle_message('{"type": "mapReady"}')
    assert len(surface.injected) == 3
    assert events == [Ready()]


def test_commands_after_ready_are_delivered_immediately() -> None:
    session, surface, _scheduler, _events = _session()
    session.start()
    session.handle_event(Ready())

    session.dispatch(MoveTo(lat=1.0, lng=2.0))

    assert len(surface.injected) == 1


def test_load_failure_falls_through_to_next_candidate() -> None:
    session, surface, _scheduler, events = _session()
    session.start()

    session.report_load_failure("net::ERR_CLEARTEXT_NOT_PERMITTED")

    assert session.state.phase is SessionPhase.LOADING
    assert session.state.attempt == 1
    assert [html for html, _ in surface.loaded] == [f"<page {URL_A}>", f"<page {URL_B}>"]
    assert events == []


def test_all_candidates_failing_reports_one_fatal_error_naming_both() -> None:
    session, _surface, scheduler, events = _session()
    session.start()
    session.dispatch(ClearMarkers())

    session.handle_message('{"type": "mapError", "message": "script 1 failed", "retryable": true}')
    session.handle_message('{"type": "mapError", "message": "script 2 failed", "retryable": true}')

    assert session.state.phase is SessionPhase.FAILED
    failures = _fatal_errors(events)
    assert len(failures) == 1
    assert failures[0].kind is ErrorKind.TRANSPORT
    assert URL_A in failures[0].message
    assert URL_B in failures[0].message
    assert "script 2 failed" in failures[0].message
    assert session.state.reason == failures[0].message
    assert session.pending == ()
    assert scheduler.timers[0][3].cancelled


def test_non_retryable_error_while_loading_fails_without_trying_next() -> None:
    session, surface, _scheduler, events = _session()
    session.start()

    session.handle_event(MapError(message="kakao is not defined"))

    assert session.state.phase is SessionPhase.FAILED
    assert len(surface.loaded) == 1
    failures = _fatal_errors(events)
    assert [f.kind for f in failures] == [ErrorKind.INIT]


def test_timeout_fails_with_domain_hint() -> None:
    session, _surface, scheduler, events = _session()
    session.start()

    scheduler.fire_all()

    assert session.state.phase is SessionPhase.FAILED
    failures = _fatal_errors(events)
    assert len(failures) == 1
    assert failures[0].kind is ErrorKind.TIMEOUT
    assert "8s" in failures[0].message
    assert "Site domain" in failures[0].message


def test_failure_is_reported_once_and_later_commands_are_dropped() -> None:
    session, surface, scheduler, events = _session((URL_A,))
    session.start()
    session.report_load_failure("offline")

    scheduler.fire_all()
    session.handle_event(MapError(message="late error"))
    session.handle_event(Ready())
    session.dispatch(MoveTo(lat=1.0, lng=2.0))

    assert session.state.phase is SessionPhase.FAILED
    assert len(_fatal_errors(events)) == 1
    assert not any(isinstance(e, Ready) for e in events)
    assert surface.injected == []


def test_runtime_error_after_ready_is_not_fatal() -> None:
    session, _surface, _scheduler, events = _session()
    session.start()
    session.handle_event(Ready())

    session.handle_message('{"type": "mapError", "message": "Script error."}')

    assert session.state.is_ready
    assert events[-1] == MapError(message="Script error.", kind=ErrorKind.RUNTIME, fatal=False)


def test_clicks_are_forwarded_only_when_ready() -> None:
    session, _surface, _scheduler, events = _session()
    session.start()

    session.handle_message('{"type": "mapClick", "lat": 37.5, "lng": 127.0}')
    assert events == []

    session.handle_event(Ready())
    session.handle_message('{"type": "mapClick", "lat": 37.5, "lng": 127.0}')

    assert events[-1] == PointTapped(lat=37.5, lng=127.0)


def test_malformed_messages_are_ignored() -> None:
    session, _surface, _scheduler, events = _session()
    session.start()

    session.handle_message("garbage")
    session.handle_message('{"type": "mapClick", "lat": "x"}')

    assert session.state.phase is SessionPhase.LOADING
    assert events == []


def test_reset_discards_state_and_stale_timer() -> None:
    session, surface, scheduler, events = _session()
    session.start()
    session.dispatch(ClearMarkers())
    stale_timer = scheduler.timers[0]

    session.reset()

    assert session.state.phase is SessionPhase.UNINITIALIZED
    assert session.pending == ()
    assert session.attempted_urls == []
    assert stale_timer[3].cancelled

    session.start()
    # The old timer firing late must not fail the new attempt.
    stale_timer[1](*stale_timer[2])
    assert session.state.phase is SessionPhase.LOADING

    session.handle_event(Ready())
    assert surface.injected == []
    assert events == [Ready()]


def test_reset_allows_a_new_failure_report() -> None:
    session, _surface, scheduler, events = _session((URL_A,))
    session.start()
    session.report_load_failure("offline")
    session.reset()
    session.start()

    scheduler.timers[-1][1](*scheduler.timers[-1][2])

    assert len(_fatal_errors(events)) == 2


def test_page_builder_exception_counts_as_failed_attempt() -> None:
    surface = _FakeSurface()
    events: list[BridgeEvent] = []

    def builder(url: str) -> str:
        if url == URL_A:
            raise RuntimeError("boom")
        return "<ok>"

    session = BridgeSession(
        surface, (URL_A, URL_B), on_event=events.append, page_builder=builder, scheduler=_FakeScheduler()
    )
    session.start()

    assert session.state.attempt == 1
    assert surface.loaded == [("<ok>", "https://localhost")]


def test_callback_exceptions_do_not_break_the_session() -> None:
    surface = _FakeSurface()

    def explode(_event: BridgeEvent) -> None:
        raise RuntimeError("host bug")

    session = BridgeSession(surface, (URL_A,), on_event=explode, page_builder=str, scheduler=_FakeScheduler())
    session.start()
    session.handle_event(Ready())

    assert session.state.is_ready


def test_constructor_validates_arguments() -> None:
    with pytest.raises(ValueError):
        BridgeSession(_FakeSurface(), (), on_event=lambda _e: None)
    with pytest.raises(ValueError):
        BridgeSession(_FakeSurface(), (URL_A,), on_event=lambda _e: None, timeout=0)


def test_from_config_renders_key_into_candidates() -> None:
    config = CourierConfig(kakao_js_key="js-key", ready_timeout=3.0, page_origin="https://courier.local")
    surface = _FakeSurface()
    scheduler = _FakeScheduler()

    session = BridgeSession.from_config(surface, config, on_event=lambda _e: None, scheduler=scheduler)
    session.start()

    assert session.attempted_urls == ["https://dapi.kakao.com/v2/maps/sdk.js?appkey=js-key&autoload=false"]
    assert surface.loaded[0][1] == "https://courier.local"
    assert "kakao.maps.load(init)" in surface.loaded[0][0]
    assert scheduler.timers[0][0] == 3.0


@pytest.mark.asyncio
async def test_default_scheduler_is_the_running_loop() -> None:
    events: list[BridgeEvent] = []
    session = BridgeSession(_FakeSurface(), (URL_A,), on_event=events.append, page_builder=str, timeout=0.01)

    session.start()
    await asyncio.sleep(0.05)

    assert session.state.phase is SessionPhase.FAILED
    assert _fatal_errors(events)[0].kind is ErrorKind.TIMEOUT


def test_start_outside_event_loop_without_scheduler_raises_bridge_error() -> None:
    surface = _FakeSurface()
    session = BridgeSession(surface, (URL_A,), on_event=lambda _e: None, page_builder=str)

    with pytest.raises(BridgeError):
        session.start()

    assert session.state.phase is SessionPhase.UNINITIALIZED
    assert surface.loaded == []
