"""HTML document hosted by the rendering surface.

The page loads the Kakao Maps SDK from one candidate URL, builds the map,
and talks to the host exclusively through ``postMessage``:

* ``mapReady`` once the map exists (and ``window.__courierMapReady`` is set),
* ``mapError`` with ``retryable: true`` when the SDK script fails to load,
* ``mapError`` for initialization exceptions and later uncaught errors,
* ``mapClick`` with the tapped coordinate.

It defines the four global entry points the codec targets: ``moveTo``,
``addNumberedMarker``, ``clearAllMarkers`` and ``drawPolyline``.
"""

from __future__ import annotations

import re
from string import Template

from pycourier._constants import DEFAULT_MAP_LEVEL
from pycourier.bridge.codec import ERROR_HOOK, READY_FLAG, js_literal
from pycourier.models.geo import Coordinate

# Dotted JS identifier path, e.g. ``window.ReactNativeWebView``.
_TARGET_RE = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*$")

DEFAULT_MESSAGE_TARGET = "window.ReactNativeWebView"

_PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0, maximum-scale=1.0, user-scalable=no">
  <style>
    * { margin: 0; padding: 0; }
    html, body, #map { width: 100%; height: 100%; }
  </style>
</head>
<body>
  <div id="map"></div>
  <script>
  (function () {
    var SDK_URL = ${sdk_url};
    var CENTER = ${center};
    var LEVEL = ${level};
    var SHOW_USER_LOCATION = ${show_user_location};
    var map = null;
    var markers = [];
    var polyline = null;

    window.${ready_flag} = false;

    function post(message) {
      var target = ${message_target};
      if (target && typeof target.postMessage === 'function') {
        target.postMessage(JSON.stringify(message));
      }
    }

    function reportError(err, retryable) {
      var message = (err && err.message) ? err.message : String(err);
      post({ type: 'mapError', message: message, retryable: !!retryable });
    }

    window.${error_hook} = function (err) { reportError(err, false); };
    window.onerror = function (message) {
      post({ type: 'mapError', message: String(message) });
      return false;
    };

    function latLng(lat, lng) { return new kakao.maps.LatLng(lat, lng); }

    function circle(size, color) {
      var el = document.createElement('div');
      el.style.cssText = 'width:' + size + 'px;height:' + size + 'px;background:' + color +
        ';border-radius:50%;display:flex;align-items:center;justify-content:center;' +
        'color:#fff;font-weight:bold;font-size:13px;border:2px solid #fff;' +
        'box-shadow:0 2px 6px rgba(0,0,0,0.3);';
      return el;
    }

    window.moveTo = function (lat, lng) {
      map.setCenter(latLng(lat, lng));
    };

    window.addNumberedMarker = function (lat, lng, label) {
      var el = circle(28, '#2ecc71');
      el.textContent = String(label);
      var overlay = new kakao.maps.CustomOverlay({
        position: latLng(lat, lng), content: el, yAnchor: 0.5, xAnchor: 0.5
      });
      overlay.setMap(map);
      markers.push(overlay);
    };

    window.clearAllMarkers = function () {
      markers.forEach(function (m) { m.setMap(null); });
      markers = [];
    };

    window.drawPolyline = function (points) {
      if (polyline) { polyline.setMap(null); polyline = null; }
      if (!points || points.length === 0) { return; }
      var path = points.map(function (p) { return latLng(p.lat, p.lng); });
      polyline = new kakao.maps.Polyline({
        path: path, strokeWeight: 4, strokeColor: '#2ecc71', strokeOpacity: 0.8, strokeStyle: 'solid'
      });
      polyline.setMap(map);
      var bounds = new kakao.maps.LatLngBounds();
      path.forEach(function (p) { bounds.extend(p); });
      map.setBounds(bounds);
    };

    function init() {
      try {
        map = new kakao.maps.Map(document.getElementById('map'), {
          center: latLng(CENTER.lat, CENTER.lng),
          level: LEVEL
        });
        map.addControl(new kakao.maps.ZoomControl(), kakao.maps.ControlPosition.RIGHT);
        if (SHOW_USER_LOCATION) {
          var dot = circle(16, '#4285F4');
          new kakao.maps.CustomOverlay({
            position: latLng(CENTER.lat, CENTER.lng), content: dot, yAnchor: 0.5, xAnchor: 0.5
          }).setMap(map);
        }
        kakao.maps.event.addListener(map, 'click', function (mouseEvent) {
          var point = mouseEvent.latLng;
          post({ type: 'mapClick', lat: point.getLat(), lng: point.getLng() });
        });
        window.${ready_flag} = true;
        post({ type: 'mapReady' });
      } catch (err) {
        reportError(err, false);
      }
    }

    var script = document.createElement('script');
    script.src = SDK_URL;
    script.onload = function () {
      if (!window.kakao || !window.kakao.maps || typeof kakao.maps.load !== 'function') {
        reportError(new Error('Map SDK loaded but kakao.maps is unavailable: ' + SDK_URL), false);
        return;
      }
      kakao.maps.load(init);
    };
    script.onerror = function () {
      reportError(new Error('Map SDK failed to load: ' + SDK_URL), true);
    };
    document.head.appendChild(script);
  })();
  </script>
</body>
</html>
"""
)


def build_surface_page(
    sdk_url: str,
    *,
    center: Coordinate,
    level: int = DEFAULT_MAP_LEVEL,
    show_user_location: bool = True,
    message_target: str = DEFAULT_MESSAGE_TARGET,
) -> str:
    """Render the surface document for one SDK URL candidate.

    Parameters
    ----------
    sdk_url : str
        Map SDK script URL (``autoload=false`` expected).
    center : Coordinate
        Initial map center, also where the user-location dot is drawn.
    level : int
        Initial zoom level.
    show_user_location : bool
        Draw the blue current-position dot at *center*.
    message_target : str
        Dotted JS path of the object exposing ``postMessage`` back to the host.

    Raises
    ------
    ValueError
        If *message_target* is not a plain dotted identifier path.
    """
    if not _TARGET_RE.match(message_target):
        raise ValueError(f"message_target must be a dotted identifier path, got {message_target!r}")
    return _PAGE.substitute(
        sdk_url=js_literal(sdk_url),
        center=js_literal({"lat": center.lat, "lng": center.lng}),
        level=js_literal(int(level)),
        show_user_location=js_literal(bool(show_user_location)),
        message_target=message_target,
        ready_flag=READY_FLAG,
        error_hook=ERROR_HOOK,
    )
