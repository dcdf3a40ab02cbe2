"""Wire codec for the map bridge.

Outbound commands become self-executing JavaScript instructions that call
one of the page's global entry points.  Each instruction re-checks the
page's own readiness flag, so a command that arrives early or against a
broken page does nothing instead of throwing.

Inbound messages are JSON objects posted by the page.  Anything that does
not decode into a known event is logged and dropped: the channel is not
trusted to be well formed.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from pycourier._redact import redact_for_log
from pycourier.models.commands import AddMarker, ClearMarkers, Command, DrawRoute, MoveTo
from pycourier.models.events import BridgeEvent

_logger = logging.getLogger(__name__)

#: Global flag the surface page sets once the map object exists.
READY_FLAG = "__courierMapReady"
#: Global the page exposes for reporting errors caught inside commands.
ERROR_HOOK = "__courierReportError"

# Keys accepted from the wire per message type.  ``kind``/``fatal`` on
# MapError are host-side annotations and must not be settable by the page.
_WIRE_FIELDS: dict[str, tuple[str, ...]] = {
    "mapReady": (),
    "mapError": ("message", "retryable"),
    "mapClick": ("lat", "lng"),
}

_EVENT_ADAPTER: TypeAdapter[BridgeEvent] = TypeAdapter(BridgeEvent)


def js_literal(value: Any) -> str:
    """JSON-encode *value* for embedding in a script.

    ``</`` is escaped so the literal can never close an enclosing
    ``<script>`` element.
    """
    return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":")).replace("</", "<\\/")


def _command_args(command: Command) -> list[Any]:
    if isinstance(command, MoveTo):
        return [command.lat, command.lng]
    if isinstance(command, AddMarker):
        return [command.lat, command.lng, command.label]
    if isinstance(command, ClearMarkers):
        return []
    if isinstance(command, DrawRoute):
        return [[{"lat": p.lat, "lng": p.lng} for p in command.points]]
    raise TypeError(f"Unsupported command type: {type(command).__name__}")


def encode_command(command: Command) -> str:
    """Serialize *command* into a guarded, self-executing instruction."""
    fn = command.kind
    args = ",".join(js_literal(arg) for arg in _command_args(command))
    return (
        "(function(){"
        f"if(window.{READY_FLAG}!==true||typeof window.{fn}!=='function'){{return;}}"
        f"try{{window.{fn}({args});}}"
        f"catch(e){{if(typeof window.{ERROR_HOOK}==='function'){{window.{ERROR_HOOK}(e);}}}}"
        "})();true;"
    )


def decode_event(raw: str | bytes | bytearray) -> BridgeEvent | None:
    """Decode one inbound bridge message.

    Returns ``None`` for anything malformed: invalid UTF-8 or JSON, a
    non-object payload, an unknown ``type``, or missing / non-numeric /
    out-of-range coordinates.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            _logger.debug("Dropping bridge message: not UTF-8 (%d bytes)", len(raw))
            return None
    else:
        text = raw

    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        _logger.debug("Dropping bridge message: not JSON %r", redact_for_log(text, max_string=128))
        return None

    if not isinstance(payload, dict):
        _logger.debug("Dropping bridge message: JSON is not an object")
        return None

    msg_type = payload.get("type")
    fields = _WIRE_FIELDS.get(msg_type) if isinstance(msg_type, str) else None
    if fields is None:
        _logger.debug("Dropping bridge message: unknown type %r", msg_type)
        return None

    wire: dict[str, Any] = {"type": msg_type}
    for key in fields:
        if key in payload:
            wire[key] = payload[key]

    if msg_type == "mapError":
        # Keep the error even when the page sent a sloppy envelope.
        if not isinstance(wire.get("message"), str):
            wire.pop("message", None)
        if not isinstance(wire.get("retryable"), bool):
            wire.pop("retryable", None)

    try:
        return _EVENT_ADAPTER.validate_python(wire)
    except ValidationError:
        _logger.debug("Dropping bridge message: invalid %s payload %s", msg_type, redact_for_log(payload))
        return None
