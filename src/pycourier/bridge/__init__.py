"""Bridge between the host and the embedded map rendering surface."""

from pycourier.bridge.codec import decode_event, encode_command
from pycourier.bridge.page import build_surface_page
from pycourier.bridge.session import BridgeSession, RenderingSurface, Scheduler
from pycourier.bridge.state import SessionPhase, SessionState

__all__ = [
    "BridgeSession",
    "RenderingSurface",
    "Scheduler",
    "SessionPhase",
    "SessionState",
    "build_surface_page",
    "decode_event",
    "encode_command",
]
