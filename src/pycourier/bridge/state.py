"""Lifecycle state of one bridge session."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class SessionPhase(enum.StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionState:
    """Current phase plus its payload.

    ``attempt`` is the index of the SDK URL being loaded (``loading`` only);
    ``reason`` describes the failure (``failed`` only).
    """

    phase: SessionPhase
    attempt: int | None = None
    reason: str | None = None

    @classmethod
    def uninitialized(cls) -> SessionState:
        return cls(SessionPhase.UNINITIALIZED)

    @classmethod
    def loading(cls, attempt: int) -> SessionState:
        return cls(SessionPhase.LOADING, attempt=attempt)

    @classmethod
    def ready(cls) -> SessionState:
        return cls(SessionPhase.READY)

    @classmethod
    def failed(cls, reason: str) -> SessionState:
        return cls(SessionPhase.FAILED, reason=reason)

    @property
    def is_ready(self) -> bool:
        return self.phase is SessionPhase.READY

    @property
    def is_terminal(self) -> bool:
        return self.phase in (SessionPhase.READY, SessionPhase.FAILED)
