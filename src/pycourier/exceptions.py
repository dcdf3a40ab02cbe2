"""Custom exception hierarchy for pycourier."""

from __future__ import annotations


class CourierError(Exception):
    """Base exception for all pycourier errors."""


class CourierConfigError(CourierError):
    """Invalid or missing configuration."""


class CourierTransportError(CourierError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class GeocodingError(CourierError):
    """A geocoding provider answered with a payload we cannot use."""


class BridgeError(CourierError):
    """Base for map bridge misuse.

    Load, initialization and timeout failures of the rendering surface are
    never raised; they are reported as :class:`~pycourier.models.events.MapError`
    values.  This branch only covers programming errors on the host side.
    """
