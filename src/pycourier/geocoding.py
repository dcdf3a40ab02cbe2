"""Geocoding collaborator interfaces and the default provider wiring."""

from __future__ import annotations

from typing import Protocol

import aiohttp

from pycourier._api.kakao import KakaoLocalResolver
from pycourier._api.nominatim import NominatimResolver
from pycourier._transport import HttpTransport
from pycourier.config import CourierConfig
from pycourier.models.geo import Coordinate
from pycourier.models.places import PlaceCandidate


class PlaceResolver(Protocol):
    """Free text → zero or more candidates.

    May raise :class:`~pycourier.exceptions.CourierTransportError` or
    :class:`~pycourier.exceptions.GeocodingError`; callers treat both like
    an empty result.
    """

    async def search(self, query: str) -> list[PlaceCandidate]:
        ...


class ReverseResolver(Protocol):
    """Coordinate → best-effort formatted address (``None`` when unknown)."""

    async def reverse(self, coordinate: Coordinate) -> str | None:
        ...


def default_resolvers(
    config: CourierConfig,
    http_session: aiohttp.ClientSession,
) -> tuple[KakaoLocalResolver, NominatimResolver]:
    """Kakao Local as primary (and reverse) resolver, Nominatim as secondary."""
    transport = HttpTransport(config, http_session)
    return KakaoLocalResolver(config, transport), NominatimResolver(config, transport)
