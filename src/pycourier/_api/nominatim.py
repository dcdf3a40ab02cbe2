"""OpenStreetMap Nominatim search, used as the secondary resolver."""

from __future__ import annotations

from typing import Any

from pycourier._api._common import coordinate_or_none, first_text
from pycourier._transport import Transport
from pycourier.config import CourierConfig
from pycourier.models.places import PlaceCandidate, PlaceSource


def parse_nominatim_rows(payload: Any, query: str) -> list[PlaceCandidate]:
    """Map a Nominatim ``format=json`` response to candidates.

    Rows without ``display_name`` fall back to the query text.
    """
    if not isinstance(payload, list):
        return []
    candidates: list[PlaceCandidate] = []
    for row in payload:
        if not isinstance(row, dict):
            continue
        coordinate = coordinate_or_none(row.get("lat"), row.get("lon"))
        if coordinate is None:
            continue
        display = first_text(row.get("display_name")) or query
        candidates.append(
            PlaceCandidate(
                name=display,
                address=display,
                coordinate=coordinate,
                source=PlaceSource.NOMINATIM,
            )
        )
    return candidates


class NominatimResolver:
    def __init__(self, config: CourierConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def search(self, query: str) -> list[PlaceCandidate]:
        payload = await self._transport.get_json(
            self._config.nominatim_url,
            params={"format": "json", "limit": self._config.search_limit, "q": query},
        )
        return parse_nominatim_rows(payload, query)
