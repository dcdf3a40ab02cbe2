"""Kakao Local API: keyword search, address search, coord2address."""

from __future__ import annotations

import logging
from typing import Any

from pycourier._api._common import coordinate_or_none, documents_of, first_text
from pycourier._transport import Transport
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierConfigError, CourierError, GeocodingError
from pycourier.models.geo import Coordinate
from pycourier.models.places import PlaceCandidate, PlaceSource

_logger = logging.getLogger(__name__)

KEYWORD_ENDPOINT = "/v2/local/search/keyword.json"
ADDRESS_ENDPOINT = "/v2/local/search/address.json"
COORD2ADDRESS_ENDPOINT = "/v2/local/geo/coord2address.json"


def _nested_address(doc: dict[str, Any], key: str) -> str | None:
    nested = doc.get(key)
    if isinstance(nested, dict):
        return first_text(nested.get("address_name"))
    return None


def parse_keyword_documents(payload: Any) -> list[PlaceCandidate]:
    """Map a keyword-search response to candidates.

    The display address prefers the road address, then the lot address,
    then the place name.
    """
    candidates: list[PlaceCandidate] = []
    for doc in documents_of(payload):
        coordinate = coordinate_or_none(doc.get("y"), doc.get("x"))
        address = first_text(doc.get("road_address_name"), doc.get("address_name"), doc.get("place_name"))
        if coordinate is None or address is None:
            continue
        candidates.append(
            PlaceCandidate(
                name=first_text(doc.get("place_name")) or address,
                address=address,
                coordinate=coordinate,
                source=PlaceSource.KAKAO_KEYWORD,
            )
        )
    return candidates


def parse_address_documents(payload: Any) -> list[PlaceCandidate]:
    """Map an address-search response to candidates."""
    candidates: list[PlaceCandidate] = []
    for doc in documents_of(payload):
        coordinate = coordinate_or_none(doc.get("y"), doc.get("x"))
        lot_address = first_text(doc.get("address_name"))
        address = _nested_address(doc, "road_address") or lot_address
        if coordinate is None or address is None:
            continue
        candidates.append(
            PlaceCandidate(
                name=lot_address or address,
                address=address,
                coordinate=coordinate,
                source=PlaceSource.KAKAO_ADDRESS,
            )
        )
    return candidates


def parse_coord2address(payload: Any) -> str | None:
    """Best formatted address from a coord2address response."""
    docs = documents_of(payload)
    if not docs:
        return None
    doc = docs[0]
    return _nested_address(doc, "road_address") or _nested_address(doc, "address")


class KakaoLocalResolver:
    """Primary resolver backed by the Kakao Local REST API."""

    def __init__(self, config: CourierConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if not self._config.kakao_rest_key:
            raise CourierConfigError("kakao_rest_key is required for Kakao Local requests")
        return {"Authorization": f"KakaoAK {self._config.kakao_rest_key}"}

    async def _get(self, endpoint: str, params: dict[str, Any]) -> Any:
        payload = await self._transport.get_json(
            f"{self._config.kakao_base_url}{endpoint}",
            params=params,
            headers=self._headers(),
        )
        if not isinstance(payload, dict):
            raise GeocodingError(f"{endpoint} returned a non-object payload")
        return payload

    async def search_keyword(self, query: str) -> list[PlaceCandidate]:
        payload = await self._get(KEYWORD_ENDPOINT, {"query": query, "size": self._config.search_limit})
        return parse_keyword_documents(payload)

    async def search_address(self, query: str) -> list[PlaceCandidate]:
        payload = await self._get(ADDRESS_ENDPOINT, {"query": query, "size": self._config.search_limit})
        return parse_address_documents(payload)

    async def search(self, query: str) -> list[PlaceCandidate]:
        """Keyword search first; address search when it finds nothing.

        Transport and payload errors propagate so the caller can fall back
        to another provider.
        """
        results = await self.search_keyword(query)
        if results:
            return results
        _logger.debug("Kakao keyword search empty; trying address search")
        return await self.search_address(query)

    async def reverse(self, coordinate: Coordinate) -> str | None:
        """Formatted address for *coordinate*, ``None`` on any failure."""
        try:
            payload = await self._get(COORD2ADDRESS_ENDPOINT, {"x": coordinate.lng, "y": coordinate.lat})
        except CourierError:
            _logger.debug("Reverse geocoding failed for %s", coordinate.label(), exc_info=True)
            return None
        return parse_coord2address(payload)
