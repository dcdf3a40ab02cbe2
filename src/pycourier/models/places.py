"""Geocoding result models."""

from __future__ import annotations

import enum

from pycourier.models._base import CourierBaseModel
from pycourier.models.geo import Coordinate


class PlaceSource(enum.StrEnum):
    KAKAO_KEYWORD = "kakao_keyword"
    KAKAO_ADDRESS = "kakao_address"
    NOMINATIM = "nominatim"


class PlaceCandidate(CourierBaseModel):
    """One free-text search result.

    Parameters
    ----------
    name : str
        Place name (or the address itself for address searches).
    address : str
        Best display address (road address preferred).
    coordinate : Coordinate
        Resolved position.
    source : PlaceSource
        Which provider produced the row.
    """

    name: str
    address: str
    coordinate: Coordinate
    source: PlaceSource
