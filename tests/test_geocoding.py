from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from pycourier._api._common import coordinate_or_none, first_text, safe_float
from pycourier._api.kakao import (
    ADDRESS_ENDPOINT,
    COORD2ADDRESS_ENDPOINT,
    KEYWORD_ENDPOINT,
    KakaoLocalResolver,
    parse_address_documents,
    parse_coord2address,
    parse_keyword_documents,
)
from pycourier._api.nominatim import NominatimResolver, parse_nominatim_rows
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierConfigError, CourierTransportError, GeocodingError
from pycourier.models.geo import Coordinate
from pycourier.models.places import PlaceSource

KEYWORD_PAYLOAD = {
    "documents": [
        {
            "place_name": "서울역",
            "road_address_name": "서울 용산구 한강대로 405",
            "address_name": "서울 용산구 동자동 43-205",
            "x": "126.970606917394",
            "y": "37.5546788388674",
        },
        {"place_name": "broken", "x": "", "y": "37.5"},
        "not a row",
    ],
    "meta": {"total_count": 2},
}


class _FakeTransport:
    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, Any], dict[str, str]]] = []

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        self.calls.append((url, dict(params or {}), dict(headers or {})))
        for suffix, response in self.responses.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"unexpected url {url}")


def _config(**kwargs: Any) -> CourierConfig:
    return CourierConfig(kakao_rest_key="rest-key", **kwargs)


def test_safe_float_rejects_junk() -> None:
    assert safe_float("37.5") == 37.5
    assert safe_float(True) is None
    assert safe_float("") is None
    assert safe_float("nan") is None
    assert safe_float("inf") is None
    assert safe_float({"x": 1}) is None


def test_coordinate_or_none_rejects_out_of_range() -> None:
    assert coordinate_or_none("37.5", "127.0") == Coordinate(lat=37.5, lng=127.0)
    assert coordinate_or_none("97.5", "127.0") is None


def test_first_text_skips_blank_and_non_strings() -> None:
    assert first_text(None, "  ", 5, " found ") == "found"
    assert first_text(None, "") is None


def test_parse_keyword_prefers_road_address() -> None:
    candidates = parse_keyword_documents(KEYWORD_PAYLOAD)

    assert len(candidates) == 1
    assert candidates[0].name == "서울역"
    assert candidates[0].address == "서울 용산구 한강대로 405"
    assert candidates[0].coordinate.lat == pytest.approx(37.5546788)
    assert candidates[0].source is PlaceSource.KAKAO_KEYWORD


def test_parse_keyword_falls_back_to_place_name() -> None:
    payload = {"documents": [{"place_name": "Depot", "road_address_name": "", "x": "127.0", "y": "37.5"}]}

    assert parse_keyword_documents(payload)[0].address == "Depot"


def test_parse_address_documents() -> None:
    payload = {
        "documents": [
            {
                "address_name": "서울 중구 태평로1가 31",
                "road_address": {"address_name": "서울 중구 세종대로 110"},
                "x": "126.978",
                "y": "37.5665",
            },
            {"address_name": "lot only", "road_address": None, "x": "127.0", "y": "37.5"},
        ]
    }

    candidates = parse_address_documents(payload)

    assert [c.address for c in candidates] == ["서울 중구 세종대로 110", "lot only"]
    assert candidates[0].name == "서울 중구 태평로1가 31"


def test_parse_coord2address() -> None:
    assert parse_coord2address({"documents": [{"road_address": None, "address": {"address_name": "lot"}}]}) == "lot"
    assert parse_coord2address({"documents": []}) is None
    assert parse_coord2address([]) is None


def test_parse_nominatim_rows() -> None:
    payload = [
        {"lat": "37.5665", "lon": "126.978", "display_name": "Seoul City Hall"},
        {"lat": "37.5", "lon": "127.0"},
        {"lat": "bad", "lon": "127.0", "display_name": "bad"},
    ]

    candidates = parse_nominatim_rows(payload, "city hall")

    assert [c.address for c in candidates] == ["Seoul City Hall", "city hall"]
    assert all(c.source is PlaceSource.NOMINATIM for c in candidates)
    assert parse_nominatim_rows({"error": "x"}, "q") == []


@pytest.mark.asyncio
async def test_kakao_search_sends_rest_key_and_limit() -> None:
    transport = _FakeTransport({KEYWORD_ENDPOINT: KEYWORD_PAYLOAD})
    resolver = KakaoLocalResolver(_config(search_limit=5), transport)

    results = await resolver.search("서울역")

    assert len(results) == 1
    url, params, headers = transport.calls[0]
    assert url == "https://dapi.kakao.com/v2/local/search/keyword.json"
    assert params == {"query": "서울역", "size": 5}
    assert headers == {"Authorization": "KakaoAK rest-key"}


@pytest.mark.asyncio
async def test_kakao_search_falls_back_to_address_search() -> None:
    transport = _FakeTransport(
        {
            KEYWORD_ENDPOINT: {"documents": []},
            ADDRESS_ENDPOINT: {"documents": [{"address_name": "lot", "x": "127.0", "y": "37.5"}]},
        }
    )
    resolver = KakaoLocalResolver(_config(), transport)

    results = await resolver.search("lot")

    assert [c.source for c in results] == [PlaceSource.KAKAO_ADDRESS]
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_kakao_search_propagates_transport_errors() -> None:
    transport = _FakeTransport({KEYWORD_ENDPOINT: CourierTransportError("HTTP 401", status_code=401)})

    with pytest.raises(CourierTransportError):
        await KakaoLocalResolver(_config(), transport).search("q1")


@pytest.mark.asyncio
async def test_kakao_search_rejects_non_object_payload() -> None:
    transport = _FakeTransport({KEYWORD_ENDPOINT: ["unexpected"]})

    with pytest.raises(GeocodingError):
        await KakaoLocalResolver(_config(), transport).search("q1")


@pytest.mark.asyncio
async def test_kakao_requires_rest_key() -> None:
    transport = _FakeTransport({})

    with pytest.raises(CourierConfigError):
        await KakaoLocalResolver(CourierConfig(), transport).search("q1")


@pytest.mark.asyncio
async def test_kakao_reverse_passes_x_as_longitude() -> None:
    transport = _FakeTransport(
        {COORD2ADDRESS_ENDPOINT: {"documents": [{"road_address": {"address_name": "road"}, "address": None}]}}
    )

    address = await KakaoLocalResolver(_config(), transport).reverse(Coordinate(lat=37.5, lng=127.0))

    assert address == "road"
    assert transport.calls[0][1] == {"x": 127.0, "y": 37.5}


@pytest.mark.asyncio
async def test_kakao_reverse_swallows_errors() -> None:
    transport = _FakeTransport({COORD2ADDRESS_ENDPOINT: CourierTransportError("offline")})

    assert await KakaoLocalResolver(_config(), transport).reverse(Coordinate(lat=37.5, lng=127.0)) is None


@pytest.mark.asyncio
async def test_nominatim_search_params() -> None:
    transport = _FakeTransport({"/search": [{"lat": "37.5", "lon": "127.0", "display_name": "somewhere"}]})

    results = await NominatimResolver(_config(search_limit=3), transport).search("somewhere")

    assert [c.name for c in results] == ["somewhere"]
    url, params, headers = transport.calls[0]
    assert url == "https://nominatim.openstreetmap.org/search"
    assert params == {"format": "json", "limit": 3, "q": "somewhere"}
    assert headers == {}
