from __future__ import annotations

import pytest

from pycourier.config import CourierConfig
from pycourier.exceptions import CourierConfigError


def test_defaults() -> None:
    config = CourierConfig()

    assert config.ready_timeout == 8.0
    assert config.minutes_per_km == 3.0
    assert config.platform == "android"
    assert len(config.map_sdk_url_templates) == 2


def test_sdk_urls_require_js_key() -> None:
    with pytest.raises(CourierConfigError):
        CourierConfig().sdk_urls()


def test_sdk_urls_keep_order() -> None:
    urls = CourierConfig(kakao_js_key="abc").sdk_urls()

    assert urls == [
        "https://dapi.kakao.com/v2/maps/sdk.js?appkey=abc&autoload=false",
        "http://dapi.kakao.com/v2/maps/sdk.js?appkey=abc&autoload=false",
    ]


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(CourierConfigError):
        CourierConfig(platform="symbian")
    with pytest.raises(CourierConfigError):
        CourierConfig(ready_timeout=0)
    with pytest.raises(CourierConfigError):
        CourierConfig(map_sdk_url_templates=())


def test_from_env_reads_courier_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COURIER_KAKAO_JS_KEY", " js ")
    monkeypatch.setenv("COURIER_KAKAO_REST_KEY", "rest")
    monkeypatch.setenv("COURIER_PLATFORM", "ios")
    monkeypatch.setenv("COURIER_READY_TIMEOUT", "12.5")
    monkeypatch.setenv("COURIER_SEARCH_LIMIT", "3")

    config = CourierConfig.from_env()

    assert config.kakao_js_key == "js"
    assert config.kakao_rest_key == "rest"
    assert config.platform == "ios"
    assert config.ready_timeout == 12.5
    assert config.search_limit == 3


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COURIER_READY_TIMEOUT", "not-a-number")
    monkeypatch.setenv("COURIER_KAKAO_JS_KEY", "from-env")

    config = CourierConfig.from_env(ready_timeout=4.0, kakao_js_key="explicit")

    assert config.ready_timeout == 4.0
    assert config.kakao_js_key == "explicit"


def test_from_env_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COURIER_MINUTES_PER_KM", "fast")

    with pytest.raises(CourierConfigError):
        CourierConfig.from_env()
