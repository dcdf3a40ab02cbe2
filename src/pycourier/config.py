"""Client configuration for pycourier."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pycourier._constants import (
    DEFAULT_CENTER,
    DEFAULT_MAP_LEVEL,
    DEFAULT_MINUTES_PER_KM,
    DEFAULT_PAGE_ORIGIN,
    DEFAULT_READY_TIMEOUT_S,
    KAKAO_BASE_URL,
    MAP_SDK_URL_TEMPLATES,
    NOMINATIM_URL,
    SUPPORTED_PLATFORMS,
    USER_AGENT,
)
from pycourier.exceptions import CourierConfigError


@dataclasses.dataclass(frozen=True)
class CourierConfig:
    """Planner configuration.

    Parameters
    ----------
    kakao_js_key : str
        Kakao JavaScript app key, substituted into the map SDK URLs.
    kakao_rest_key : str
        Kakao REST API key used for Local search and reverse geocoding.
    map_sdk_url_templates : tuple[str, ...]
        Ordered SDK URL candidates.  ``{app_key}`` is replaced with
        ``kakao_js_key``.  The bridge session falls through them in order.
    ready_timeout : float
        Seconds the rendering surface has to report readiness before the
        session is declared failed.
    minutes_per_km : float
        Average pace used to project arrival times.
    default_center : tuple[float, float]
        ``(lat, lng)`` the map opens on when no origin is known.
    map_level : int
        Initial Kakao zoom level.
    search_limit : int
        Maximum number of candidates requested from each geocoder.
    platform : str
        ``"android"`` or ``"ios"``; selects the store fallback URLs.
    http_timeout : float
        Total timeout in seconds for geocoding requests.
    kakao_base_url : str
        Kakao REST API base URL.
    nominatim_url : str
        Nominatim search endpoint used as the secondary geocoder.
    user_agent : str
        ``User-Agent`` header sent to the geocoders (Nominatim requires one).
    page_origin : str
        Base URL the surface page is loaded under.  Must be registered as a
        Web site domain for the JavaScript key.
    """

    kakao_js_key: str = ""
    kakao_rest_key: str = ""
    map_sdk_url_templates: tuple[str, ...] = MAP_SDK_URL_TEMPLATES
    ready_timeout: float = DEFAULT_READY_TIMEOUT_S
    minutes_per_km: float = DEFAULT_MINUTES_PER_KM
    default_center: tuple[float, float] = DEFAULT_CENTER
    map_level: int = DEFAULT_MAP_LEVEL
    search_limit: int = 7
    platform: str = "android"
    http_timeout: float = 10.0
    kakao_base_url: str = KAKAO_BASE_URL
    nominatim_url: str = NOMINATIM_URL
    user_agent: str = USER_AGENT
    page_origin: str = DEFAULT_PAGE_ORIGIN

    def __post_init__(self) -> None:
        if self.platform not in SUPPORTED_PLATFORMS:
            raise CourierConfigError(f"platform must be one of {sorted(SUPPORTED_PLATFORMS)}, got {self.platform!r}")
        if self.ready_timeout <= 0:
            raise CourierConfigError("ready_timeout must be positive")
        if not self.map_sdk_url_templates:
            raise CourierConfigError("at least one map SDK URL template is required")

    def sdk_urls(self) -> list[str]:
        """Render the SDK URL candidates with the JavaScript key.

        Raises
        ------
        CourierConfigError
            If a template needs a key and ``kakao_js_key`` is empty.
        """
        urls: list[str] = []
        for template in self.map_sdk_url_templates:
            if "{app_key}" in template and not self.kakao_js_key:
                raise CourierConfigError("kakao_js_key is required to load the map SDK")
            urls.append(template.format(app_key=self.kakao_js_key))
        return urls

    @classmethod
    def from_env(cls, **overrides: Any) -> CourierConfig:
        """Create configuration from environment variables.

        Reads ``COURIER_KAKAO_JS_KEY``, ``COURIER_KAKAO_REST_KEY`` and the
        optional ``COURIER_*`` variables below.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        CourierConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "COURIER_KAKAO_JS_KEY": "kakao_js_key",
            "COURIER_KAKAO_REST_KEY": "kakao_rest_key",
            "COURIER_PLATFORM": "platform",
            "COURIER_KAKAO_BASE_URL": "kakao_base_url",
            "COURIER_NOMINATIM_URL": "nominatim_url",
            "COURIER_USER_AGENT": "user_agent",
            "COURIER_PAGE_ORIGIN": "page_origin",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        # Numeric fields, handled separately
        _ENV_FLOAT_MAP = {
            "COURIER_READY_TIMEOUT": "ready_timeout",
            "COURIER_MINUTES_PER_KM": "minutes_per_km",
            "COURIER_HTTP_TIMEOUT": "http_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise CourierConfigError(f"{env_key} must be a number, got {val!r}") from exc

        limit_env = env.get("COURIER_SEARCH_LIMIT")
        if limit_env is not None and "search_limit" not in overrides:
            try:
                config_kwargs["search_limit"] = int(limit_env)
            except ValueError as exc:
                raise CourierConfigError(f"COURIER_SEARCH_LIMIT must be an integer, got {limit_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
