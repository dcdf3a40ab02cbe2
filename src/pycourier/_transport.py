"""HTTP transport for the geocoding providers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pycourier._redact import redact_for_log, redact_url
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the resolver modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed JSON GET transport."""

    def __init__(self, config: CourierConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.http_timeout)

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET *url* and decode the JSON body.

        Raises
        ------
        CourierTransportError
            On network errors, timeouts, non-200 responses or invalid JSON.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
        }
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s params=%s", redact_url(url), redact_for_log(dict(params or {})))

        try:
            async with self._http.get(url, params=params, headers=request_headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise CourierTransportError(
                        f"HTTP {resp.status} from {redact_url(url)}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except CourierTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise CourierTransportError(
                f"Request to {redact_url(url)} failed: {exc!r}",
                url=url,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise CourierTransportError(
                f"Invalid JSON from {redact_url(url)}: {text[:200]}",
                url=url,
            ) from exc
