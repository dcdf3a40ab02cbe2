"""Hand a stop over to an external turn-by-turn navigation app.

The chain is a plain list of URLs: Tmap deep links first, then the store
page for the platform.  :func:`open_first` walks it and stops at the first
URL the opener accepts.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Awaitable, Callable, Iterable
from urllib.parse import quote

from pycourier._constants import (
    TMAP_ANDROID_MARKET_URL,
    TMAP_ANDROID_STORE_URL,
    TMAP_IOS_STORE_URL,
    TMAP_LEGACY_URL,
    TMAP_ROUTE_URL,
)
from pycourier.models.geo import Stop

_logger = logging.getLogger(__name__)

UrlOpener = Callable[[str], Awaitable[bool]]


def navigation_candidates(stop: Stop, platform: str) -> list[str]:
    """Ordered URLs to try for navigating to *stop* on *platform*."""
    params = {"name": quote(stop.address, safe=""), "lat": stop.lat, "lng": stop.lng}
    candidates = [TMAP_ROUTE_URL.format(**params), TMAP_LEGACY_URL.format(**params)]
    if platform == "android":
        candidates.extend([TMAP_ANDROID_MARKET_URL, TMAP_ANDROID_STORE_URL])
    elif platform == "ios":
        candidates.append(TMAP_IOS_STORE_URL)
    else:
        raise ValueError(f"unsupported platform: {platform!r}")
    return candidates


async def open_first(candidates: Iterable[str], opener: UrlOpener) -> str | None:
    """Try *candidates* in order; return the first URL that opened.

    An opener that raises counts as a failed attempt.
    """
    for url in candidates:
        try:
            opened = await opener(url)
        except Exception:
            _logger.debug("Opener raised for %s", url, exc_info=True)
            opened = False
        if opened:
            _logger.debug("Navigation handed off via %s", url)
            return url
        _logger.debug("Could not open %s", url)
    return None


async def default_opener(url: str) -> bool:
    """Open *url* with the system handler (:mod:`webbrowser`) off the loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, webbrowser.open, url)
