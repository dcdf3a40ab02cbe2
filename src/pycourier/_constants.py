"""Internal constants shared across the library."""

EARTH_RADIUS_KM = 6371.0

# Average courier pace used for ETA projection.
DEFAULT_MINUTES_PER_KM = 3.0

# Seconds the rendering surface has to signal readiness after session start.
DEFAULT_READY_TIMEOUT_S = 8.0

DEFAULT_CENTER: tuple[float, float] = (37.5665, 126.978)
DEFAULT_MAP_LEVEL = 4
DEFAULT_PAGE_ORIGIN = "https://localhost"

MAP_SDK_URL_TEMPLATES: tuple[str, ...] = (
    "https://dapi.kakao.com/v2/maps/sdk.js?appkey={app_key}&autoload=false",
    "http://dapi.kakao.com/v2/maps/sdk.js?appkey={app_key}&autoload=false",
)

KAKAO_BASE_URL = "https://dapi.kakao.com"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "pycourier/0.1 (+https://github.com/pycourier/pycourier)"

# Hint appended to timeout failures: the SDK silently refuses to boot when
# the page origin is not registered for the JavaScript key.
DOMAIN_HINT = (
    'Check that the page origin (e.g. https://localhost) is registered under '
    '"Platform > Web > Site domain" in the Kakao developer console.'
)

# ------------------------------------------------------------------
# Navigation handoff (Tmap)
# ------------------------------------------------------------------

TMAP_ROUTE_URL = "tmap://route?rGoName={name}&rGoX={lng}&rGoY={lat}"
TMAP_LEGACY_URL = "tmap://?rGoName={name}&rGoX={lng}&rGoY={lat}"
TMAP_ANDROID_MARKET_URL = "market://details?id=com.skt.tmap.ku"
TMAP_ANDROID_STORE_URL = "https://play.google.com/store/apps/details?id=com.skt.tmap.ku"
TMAP_IOS_STORE_URL = "https://apps.apple.com/kr/app/id431589174"

SUPPORTED_PLATFORMS: frozenset[str] = frozenset({"android", "ios"})
