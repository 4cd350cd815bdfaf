"""Constants for manifest detection"""

import re

PARSER: str = "html.parser"

# Note: this should include PWABuilderHttpAgent, as some CDNs allow-list that token.
USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/96.0.4664.110 Safari/537.36 Edg/96.0.1054.57 PWABuilderHttpAgent"
)

# Sent on a single retry after a 403. Same browser string without the automation token.
ALTERNATE_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/96.0.4664.110 Safari/537.36 Edg/96.0.1054.57"
)

# Headers Edge itself adds. Some sites block programmatic requests without them.
REQUEST_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "sec-ch-ua": '"Microsoft Edge";v="96","Chromium";v="96",";Not A Brand";v="99"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": "Windows",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-origin",
    "sec-fetch-user": "?1",
}

HTML_MIME_TYPES: tuple[str, ...] = ("text/html",)

MANIFEST_MIME_TYPES: tuple[str, ...] = ("application/json", "application/manifest+json")

DATA_URL_PREFIX: str = "data:application/manifest+json,"

# Extracts the target of <meta http-equiv="refresh" content="0; url='https://target'">
META_REFRESH_URL_PATTERN: re.Pattern = re.compile(r"""url\s*=\s*['"]*([^'"]+)""", re.IGNORECASE)

DISPLAY_TYPES: frozenset[str] = frozenset({"fullscreen", "standalone", "minimal-ui", "browser"})

ORIENTATION_TYPES: frozenset[str] = frozenset(
    {
        "any",
        "natural",
        "landscape",
        "portrait",
        "portrait-primary",
        "portrait-secondary",
        "landscape-primary",
        "landscape-secondary",
    }
)

# Points awarded to each satisfied score criterion.
CRITERION_POINTS: int = 10

LARGE_ICON_SIZE: int = 512

# Ordering of image MIME types when picking a representative icon (lower is better).
# Missing types are common and usually PNG, so they sort with PNG.
IMAGE_FORMAT_SORT_ORDER: dict[str | None, int] = {
    "image/png": 0,
    "": 0,
    None: 0,
    "image/jpeg": 1,
    "image/jpg": 1,
    "image/svg+xml": 3,
}
OTHER_IMAGE_FORMAT_SORT_ORDER: int = 2
