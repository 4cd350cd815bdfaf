"""URL resolution heuristics for manifest references"""

import ipaddress
from typing import Optional
from urllib.parse import unquote, urljoin, urlparse, urlunparse

from manifest_finder.exceptions import ManifestNotFoundError
from manifest_finder.finder.constants import DATA_URL_PREFIX


def is_absolute_http_url(url: Optional[str]) -> bool:
    """Check if URL is absolute and fetchable over HTTP(S)."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def apply_base_href(page_url: str, manifest_href: str, base_href: Optional[str]) -> str:
    """Resolve `manifest_href` against a <base href>, which may itself be relative.

    A missing, blank or bare root ("/") base leaves the href untouched.

    Raises:
        ManifestNotFoundError: if the base or the href isn't a parseable URL.
    """
    if not base_href or not base_href.strip() or base_href.strip() == "/":
        return manifest_href
    try:
        root = urljoin(page_url, base_href.strip())
        return urljoin(root, manifest_href)
    except ValueError as e:
        raise ManifestNotFoundError(
            f"Unable to apply base href {base_href} to manifest href {manifest_href}: {e}",
            details={"manifestHref": manifest_href, "baseHref": base_href},
        ) from e


def is_data_url(manifest_href: str) -> bool:
    """Check if the href embeds the manifest as a data URL."""
    return manifest_href[: len(DATA_URL_PREFIX)].lower() == DATA_URL_PREFIX


def decode_data_url(manifest_href: str) -> Optional[str]:
    """Return the percent-decoded manifest JSON of a data URL href, else None."""
    if not is_data_url(manifest_href):
        return None
    return unquote(manifest_href[len(DATA_URL_PREFIX) :])


def resolve_manifest_url(page_url: str, manifest_href: str) -> Optional[str]:
    """Combine page URL and href with standard relative URL resolution."""
    try:
        resolved = urljoin(page_url, manifest_href.strip())
    except ValueError:
        return None
    return resolved if is_absolute_http_url(resolved) else None


def local_path_manifest_url(page_url: str, manifest_href: str) -> Optional[str]:
    """Resolve the href as if the page path were a directory.

    `https://x.com/app` + `site.webmanifest` gives `https://x.com/app/site.webmanifest`
    here, where standard resolution gives `https://x.com/site.webmanifest`.
    None when the page path is the root or already ends with a slash.
    """
    parsed = urlparse(page_url)
    if not parsed.path or parsed.path == "/" or parsed.path.endswith("/"):
        return None
    directory_url = urlunparse((parsed.scheme, parsed.netloc, parsed.path + "/", "", "", ""))
    return resolve_manifest_url(directory_url, manifest_href)


def validate_target_url(url: str) -> str:
    """Check a caller-supplied page URL is absolute HTTP(S) and not a loopback address.

    Raises:
        ValueError: describing why the URL can't be used.
    """
    url = url.strip()
    if not is_absolute_http_url(url):
        raise ValueError(f"{url!r} is not an absolute HTTP(S) URL")

    host = (urlparse(url).hostname or "").rstrip(".").lower()
    if host == "localhost" or host.endswith(".localhost"):
        raise ValueError(f"{url!r} points at a loopback address")
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return url
    if address.is_loopback:
        raise ValueError(f"{url!r} points at a loopback address")
    return url
