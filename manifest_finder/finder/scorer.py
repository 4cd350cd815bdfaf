"""Completeness scoring of web app manifests"""

import logging
from typing import Optional

from manifest_finder.finder.constants import (
    CRITERION_POINTS,
    DISPLAY_TYPES,
    LARGE_ICON_SIZE,
    ORIENTATION_TYPES,
)
from manifest_finder.finder.fetcher import FetchClient
from manifest_finder.finder.models import ManifestScore, WebAppManifest, WebManifestIcon

logger = logging.getLogger(__name__)

REQUIRED_CRITERIA: tuple[str, ...] = (
    "hasManifest",
    "icons",
    "name",
    "short_name",
    "start_url",
    "hasSquarePng512Icon",
    "squarePng512IconResolves",
)
RECOMMENDED_CRITERIA: tuple[str, ...] = (
    "display",
    "background_color",
    "theme_color",
    "orientation",
    "screenshots",
    "maskable_icon",
    "shortcuts",
    "categories",
    "iconsSpecifySize",
    "iconsSpecifyType",
)
OPTIONAL_CRITERIA: tuple[str, ...] = ("iarc_rating_id", "related_applications")

ALL_CRITERIA: tuple[str, ...] = REQUIRED_CRITERIA + RECOMMENDED_CRITERIA + OPTIONAL_CRITERIA


def _is_set(value: Optional[str]) -> bool:
    return value is not None and bool(value.strip())


def _is_large_square_png(icon: WebManifestIcon) -> bool:
    return (
        icon.is_png()
        and icon.is_square()
        and icon.has_dimension_or_larger(LARGE_ICON_SIZE, LARGE_ICON_SIZE)
    )


def find_representative_icon(manifest: Optional[WebAppManifest]) -> Optional[WebManifestIcon]:
    """Pick the best large, square, any-purpose PNG icon of the manifest.

    Ties are broken by icons with a `src` first, then plain "any" purpose, then by
    format.
    """
    if manifest is None or not manifest.icons:
        return None
    candidates = [
        icon for icon in manifest.icons if icon.is_any_purpose() and _is_large_square_png(icon)
    ]
    if not candidates:
        return None
    return min(candidates, key=WebManifestIcon.preference_key)


def has_maskable_icon(manifest: WebAppManifest) -> bool:
    """Check for a large, square PNG icon with the maskable purpose."""
    return any(icon.is_maskable() and _is_large_square_png(icon) for icon in manifest.icons or [])


class ManifestScorer:
    """Score a manifest against a fixed set of criteria.

    Every criterion is worth the same number of points and scores 0 when unmet. The
    result always holds exactly the keys of `ALL_CRITERIA`.
    """

    def __init__(self, fetch_client: FetchClient) -> None:
        self.fetch_client = fetch_client

    async def score(self, manifest: Optional[WebAppManifest], manifest_url: str) -> ManifestScore:
        """Score `manifest`, probing whether its representative icon can be downloaded."""
        icon = find_representative_icon(manifest)
        icon_resolves = await self.icon_resolves(icon, manifest_url)

        if manifest is None:
            met = {criterion: False for criterion in ALL_CRITERIA}
        else:
            icons = manifest.icons or []
            # An empty icon list declares sizes and types for all of its icons.
            icons_declared = manifest.icons is not None
            met = {
                "hasManifest": True,
                "icons": len(icons) > 0,
                "name": _is_set(manifest.name),
                "short_name": _is_set(manifest.short_name),
                "start_url": _is_set(manifest.start_url),
                "hasSquarePng512Icon": icon is not None,
                "squarePng512IconResolves": icon_resolves,
                "display": manifest.display in DISPLAY_TYPES,
                "background_color": _is_set(manifest.background_color),
                "theme_color": _is_set(manifest.theme_color),
                "orientation": manifest.orientation in ORIENTATION_TYPES,
                "screenshots": bool(manifest.screenshots),
                "maskable_icon": has_maskable_icon(manifest),
                "shortcuts": bool(manifest.shortcuts),
                "categories": bool(manifest.categories),
                "iconsSpecifySize": icons_declared and all(_is_set(i.sizes) for i in icons),
                "iconsSpecifyType": icons_declared and all(_is_set(i.type) for i in icons),
                "iarc_rating_id": _is_set(manifest.iarc_rating_id),
                "related_applications": manifest.related_applications is not None,
            }

        return {criterion: CRITERION_POINTS if met[criterion] else 0 for criterion in ALL_CRITERIA}

    async def icon_resolves(self, icon: Optional[WebManifestIcon], manifest_url: str) -> bool:
        """Check with a HEAD request whether the icon can be downloaded. Never raises."""
        if icon is None:
            return False
        icon_url = icon.get_src_url(manifest_url)
        if icon_url is None:
            logger.info(
                f"Icon {icon.src} can't be resolved to an absolute URL from {manifest_url}"
            )
            return False
        return await self.fetch_client.resource_exists(icon_url)
