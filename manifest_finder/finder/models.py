"""Data models for manifest detection"""

from enum import Enum, unique
from typing import Optional
from urllib.parse import urljoin, urlparse

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel

from manifest_finder.finder.constants import (
    IMAGE_FORMAT_SORT_ORDER,
    OTHER_IMAGE_FORMAT_SORT_ORDER,
)

# A decoded JSON document as-is. Keeps "absent" and "null" apart, which the typed
# manifest can't do since every field defaults to None.
RawManifestValue = JsonValue

# Criterion name -> points awarded (0 when unmet).
ManifestScore = dict[str, int]


@unique
class DetectionMode(str, Enum):
    """Which manifests declared by a page get fetched."""

    FIRST = "first"
    ALL = "all"


class WebManifestIcon(BaseModel):
    """An image resource of a manifest (used for `icons` and `screenshots`)."""

    src: Optional[str] = None
    type: Optional[str] = None
    sizes: Optional[str] = None
    purpose: Optional[str] = None
    platform: Optional[str] = None

    def get_src_url(self, manifest_url: str) -> Optional[str]:
        """Resolve `src` against the manifest URL. None when no absolute URL results."""
        if not self.src or not self.src.strip():
            return None
        try:
            resolved = urljoin(manifest_url, self.src.strip())
            parsed = urlparse(resolved)
        except ValueError:
            return None
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None
        return resolved

    def purposes(self) -> list[str]:
        """Return the declared purposes. No purpose means "any"."""
        if not self.purpose or not self.purpose.strip():
            return ["any"]
        return self.purpose.split()

    def is_any_purpose(self) -> bool:
        """Check if the icon can be used for any purpose."""
        return "any" in (purpose.lower() for purpose in self.purposes())

    def is_maskable(self) -> bool:
        """Check if the icon declares the maskable purpose."""
        return "maskable" in (purpose.lower() for purpose in self.purposes())

    def all_dimensions(self) -> list[tuple[int, int]]:
        """Parse `sizes` into (width, height) pairs.

        Tokens that aren't two positive integers separated by "x" are dropped.
        """
        if self.sizes is None:
            return []

        dimensions = []
        for token in self.sizes.split():
            width, separator, height = token.lower().partition("x")
            if not separator:
                continue
            try:
                size = (int(width), int(height))
            except ValueError:
                continue
            if size[0] > 0 and size[1] > 0:
                dimensions.append(size)
        return dimensions

    def largest_dimension(self) -> Optional[tuple[int, int]]:
        """Return the largest declared size, or None if no size parsed."""
        dimensions = self.all_dimensions()
        if not dimensions:
            return None
        return max(dimensions, key=lambda size: size[0] + size[1])

    def has_dimension_or_larger(self, width: int, height: int) -> bool:
        """Check if the largest declared size is at least width x height."""
        largest = self.largest_dimension() or (0, 0)
        return largest[0] >= width and largest[1] >= height

    def is_square(self) -> bool:
        """Check if any declared size is square."""
        return any(width == height for width, height in self.all_dimensions())

    def is_png(self) -> bool:
        """Check the MIME type, then the file extension, for PNG."""
        return self.type == "image/png" or (
            self.src is not None and self.src.lower().endswith(".png")
        )

    def format_sort_order(self) -> int:
        """Return the preference of this icon's format: PNG, JPEG, other rasters, SVG."""
        return IMAGE_FORMAT_SORT_ORDER.get(self.type, OTHER_IMAGE_FORMAT_SORT_ORDER)

    def preference_key(self) -> tuple[int, int, int]:
        """Sort key for picking an icon among equally sized candidates (lower is better)."""
        return (
            0 if self.src else 1,
            0 if self.is_any_purpose() else 1,
            self.format_sort_order(),
        )


class WebManifestShortcutItem(BaseModel):
    """A shortcut of a manifest."""

    name: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    short_name: Optional[str] = None
    icons: Optional[list[WebManifestIcon]] = None


class Fingerprint(BaseModel):
    """A fingerprint of a related application."""

    type: Optional[str] = None
    value: Optional[str] = None


class ExternalApplicationResource(BaseModel):
    """A native application related to the web app."""

    platform: Optional[str] = None
    url: Optional[str] = None
    id: Optional[str] = None
    min_version: Optional[str] = None
    fingerprints: Optional[list[Fingerprint]] = None


class WebAppManifest(BaseModel):
    """W3C web app manifest. https://www.w3.org/TR/appmanifest/"""

    background_color: Optional[str] = None
    description: Optional[str] = None
    dir: Optional[str] = None
    display: Optional[str] = None
    lang: Optional[str] = None
    name: Optional[str] = None
    orientation: Optional[str] = None
    prefer_related_applications: Optional[bool] = None
    related_applications: Optional[list[ExternalApplicationResource]] = None
    scope: Optional[str] = None
    short_name: Optional[str] = None
    start_url: Optional[str] = None
    theme_color: Optional[str] = None
    categories: Optional[list[str]] = None
    screenshots: Optional[list[WebManifestIcon]] = None
    iarc_rating_id: Optional[str] = None
    icons: Optional[list[WebManifestIcon]] = None
    shortcuts: Optional[list[WebManifestShortcutItem]] = None

    def is_empty(self) -> bool:
        """Check whether every field is still at its zero value."""
        return all(
            value is None
            for value in (
                self.background_color,
                self.description,
                self.dir,
                self.display,
                self.lang,
                self.name,
                self.orientation,
                self.prefer_related_applications,
                self.related_applications,
                self.scope,
                self.short_name,
                self.start_url,
                self.theme_color,
                self.categories,
                self.screenshots,
                self.iarc_rating_id,
                self.icons,
                self.shortcuts,
            )
        )

    def icons_with_dimensions(self, width: int, height: int) -> list[WebManifestIcon]:
        """Find icons declaring exactly width x height, best candidates first."""
        if not self.icons:
            return []
        matches = [icon for icon in self.icons if (width, height) in icon.all_dimensions()]
        return sorted(matches, key=WebManifestIcon.preference_key)

    def icon_with_dimensions(self, dimensions: str) -> Optional[WebManifestIcon]:
        """Find the best icon for a "WxH" string, e.g. "512x512"."""
        width, _, height = dimensions.lower().partition("x")
        try:
            size = (int(width), int(height))
        except ValueError:
            raise ValueError(
                f"Invalid dimensions string. Expected format 100x100, but received {dimensions}"
            ) from None
        matches = self.icons_with_dimensions(*size)
        return matches[0] if matches else None


class ManifestNode(BaseModel):
    """A <link rel="manifest"> element, detached from its document."""

    href: Optional[str] = None
    rel: Optional[str] = None
    outer_html: str = ""


class ManifestNodeResult(BaseModel):
    """Manifest link elements found on a page."""

    page_url: str
    primary: ManifestNode
    additional: list[ManifestNode] = Field(default_factory=list)
    base_href: Optional[str] = None


class ManifestContext(BaseModel):
    """Location and raw JSON text of a downloaded (or data URL decoded) manifest."""

    url: str
    contents: str


class DecodeResult(BaseModel):
    """Outcome of decoding manifest JSON text."""

    manifest: Optional[WebAppManifest] = None
    raw_manifest: RawManifestValue = None
    invalid_json: bool = False
    warnings: dict[str, list[str]] = Field(default_factory=dict)
    error: Optional[str] = None


class ManifestResult(BaseModel):
    """The response of a detection run. Serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    manifest_url: Optional[str] = None
    manifest_score: Optional[ManifestScore] = None
    manifest_contents: RawManifestValue = None
    error: Optional[str] = None
    manifest_contains_invalid_json: bool = False
    warnings: dict[str, list[str]] = Field(default_factory=dict)
    additional_manifests: dict[str, RawManifestValue] = Field(default_factory=dict)
