# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the models.py module."""

import pytest

from manifest_finder.finder.models import ManifestResult, WebAppManifest, WebManifestIcon


@pytest.mark.parametrize(
    ["sizes", "expected"],
    [
        (None, []),
        ("", []),
        ("48x48", [(48, 48)]),
        ("16x16 32X32", [(16, 16), (32, 32)]),
        ("any 512x512", [(512, 512)]),
        ("0x0 -1x5 axb 12x 64x64", [(64, 64)]),
    ],
    ids=["none", "empty", "single", "multiple", "any_keyword", "invalid_tokens"],
)
def test_icon_all_dimensions(sizes: str | None, expected: list[tuple[int, int]]) -> None:
    """Test that sizes parse into dimensions, dropping invalid tokens."""
    assert WebManifestIcon(sizes=sizes).all_dimensions() == expected


def test_icon_largest_dimension() -> None:
    """Test that the largest declared size is found."""
    icon = WebManifestIcon(sizes="192x192 512x512 256x256")

    assert icon.largest_dimension() == (512, 512)
    assert icon.has_dimension_or_larger(512, 512)
    assert not icon.has_dimension_or_larger(1024, 1024)
    assert WebManifestIcon().largest_dimension() is None


@pytest.mark.parametrize(
    ["icon", "expected"],
    [
        (WebManifestIcon(type="image/png"), True),
        (WebManifestIcon(src="/ICON.PNG"), True),
        (WebManifestIcon(src="/icon.png?v=2"), False),
        (WebManifestIcon(src="/icon.webp", type="image/webp"), False),
    ],
    ids=["mime_type", "extension", "query_string", "webp"],
)
def test_icon_is_png(icon: WebManifestIcon, expected: bool) -> None:
    """Test PNG detection by MIME type and file extension."""
    assert icon.is_png() is expected


@pytest.mark.parametrize(
    ["purpose", "any_purpose", "maskable"],
    [
        (None, True, False),
        ("  ", True, False),
        ("any", True, False),
        ("Maskable", False, True),
        ("any maskable", True, True),
        ("monochrome", False, False),
    ],
)
def test_icon_purposes(purpose: str | None, any_purpose: bool, maskable: bool) -> None:
    """Test purpose checks, where no purpose means "any"."""
    icon = WebManifestIcon(purpose=purpose)

    assert icon.is_any_purpose() is any_purpose
    assert icon.is_maskable() is maskable


@pytest.mark.parametrize(
    ["src", "expected"],
    [
        ("/icons/a.png", "https://x.com/icons/a.png"),
        ("a.png", "https://x.com/static/a.png"),
        ("https://cdn.x.com/a.png", "https://cdn.x.com/a.png"),
        ("", None),
        (None, None),
        ("data:image/png;base64,AAAA", None),
        ("https://[bad/icon.png", None),
    ],
    ids=["root_relative", "relative", "absolute", "empty", "missing", "data_url", "bad_host"],
)
def test_icon_get_src_url(src: str | None, expected: str | None) -> None:
    """Test that icon sources resolve against the manifest URL."""
    icon = WebManifestIcon(src=src)

    assert icon.get_src_url("https://x.com/static/manifest.json") == expected


def test_icon_format_sort_order() -> None:
    """Test that PNG and untyped icons sort first and SVG last."""
    types = [None, "image/svg+xml", "image/webp", "image/jpeg", "image/png"]
    ordered = sorted(types, key=lambda t: WebManifestIcon(type=t).format_sort_order())

    assert ordered == [None, "image/png", "image/jpeg", "image/webp", "image/svg+xml"]


def test_manifest_is_empty() -> None:
    """Test that a manifest is empty only when every field is unset."""
    assert WebAppManifest().is_empty()
    assert not WebAppManifest(prefer_related_applications=False).is_empty()
    assert not WebAppManifest(categories=[]).is_empty()


def test_manifest_icons_with_dimensions() -> None:
    """Test that icons of exact dimensions are returned best first."""
    svg = WebManifestIcon(src="/a.svg", type="image/svg+xml", sizes="512x512")
    png = WebManifestIcon(src="/a.png", type="image/png", sizes="192x192 512x512")
    no_src = WebManifestIcon(type="image/png", sizes="512x512")
    manifest = WebAppManifest(
        icons=[svg, no_src, WebManifestIcon(src="/b.png", sizes="1024x1024"), png]
    )

    assert manifest.icons_with_dimensions(512, 512) == [png, svg, no_src]
    assert manifest.icon_with_dimensions("512x512") == png
    assert manifest.icon_with_dimensions("64x64") is None
    assert WebAppManifest().icons_with_dimensions(512, 512) == []


def test_manifest_icon_with_invalid_dimensions() -> None:
    """Test that an unparseable dimensions string raises ValueError."""
    with pytest.raises(ValueError) as excinfo:
        WebAppManifest().icon_with_dimensions("large")

    assert "Expected format 100x100" in str(excinfo.value)


def test_manifest_result_serializes_camel_case() -> None:
    """Test that results serialize with camelCase keys."""
    result = ManifestResult(manifest_url="https://x.com/m.json", manifest_contents={"name": "A"})

    assert result.model_dump(mode="json", by_alias=True) == {
        "manifestUrl": "https://x.com/m.json",
        "manifestScore": None,
        "manifestContents": {"name": "A"},
        "error": None,
        "manifestContainsInvalidJson": False,
        "warnings": {},
        "additionalManifests": {},
    }
