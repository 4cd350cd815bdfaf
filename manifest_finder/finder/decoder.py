"""Fault-tolerant decoding of manifest JSON"""

import logging
from typing import Any, Optional

import orjson
from pydantic import BaseModel, ValidationError

from manifest_finder.finder.models import (
    DecodeResult,
    ExternalApplicationResource,
    Fingerprint,
    RawManifestValue,
    WebAppManifest,
    WebManifestIcon,
    WebManifestShortcutItem,
)

logger = logging.getLogger(__name__)

# Expected JSON type of every field the lenient decoder recovers. `[X]` means an array
# of X, a model class means a nested object.
FIELD_TYPES: dict[type[BaseModel], dict[str, Any]] = {
    WebAppManifest: {
        "background_color": str,
        "description": str,
        "dir": str,
        "display": str,
        "lang": str,
        "name": str,
        "orientation": str,
        "prefer_related_applications": bool,
        "related_applications": [ExternalApplicationResource],
        "scope": str,
        "short_name": str,
        "start_url": str,
        "theme_color": str,
        "categories": [str],
        "screenshots": [WebManifestIcon],
        "iarc_rating_id": str,
        "icons": [WebManifestIcon],
        "shortcuts": [WebManifestShortcutItem],
    },
    WebManifestIcon: {
        "src": str,
        "type": str,
        "sizes": str,
        "purpose": str,
        "platform": str,
    },
    WebManifestShortcutItem: {
        "name": str,
        "url": str,
        "description": str,
        "short_name": str,
        "icons": [WebManifestIcon],
    },
    ExternalApplicationResource: {
        "platform": str,
        "url": str,
        "id": str,
        "min_version": str,
        "fingerprints": [Fingerprint],
    },
    Fingerprint: {
        "type": str,
        "value": str,
    },
}

_INVALID = object()


def strip_byte_order_mark(text: str) -> str:
    """Drop a leading UTF-8 byte order mark, which JSON parsers reject."""
    return text.removeprefix("\ufeff")


def json_type_name(value: Any) -> str:
    """Name the JSON type of a decoded value."""
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
        case _:
            return type(value).__name__


def _expected_type_name(expected: Any) -> str:
    if isinstance(expected, list):
        return f"an array of {_expected_type_name(expected[0])} values"
    if expected is str:
        return "string"
    if expected is bool:
        return "boolean"
    return "object"


class ManifestDecoder:
    """Decode manifest JSON text into a `WebAppManifest`.

    Decoding runs in three stages:
    1. Parse the text as JSON. A syntax error, or a top-level value other than an
       object, makes the document invalid JSON.
    2. Validate the whole document strictly against the manifest schema.
    3. If strict validation fails, recover field by field. A field of the wrong type
       gets a warning keyed by its JSON path (e.g. `icons[0].sizes`) and is left unset.

    A document in which no manifest field could be decoded is reported as invalid JSON
    too. The decoder holds no state, so one instance can be shared.
    """

    def decode(self, json_text: str) -> DecodeResult:
        """Decode `json_text`. Never raises."""
        json_text = strip_byte_order_mark(json_text)
        raw_manifest = self.parse_raw(json_text)
        if not isinstance(raw_manifest, dict):
            error = (
                "Manifest JSON could not be parsed"
                if raw_manifest is None
                else f"Manifest JSON must be an object, but was {json_type_name(raw_manifest)}"
            )
            return DecodeResult(raw_manifest=raw_manifest, invalid_json=True, error=error)

        warnings: dict[str, list[str]] = {}
        try:
            manifest = WebAppManifest.model_validate_json(json_text, strict=True)
        except ValidationError as e:
            logger.info(f"Strict manifest decoding failed with {e.error_count()} errors")
            manifest = self._decode_object(WebAppManifest, raw_manifest, "", warnings)

        if manifest.is_empty():
            return DecodeResult(
                raw_manifest=raw_manifest,
                invalid_json=True,
                warnings=warnings,
                error="Manifest JSON contained no valid manifest fields",
            )

        if warnings:
            logger.warning(f"Manifest decoded with warnings on fields: {', '.join(warnings)}")
        return DecodeResult(manifest=manifest, raw_manifest=raw_manifest, warnings=warnings)

    @staticmethod
    def parse_raw(json_text: str) -> RawManifestValue:
        """Parse JSON text into a generic value tree. None if it isn't JSON."""
        try:
            return orjson.loads(strip_byte_order_mark(json_text))
        except orjson.JSONDecodeError as e:
            logger.warning(f"Failed to parse manifest JSON: {e}")
            return None

    def _decode_object(
        self,
        model: type[BaseModel],
        data: dict[str, Any],
        path: str,
        warnings: dict[str, list[str]],
    ) -> Any:
        values = {}
        for name, expected in FIELD_TYPES[model].items():
            value = data.get(name)
            if value is None:
                continue
            field_path = f"{path}.{name}" if path else name
            decoded = self._decode_value(value, expected, field_path, warnings)
            if decoded is not _INVALID:
                values[name] = decoded
        return model(**values)

    def _decode_value(
        self, value: Any, expected: Any, path: str, warnings: dict[str, list[str]]
    ) -> Any:
        if isinstance(expected, list):
            if not isinstance(value, list):
                self._warn(
                    warnings,
                    path,
                    f"Must be an array. Expected {_expected_type_name(expected)}, "
                    f"but got {json_type_name(value)}.",
                )
                return _INVALID
            items = []
            for index, item in enumerate(value):
                decoded = self._decode_value(item, expected[0], f"{path}[{index}]", warnings)
                if decoded is not _INVALID:
                    items.append(decoded)
            return items

        if expected in (str, bool):
            # bool is an int subclass, but JSON numbers aren't booleans.
            if type(value) is expected:
                return value
        elif isinstance(value, dict):
            return self._decode_object(expected, value, path, warnings)

        self._warn(
            warnings,
            path,
            f"Expected {_expected_type_name(expected)}, but got {json_type_name(value)}.",
        )
        return _INVALID

    @staticmethod
    def _warn(warnings: dict[str, list[str]], path: str, message: str) -> None:
        warnings.setdefault(path, []).append(message)


def decode_manifest(json_text: str) -> DecodeResult:
    """Decode manifest JSON text with a fresh decoder."""
    return ManifestDecoder().decode(json_text)


def parse_raw_manifest(json_text: str) -> Optional[dict[str, Any]]:
    """Parse manifest JSON into a raw object, or None if it isn't a JSON object."""
    raw = ManifestDecoder.parse_raw(json_text)
    return raw if isinstance(raw, dict) else None
