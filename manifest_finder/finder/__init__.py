"""Detection, decoding and scoring of web app manifests"""

from manifest_finder.finder.models import DetectionMode, ManifestResult
from manifest_finder.finder.pipeline import ManifestFinder

__all__ = ["DetectionMode", "ManifestFinder", "ManifestResult"]
