"""Manifest detection pipeline"""

import asyncio
import logging
import traceback
from typing import Optional

import aiodogstatsd

from manifest_finder.configs import settings
from manifest_finder.exceptions import InvalidManifestJsonError, ManifestFinderError
from manifest_finder.finder.content import ManifestContentFetcher
from manifest_finder.finder.decoder import ManifestDecoder, parse_raw_manifest
from manifest_finder.finder.fetcher import FetchClient, get_fetch_client
from manifest_finder.finder.locator import ManifestLocator
from manifest_finder.finder.models import (
    DetectionMode,
    ManifestNode,
    ManifestNodeResult,
    ManifestResult,
    RawManifestValue,
)
from manifest_finder.finder.scorer import ManifestScorer

logger = logging.getLogger(__name__)


class ManifestFinder:
    """Detect, download and score the web app manifest of a page.

    The page is loaded, its manifest link located, the manifest downloaded, decoded and
    scored. In `DetectionMode.ALL` the page's other manifest links are fetched too, each
    on a best-effort basis. Failures never raise; they end up in `ManifestResult.error`.
    """

    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        metrics_client: Optional[aiodogstatsd.Client] = None,
        detection_timeout: Optional[float] = None,
        max_concurrent_additional_manifests: Optional[int] = None,
    ) -> None:
        fetch_client = fetch_client or get_fetch_client()
        self.locator = ManifestLocator(fetch_client)
        self.content_fetcher = ManifestContentFetcher(fetch_client)
        self.decoder = ManifestDecoder()
        self.scorer = ManifestScorer(fetch_client)
        self.metrics_client = metrics_client
        self.detection_timeout: float = (
            detection_timeout
            if detection_timeout is not None
            else settings.runtime.detection_timeout_sec
        )
        self.max_concurrent_additional_manifests: int = (
            max_concurrent_additional_manifests
            or settings.runtime.max_concurrent_additional_manifests
        )

    async def run(
        self, url: str, mode: DetectionMode = DetectionMode.FIRST, verbose: bool = False
    ) -> ManifestResult:
        """Run detection for the page at `url`.

        When `verbose` is set, errors are reported with their full cause chain and
        tracebacks instead of a plain message.
        """
        try:
            result = await asyncio.wait_for(self._detect(url, mode), self.detection_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Manifest detection for {url} timed out")
            result = ManifestResult(
                error=f"Manifest detection timed out after {self.detection_timeout} seconds"
            )
        except InvalidManifestJsonError as e:
            logger.warning(f"Manifest for {url} contains invalid JSON: {e}")
            self._increment("detect.invalid_json", mode)
            result = ManifestResult(
                error=self._describe_error(e, verbose),
                manifest_contains_invalid_json=True,
                warnings=e.warnings,
            )
        except ManifestFinderError as e:
            logger.warning(f"Manifest detection for {url} failed: {e}")
            result = ManifestResult(error=self._describe_error(e, verbose))
        except Exception as e:
            logger.exception(f"Unexpected error during manifest detection for {url}")
            result = ManifestResult(error=self._describe_error(e, verbose))

        if result.manifest_url is not None:
            logger.info(f"Detected manifest {result.manifest_url} for {url}")
            self._increment("detect.success", mode)
        else:
            self._increment("detect.failure", mode)
        return result

    async def _detect(self, url: str, mode: DetectionMode) -> ManifestResult:
        document = await self.locator.load_page(url)
        node_result = await self.locator.locate(document)
        context = await self.content_fetcher.fetch_manifest(node_result)

        decoded = self.decoder.decode(context.contents)
        if decoded.invalid_json:
            raise InvalidManifestJsonError(
                decoded.error or "Manifest contains invalid JSON", warnings=decoded.warnings
            )

        score = await self.scorer.score(decoded.manifest, context.url)
        additional_manifests = (
            await self._fetch_additional_manifests(node_result)
            if mode is DetectionMode.ALL
            else {}
        )
        return ManifestResult(
            manifest_url=context.url,
            manifest_score=score,
            manifest_contents=decoded.raw_manifest,
            warnings=decoded.warnings,
            additional_manifests=additional_manifests,
        )

    async def _fetch_additional_manifests(
        self, node_result: ManifestNodeResult
    ) -> dict[str, RawManifestValue]:
        semaphore = asyncio.Semaphore(self.max_concurrent_additional_manifests)

        async def fetch(node: ManifestNode) -> Optional[tuple[str, RawManifestValue]]:
            async with semaphore:
                return await self._fetch_additional_manifest(node_result, node)

        results = await asyncio.gather(*(fetch(node) for node in node_result.additional))
        return dict(result for result in results if result is not None)

    async def _fetch_additional_manifest(
        self, node_result: ManifestNodeResult, node: ManifestNode
    ) -> Optional[tuple[str, RawManifestValue]]:
        try:
            context = await self.content_fetcher.fetch_manifest(node_result, node)
        except ManifestFinderError as e:
            logger.warning(f"Unable to fetch additional manifest at {node.href}: {e}")
            return None
        except Exception:
            logger.exception(f"Unexpected error fetching additional manifest at {node.href}")
            return None
        return context.url, parse_raw_manifest(context.contents)

    @staticmethod
    def _describe_error(error: BaseException, verbose: bool) -> str:
        if verbose:
            return "".join(traceback.format_exception(error))
        return str(error)

    def _increment(self, metric: str, mode: DetectionMode) -> None:
        if self.metrics_client is not None:
            self.metrics_client.increment(metric, tags={"mode": mode.value})
