"""Downloading the JSON text of a located manifest"""

import logging
from typing import Optional

from manifest_finder.exceptions import FetchError, ManifestNotFoundError
from manifest_finder.finder.constants import MANIFEST_MIME_TYPES
from manifest_finder.finder.fetcher import FetchClient
from manifest_finder.finder.models import ManifestContext, ManifestNode, ManifestNodeResult
from manifest_finder.finder.resolver import (
    apply_base_href,
    decode_data_url,
    local_path_manifest_url,
    resolve_manifest_url,
)

logger = logging.getLogger(__name__)


class ManifestContentFetcher:
    """Resolve a manifest link to an absolute URL and fetch its contents."""

    def __init__(self, fetch_client: FetchClient) -> None:
        self.fetch_client = fetch_client

    async def fetch_manifest(
        self, node_result: ManifestNodeResult, node: Optional[ManifestNode] = None
    ) -> ManifestContext:
        """Fetch the manifest `node` points to, the primary node by default.

        Data URL manifests are decoded in place without any network call.

        Raises:
            ManifestNotFoundError: if the node has no href, or no candidate URL yielded
                any content.
        """
        node = node or node_result.primary
        if not node.href or not node.href.strip():
            raise ManifestNotFoundError(
                "Manifest element was found, but href was missing. "
                f"Raw HTML was {node.outer_html}",
                details={"manifestNodeHtml": node.outer_html},
            )

        page_url = node_result.page_url
        manifest_href = apply_base_href(page_url, node.href.strip(), node_result.base_href)
        logger.info(f"Manifest node detected with href {manifest_href}")

        contents = decode_data_url(manifest_href)
        if contents is not None:
            logger.info("Manifest node href is data URL encoded string.")
            return ManifestContext(url=manifest_href, contents=contents)

        absolute_url = resolve_manifest_url(page_url, manifest_href)
        if absolute_url is not None:
            logger.info(f"Attempting manifest download using absolute URL {absolute_url}")
            contents = await self._try_fetch(absolute_url)
            if contents:
                return ManifestContext(url=absolute_url, contents=contents)

        local_path_url = local_path_manifest_url(page_url, manifest_href)
        if local_path_url is not None and local_path_url != absolute_url:
            logger.info(
                f"Page URL {page_url} has a local path. Attempting manifest download "
                f"with local path fallback {local_path_url}"
            )
            contents = await self._try_fetch(local_path_url)
            if contents:
                return ManifestContext(url=local_path_url, contents=contents)

        raise ManifestNotFoundError(
            f"Unable to detect manifest. Attempted manifest download at {absolute_url} "
            f"and {local_path_url}, but both failed.",
            details={
                "manifestHref": manifest_href,
                "manifestNodeHtml": node.outer_html,
                "attemptedUrls": [url for url in (absolute_url, local_path_url) if url],
            },
        )

    async def _try_fetch(self, url: str) -> Optional[str]:
        try:
            contents = await self.fetch_client.fetch(url, MANIFEST_MIME_TYPES)
        except FetchError as e:
            logger.warning(f"Unable to download manifest at {url}: {e}")
            return None
        if not contents or not contents.strip():
            logger.warning(f"Manifest download at {url} returned no content")
            return None
        return contents
