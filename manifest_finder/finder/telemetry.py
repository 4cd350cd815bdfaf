"""Recording of detection outcomes to the URL logging service"""

import asyncio
import logging
from functools import cache
from typing import Any, Optional

import httpx

from manifest_finder.configs import settings
from manifest_finder.finder.models import ManifestResult
from manifest_finder.utils.http_client import create_http_client

logger = logging.getLogger(__name__)


def build_record(url: str, result: ManifestResult, elapsed_ms: float) -> dict[str, Any]:
    """Summarize a detection run for the URL logging service."""
    score = result.manifest_score
    return {
        "url": url,
        "success": result.manifest_url is not None,
        "scoreSum": sum(score.values()) if score is not None else None,
        "missingDetail": (
            ", ".join(criterion for criterion, points in score.items() if points == 0)
            if score is not None
            else None
        ),
        "error": result.error,
        "elapsedMs": elapsed_ms,
    }


class AnalyticsRecorder:
    """Post detection outcomes to an external endpoint without waiting for delivery.

    Delivery failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        url_logging_api: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url_logging_api: str = (
            url_logging_api
            if url_logging_api is not None
            else settings.analytics.url_logging_api
        )
        self.http_client = http_client or create_http_client(
            request_timeout=settings.analytics.timeout_sec,
            connect_timeout=settings.analytics.timeout_sec,
        )
        # Strong references keep scheduled posts from being garbage collected mid-flight.
        self._pending: set[asyncio.Task] = set()

    def record(
        self, url: str, result: ManifestResult, elapsed_ms: float
    ) -> Optional[asyncio.Task]:
        """Schedule posting the outcome of detecting `url`. Must run on an event loop."""
        if not self.url_logging_api:
            logger.warning("Skipping URL recording due to no configured URL logging API")
            return None

        task = asyncio.create_task(self._post(build_record(url, result, elapsed_ms)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def close(self) -> None:
        """Wait for scheduled posts, then close the HTTP session."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self.http_client.aclose()

    async def _post(self, record: dict[str, Any]) -> None:
        try:
            response = await self.http_client.post(self.url_logging_api, json=record)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Unable to send {record['url']} to URL logging service: {e}")
            return
        logger.info(
            f"Sent {record['url']} to URL logging service. "
            f"Success = {record['success']}, Error = {record['error']}, "
            f"Elapsed = {record['elapsedMs']}ms"
        )


@cache
def get_analytics_recorder() -> AnalyticsRecorder:
    """Instantiate and memoize the process-wide analytics recorder."""
    return AnalyticsRecorder()
