"""manifest-finder V1 API"""

import logging
from time import monotonic
from typing import Annotated

from aiodogstatsd import Client
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import ORJSONResponse
from starlette.requests import Request

from manifest_finder.finder.fetcher import FetchClient, get_fetch_client
from manifest_finder.finder.models import DetectionMode, ManifestResult
from manifest_finder.finder.pipeline import ManifestFinder
from manifest_finder.finder.resolver import validate_target_url
from manifest_finder.finder.telemetry import AnalyticsRecorder, get_analytics_recorder
from manifest_finder.middleware import ScopeKey

logger = logging.getLogger(__name__)
router = APIRouter()

URL_CHARACTER_MAX = 2048


@router.get(
    "/manifest",
    tags=["manifest"],
    summary="Manifest detection endpoint",
    response_model=ManifestResult,
    response_model_by_alias=True,
)
async def detect_manifest(
    request: Request,
    url: Annotated[str, Query(min_length=1, max_length=URL_CHARACTER_MAX)],
    verbose: Annotated[int, Query(ge=0, le=1)] = 0,
    include_all: bool = False,
    fetch_client: FetchClient = Depends(get_fetch_client),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
) -> ORJSONResponse:
    """Detect, download and score the web app manifest of the page at `url`.

    Detection failures are reported in the `error` field of a 200 response. Only an
    unusable `url` is answered with 400.

    **Args:**

    - `url`: Absolute HTTP(S) URL of the page. Loopback addresses are rejected.
    - `verbose`: `1` to report errors with their full cause chain.
    - `include_all`: Also fetch every other manifest the page links to, keyed by URL in
      `additionalManifests`.
    """
    try:
        target_url = validate_target_url(url)
    except ValueError as e:
        logger.warning(f"HTTP 400: invalid manifest detection URL: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    metrics_client: Client = request.scope[ScopeKey.METRICS_CLIENT]
    finder = ManifestFinder(fetch_client=fetch_client, metrics_client=metrics_client)
    mode = DetectionMode.ALL if include_all else DetectionMode.FIRST

    started_at = monotonic()
    with metrics_client.timeit("detect.timing", tags={"mode": mode.value}):
        result = await finder.run(target_url, mode, verbose=bool(verbose))
    recorder.record(target_url, result, elapsed_ms=(monotonic() - started_at) * 1000)

    return ORJSONResponse(content=result.model_dump(mode="json", by_alias=True))
