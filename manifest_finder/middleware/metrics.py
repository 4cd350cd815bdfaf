"""Middleware for request metrics using FastAPI's middleware system."""

import logging
from functools import cache
from http import HTTPStatus
from time import monotonic

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from manifest_finder.middleware import ScopeKey
from manifest_finder.utils.metrics import get_metrics_client

logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for instrumenting request level metrics. We collect timing and status
    codes for all known paths as well as status codes for all paths (known and unknown).
    """

    @cache
    def _build_metric_name(self, method: str, path: str) -> str:
        return "{}.{}".format(method, path.lower().lstrip("/").replace("/", ".")).lower()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Capture request metrics including timing and status codes."""
        metrics_client = get_metrics_client()

        # Store `Client` instance in the request scope, so that it can be used by
        # endpoints.
        request.scope[ScopeKey.METRICS_CLIENT] = metrics_client

        started_at = monotonic()
        try:
            response = await call_next(request)

            duration = (monotonic() - started_at) * 1000
            status_code = response.status_code

            # don't track NOT_FOUND statuses by path.
            if status_code != HTTPStatus.NOT_FOUND:
                metric_name = self._build_metric_name(request.method, request.url.path)
                metrics_client.timing(f"{metric_name}.timing", value=duration)
                metrics_client.increment(f"{metric_name}.status_codes.{status_code}")

            metrics_client.increment(f"response.status_codes.{status_code}")
            return response

        except Exception:
            duration = (monotonic() - started_at) * 1000
            metric_name = self._build_metric_name(request.method, request.url.path)
            status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value

            metrics_client.timing(f"{metric_name}.timing", value=duration)
            metrics_client.increment(f"{metric_name}.status_codes.{status_code}")
            metrics_client.increment(f"response.status_codes.{status_code}")
            raise
