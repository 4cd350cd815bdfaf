"""App startup point"""

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from manifest_finder.configs.app_configs.config_logging import configure_logging
from manifest_finder.configs.app_configs.config_sentry import configure_sentry
from manifest_finder.finder.fetcher import get_fetch_client
from manifest_finder.finder.telemetry import get_analytics_recorder
from manifest_finder.middleware import logging as mw_logging
from manifest_finder.middleware import metrics
from manifest_finder.utils.metrics import configure_metrics, get_metrics_client
from manifest_finder.web import api_v1, dockerflow

tags_metadata = [
    {
        "name": "manifest",
        "description": "Detect and score the web app manifest of a page.",
    },
]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up various configurations at startup and handle shutdown clean up.
    See lifespan events in fastAPI docs https://fastapi.tiangolo.com/advanced/events/
    """
    # Setup methods run before `yield` and cleanup methods after.
    configure_logging()
    configure_sentry()
    await configure_metrics()
    yield
    await get_analytics_recorder().close()
    await get_fetch_client().close()
    await get_metrics_client().close()


app = FastAPI(openapi_tags=tags_metadata, lifespan=lifespan, default_response_class=ORJSONResponse)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Use HTTP status code: 400 for all invalid requests."""
    # `exc.errors()` is omitted in the log to avoid excessively large log messages.
    logger.warning(f"HTTP 400: request validation error for path: {request.url.path}")
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": exc.errors()}),
    )


# Note: the order of the following middleware registration matters.
# `LoggingMiddleware` should be added after `CorrelationIdMiddleware`.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS", "HEAD"],
)
app.add_middleware(metrics.MetricsMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(mw_logging.LoggingMiddleware)

app.include_router(dockerflow.router)
app.include_router(api_v1.router, prefix="/api/v1")
