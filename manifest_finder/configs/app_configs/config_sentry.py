"""Sentry Configuration"""

import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from sentry_sdk.types import Event, Hint

from manifest_finder.configs import settings
from manifest_finder.utils.version import fetch_app_version_from_file

logger = logging.getLogger(__name__)

REDACTED_TEXT = "[REDACTED]"


def configure_sentry() -> None:  # pragma: no cover
    """Configure and initialize Sentry integration."""
    if settings.sentry.mode == "disabled":
        return
    # This is the SHA-1 hash of the HEAD of the current branch stored in version.json file.
    version_sha = fetch_app_version_from_file().commit
    sentry_sdk.init(
        dsn=settings.sentry.dsn,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        release=version_sha,
        debug="debug" == settings.sentry.mode,
        before_send=strip_sensitive_data,
        environment=settings.sentry.env,
        traces_sample_rate=settings.sentry.traces_sample_rate,
    )


def strip_sensitive_data(event: Event, hint: Hint) -> Event | None:
    """Redact the inspected URL from Sentry events.

    The `url` query parameter may point at private hosts, so neither the query
    string nor the frame locals that hold it are sent.
    """
    #  See: https://docs.sentry.io/platforms/python/configuration/filtering/
    if event.get("request", {}).get("query_string", {}):
        event["request"]["query_string"] = REDACTED_TEXT

        event_exception_values = event.get("exception", {}).get("values", [])
        if len(event_exception_values):
            for entry in event_exception_values[0].get("stacktrace", {}).get("frames", []):
                vars = entry.get("vars", {})

                match vars:
                    case {"url": _, "page_url": _}:
                        vars["url"] = REDACTED_TEXT
                        vars["page_url"] = REDACTED_TEXT
                    case {"url": _}:
                        vars["url"] = REDACTED_TEXT
                    case {"page_url": _}:
                        vars["page_url"] = REDACTED_TEXT
                    case _:
                        pass

    return event
