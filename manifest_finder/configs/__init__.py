"""Configuration for manifest-finder"""

import pathlib

from dynaconf import Dynaconf, Validator

# Validators for manifest-finder settings.
_validators = [
    Validator("logging.format", is_in=["mozlog", "pretty"]),
    Validator("logging.level", is_in=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    Validator("logging.can_propagate", is_type_of=bool),
    Validator(
        "logging.http_client_level", is_in=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ),
    Validator("metrics.dev_logger", is_type_of=bool),
    Validator("metrics.host", is_type_of=str),
    Validator("metrics.port", gte=0, is_type_of=int),
    Validator("http.request_timeout_sec", is_type_of=float, gt=0),
    Validator("http.connect_timeout_sec", is_type_of=float, gt=0),
    Validator("http.max_connections", is_type_of=int, gte=1),
    # Bounded auto-follow for redirects. The manual single-hop fallback covers the rest.
    Validator("http.max_redirects", is_type_of=int, gte=0, lte=10),
    # A whole detection run must not hang on slow origins.
    Validator("runtime.detection_timeout_sec", is_type_of=float, gt=0, lte=120.0),
    Validator("runtime.max_concurrent_additional_manifests", is_type_of=int, gte=1),
    Validator("analytics.url_logging_api", is_type_of=str),
    Validator("analytics.timeout_sec", is_type_of=float, gt=0),
    Validator("sentry.env", is_in=["prod", "stage", "dev"]),
    Validator("sentry.mode", is_in=["disabled", "release", "debug"]),
    Validator("sentry.dsn", is_type_of=str),
    Validator("sentry.traces_sample_rate", gte=0, lte=1),
]

# `root_path` = The directory holding the TOML files below.
# `envvar_prefix` = Export envvars with `export MANIFEST_FINDER_FOO=bar`.
# `settings_files` = Load these files in the order.
# `environments` = Enable layered environments such as `development`, `production`, `testing`.
# `env_switcher` = Switch environments by `export MANIFEST_FINDER_ENV=production`.
#   Default: `development`.
# `merge_enabled` = Environment tables override single keys of `default`, not whole groups.
# `validators` = Define validators for manifest-finder settings.

settings = Dynaconf(
    root_path=str(pathlib.Path(__file__).parent),
    envvar_prefix="MANIFEST_FINDER",
    settings_files=[
        "default.toml",
        "development.toml",
        "production.toml",
        "testing.toml",
    ],
    environments=True,
    env_switcher="MANIFEST_FINDER_ENV",
    merge_enabled=True,
    validators=_validators,
)
