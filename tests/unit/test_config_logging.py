# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the config_logging.py module."""

import logging
from typing import Any, Iterator

import pytest

from manifest_finder.configs import settings
from manifest_finder.configs.app_configs.config_logging import (
    GCPCompatibleJSONFormatter,
    configure_logging,
)


@pytest.fixture(name="restore_logging", autouse=True)
def fixture_restore_logging() -> Iterator[None]:
    """Restore the configured log format and handlers after each test."""
    old_format = settings.logging.format
    yield
    settings.logging.format = old_format
    configure_logging()


def test_invalid_format() -> None:
    """Test that an unknown log format is rejected."""
    settings.logging.format = "invalid"

    with pytest.raises(ValueError) as excinfo:
        configure_logging()

    assert "Invalid log format:" in str(excinfo.value)


@pytest.mark.parametrize(
    ["log_format", "handler_name"],
    [("mozlog", "console-mozlog"), ("pretty", "console-pretty")],
)
def test_configure_logging(log_format: str, handler_name: str) -> None:
    """Test that the package logger is handled according to the log format."""
    settings.logging.format = log_format
    configure_logging()

    log_manager: Any = logging.root.manager
    package_logger: Any = log_manager.loggerDict["manifest_finder"]
    assert package_logger.handlers[0].name == handler_name
    assert package_logger.propagate is settings.logging.can_propagate


def test_json_formatter_severity() -> None:
    """Test that JSON log lines carry GCP compatible severities."""
    formatter = GCPCompatibleJSONFormatter(logger_name="manifest_finder")
    record = logging.LogRecord(
        "manifest_finder.test", logging.WARNING, __file__, 1, "careful", None, None
    )

    assert formatter.convert_record(record)["severity"] == 400
