# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Integration tests for the command line interface."""

from typing import Any

import orjson
import pytest
from pytest_mock import MockerFixture
from typer.testing import CliRunner

from manifest_finder.cli import cli
from manifest_finder.finder.models import DetectionMode, ManifestResult

runner = CliRunner()


@pytest.fixture(name="detect")
def fixture_detect(mocker: MockerFixture) -> Any:
    """Patch detection with a canned result, and logging setup with a no-op."""
    mocker.patch("manifest_finder.cli.configure_logging")
    return mocker.patch(
        "manifest_finder.cli._detect",
        return_value=ManifestResult(
            manifest_url="https://x.com/m.json", manifest_contents={"name": "A"}
        ),
    )


def test_cli_help_shows_commands() -> None:
    """Test that the detect command is listed in the help output"""
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "detect" in result.stdout


def test_detect(detect: Any) -> None:
    """Test that the detection result is printed as camelCase JSON."""
    result = runner.invoke(cli, ["detect", "https://x.com/"])

    assert result.exit_code == 0
    output = orjson.loads(result.stdout)
    assert output["manifestUrl"] == "https://x.com/m.json"
    assert output["manifestContents"] == {"name": "A"}
    detect.assert_called_once_with("https://x.com/", DetectionMode.FIRST, False)


def test_detect_with_options(detect: Any) -> None:
    """Test that the options select all-manifests mode and verbose errors."""
    result = runner.invoke(cli, ["detect", "https://x.com/", "--all", "--verbose"])

    assert result.exit_code == 0
    detect.assert_called_once_with("https://x.com/", DetectionMode.ALL, True)


@pytest.mark.parametrize("url", ["x.com", "http://localhost/"], ids=["relative", "loopback"])
def test_detect_rejects_url(detect: Any, url: str) -> None:
    """Test that unusable URLs are rejected before detection runs."""
    result = runner.invoke(cli, ["detect", url])

    assert result.exit_code == 2
    detect.assert_not_called()
