# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Module for test configurations for the API integration test directory."""

from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

from manifest_finder.finder.fetcher import get_fetch_client
from manifest_finder.finder.telemetry import AnalyticsRecorder, get_analytics_recorder
from manifest_finder.main import app


@pytest.fixture(name="recorder")
def fixture_recorder(mocker: MockerFixture) -> Any:
    """Return a mock AnalyticsRecorder instance."""
    return mocker.Mock(spec=AnalyticsRecorder)


@pytest.fixture(name="client")
def fixture_test_client(fake_web, recorder: Any) -> Iterator[TestClient]:
    """Return a FastAPI TestClient instance whose outbound fetches are served by
    `fake_web`.

    Note that this will NOT trigger event handlers (i.e. `startup` and `shutdown`) for
    the app, see: https://fastapi.tiangolo.com/advanced/testing-events/
    """
    fetch_client = fake_web.fetch_client()
    app.dependency_overrides[get_fetch_client] = lambda: fetch_client
    app.dependency_overrides[get_analytics_recorder] = lambda: recorder
    yield TestClient(app)
    app.dependency_overrides.clear()
