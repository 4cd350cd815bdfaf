# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Module for test configurations shared by all test directories."""

from logging import LogRecord
from typing import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio

from manifest_finder.finder.constants import REQUEST_HEADERS
from manifest_finder.finder.fetcher import FetchClient
from manifest_finder.utils.http_client import create_http_client

FilterCaplogFixture = Callable[[list[LogRecord], str], list[LogRecord]]

Route = httpx.Response | Callable[[httpx.Request], httpx.Response]


class FakeWeb:
    """A set of fake hosts served through `httpx.MockTransport`.

    Routes map absolute URLs to a response, or to a callable building one from the
    request. Unknown URLs answer 404. Every request is recorded along with the label
    of the transport that received it.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[tuple[str, httpx.Request]] = []

    def add(self, url: str, route: Route) -> None:
        """Serve `route` at `url`."""
        self.routes[url] = route

    def transport(self, label: str) -> httpx.MockTransport:
        """Return a transport answering from the routes and recording as `label`."""

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append((label, request))
            route = self.routes.get(str(request.url))
            if route is None:
                return httpx.Response(404)
            if callable(route):
                return route(request)
            # Responses are copied so one route can answer any number of requests.
            return httpx.Response(
                status_code=route.status_code, headers=route.headers, content=route.content
            )

        return httpx.MockTransport(handler)

    def fetch_client(self) -> FetchClient:
        """Return a FetchClient whose HTTP/1.1 and HTTP/2 sessions are both served by the
        fake hosts, labelled "http/1.1" and "http/2" respectively.
        """
        return FetchClient(
            http_client=create_http_client(
                transport=self.transport("http/1.1"), headers=REQUEST_HEADERS
            ),
            http2_client=create_http_client(
                transport=self.transport("http/2"), http2=True, headers=REQUEST_HEADERS
            ),
        )

    def requests_to(self, url: str) -> list[tuple[str, httpx.Request]]:
        """Return the (transport label, request) pairs sent to `url`."""
        return [(label, request) for label, request in self.requests if str(request.url) == url]


@pytest.fixture(scope="session", name="filter_caplog")
def fixture_filter_caplog() -> FilterCaplogFixture:
    """Return a function that will filter pytest captured log records for a given logger
    name
    """

    def filter_caplog(records: list[LogRecord], logger_name: str) -> list[LogRecord]:
        """Filter pytest captured log records for a given logger name"""
        return [record for record in records if record.name == logger_name]

    return filter_caplog


@pytest.fixture(name="fake_web")
def fixture_fake_web() -> FakeWeb:
    """Return an empty set of fake hosts."""
    return FakeWeb()


@pytest_asyncio.fixture(name="fetch_client")
async def fixture_fetch_client(fake_web: FakeWeb) -> AsyncIterator[FetchClient]:
    """Return a FetchClient served by `fake_web`, closed after the test."""
    client = fake_web.fetch_client()
    yield client
    await client.close()
