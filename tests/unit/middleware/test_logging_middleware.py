# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the middleware logging module."""

import logging

import pytest
from pytest import LogCaptureFixture
from pytest_mock import MockerFixture
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from manifest_finder.middleware.logging import LoggingMiddleware


@pytest.mark.asyncio
async def test_logging_invalid_scope_type(
    mocker: MockerFixture,
    caplog: LogCaptureFixture,
    receive_mock: Receive,
    send_mock: Send,
) -> None:
    """Test that no logging action takes place for an unexpected Scope type."""
    caplog.set_level(logging.INFO)
    scope: Scope = {"type": "not-http"}
    logging_middleware: LoggingMiddleware = LoggingMiddleware(mocker.AsyncMock(spec=ASGIApp))

    await logging_middleware(scope, receive_mock, send_mock)

    assert len(caplog.messages) == 0


@pytest.mark.asyncio
async def test_logging_request_summary(
    caplog: LogCaptureFixture, filter_caplog, receive_mock: Receive, send_mock
) -> None:
    """Test that one request summary is logged when the response starts."""
    caplog.set_level(logging.INFO)
    scope: Scope = {
        "type": "http",
        "headers": [],
        "method": "GET",
        "path": "/api/v1/manifest",
        "query_string": b"url=https://x.com/",
    }
    start: Message = {"type": "http.response.start", "status": 200, "headers": []}
    body: Message = {"type": "http.response.body", "body": b"{}"}

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        await send(start)
        await send(body)

    await LoggingMiddleware(app)(scope, receive_mock, send_mock)

    records = filter_caplog(caplog.records, "request.summary")
    assert len(records) == 1
    assert records[0].__dict__["path"] == "/api/v1/manifest"
    assert records[0].__dict__["querystring"] == {"url": "https://x.com/"}
    assert records[0].__dict__["code"] == 200
    assert [call.args[0] for call in send_mock.call_args_list] == [start, body]
