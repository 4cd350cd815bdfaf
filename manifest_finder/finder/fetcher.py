"""Resilient fetching of web pages and manifests"""

import logging
from dataclasses import dataclass
from functools import cache
from typing import Awaitable, Callable, Optional, Sequence
from urllib.parse import urlparse

import httpx

from manifest_finder.configs import settings
from manifest_finder.exceptions import FetchError, HttpForbiddenError, ResponseDecodingError
from manifest_finder.finder.constants import ALTERNATE_USER_AGENT, REQUEST_HEADERS
from manifest_finder.utils.http_client import create_http_client

logger = logging.getLogger(__name__)

FetchAttempt = Callable[[str, dict[str, str]], Awaitable[str]]


@dataclass(frozen=True)
class FetchFallback:
    """A retry strategy for a failed GET.

    `handles` decides from the primary attempt's error whether this fallback applies,
    `attempt` makes one full request with the given URL and headers.
    """

    name: str
    handles: Callable[[FetchError], bool]
    attempt: FetchAttempt


def _is_forbidden(error: FetchError) -> bool:
    return isinstance(error, HttpForbiddenError)


def _is_decoding_error(error: FetchError) -> bool:
    return isinstance(error, ResponseDecodingError)


def _is_transport_error(error: FetchError) -> bool:
    return not isinstance(error, (HttpForbiddenError, ResponseDecodingError))


def _is_absolute_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def _default_client(http2: bool = False) -> httpx.AsyncClient:
    # Many sites present invalid certificates, so TLS validation is disabled.
    return create_http_client(
        max_connections=settings.http.max_connections,
        connect_timeout=settings.http.connect_timeout_sec,
        request_timeout=settings.http.request_timeout_sec,
        max_redirects=settings.http.max_redirects,
        verify=False,
        http2=http2,
        headers=REQUEST_HEADERS,
    )


class FetchClient:
    """Fetch single resources over HTTP, retrying through an ordered chain of fallbacks.

    A GET is made first. If it fails, the first fallback whose `handles` accepts the
    error gets one attempt, and its outcome is final:

    1. 403 Forbidden: retry with an alternate user agent (per-request header override).
    2. Any other failure: retry over HTTP/2.
    3. Undecodable body for the declared charset: retry decoding the raw bytes as UTF-8.

    Redirect responses left over after the client's bounded auto-follow are followed
    manually for exactly one hop when the caller allows it.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        http2_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.http_client = http_client or _default_client()
        self.http2_client = http2_client or _default_client(http2=True)
        self.fallbacks: tuple[FetchFallback, ...] = (
            FetchFallback(
                "alternate user agent", _is_forbidden, self._get_with_alternate_user_agent
            ),
            FetchFallback("HTTP/2", _is_transport_error, self._get_via_http2),
            FetchFallback("forced UTF-8", _is_decoding_error, self._get_with_forced_utf8),
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def fetch(
        self, url: str, accept: Sequence[str] = (), follow_redirects: bool = True
    ) -> str:
        """Fetch the body of `url` as text.

        Raises:
            FetchError: if the primary attempt and the applicable fallback both failed.
        """
        headers = {"Accept": ", ".join(accept)} if accept else {}
        return await self._fetch(url, headers, follow_redirects)

    async def resource_exists(self, url: str) -> bool:
        """Check with a HEAD request whether `url` resolves. Never raises."""
        try:
            response = await self.http_client.head(url, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(
                f"Attempted to check if resource exists at {url}, but got an error: {e}"
            )
            return False
        return response.is_success

    async def close(self) -> None:
        """Close HTTP sessions and release resources."""
        await self.http_client.aclose()
        await self.http2_client.aclose()

    async def _fetch(self, url: str, headers: dict[str, str], follow_redirects: bool) -> str:
        try:
            response = await self._get(url, headers)
            location = response.headers.get("Location")
            # Some servers answer with redirects the client won't follow on its own.
            redirect = (
                follow_redirects
                and 300 <= response.status_code < 400
                and _is_absolute_url(location)
            )
            if not redirect:
                self._ensure_success(response, url)
                return self._decode(response, url)
        except FetchError as error:
            for fallback in self.fallbacks:
                if not fallback.handles(error):
                    continue
                logger.warning(f"Failed to fetch {url}: {error}. Falling back to {fallback.name}.")
                try:
                    result = await fallback.attempt(url, headers)
                except FetchError as fallback_error:
                    logger.warning(
                        f"Unable to fetch {url} using {fallback.name} fallback: {fallback_error}"
                    )
                    raise
                logger.info(f"Successfully fetched {url} via {fallback.name} fallback")
                return result
            raise

        # Exactly one extra hop, so redirect cycles can't recurse.
        logger.info(f"Following redirect from {url} to {location}")
        return await self._fetch(str(location), headers, follow_redirects=False)

    async def _get(self, url: str, headers: dict[str, str]) -> httpx.Response:
        response = await self._send(self.http_client, url, headers)
        if response.status_code == httpx.codes.FORBIDDEN:
            raise HttpForbiddenError(
                response.reason_phrase or "Web server's response was 403 Forbidden.", url=url
            )
        return response

    async def _get_with_alternate_user_agent(self, url: str, headers: dict[str, str]) -> str:
        response = await self._send(
            self.http_client, url, headers | {"User-Agent": ALTERNATE_USER_AGENT}
        )
        self._ensure_success(response, url)
        return self._decode(response, url)

    async def _get_via_http2(self, url: str, headers: dict[str, str]) -> str:
        response = await self._send(self.http2_client, url, headers)
        self._ensure_success(response, url)
        return self._decode(response, url)

    async def _get_with_forced_utf8(self, url: str, headers: dict[str, str]) -> str:
        response = await self._send(self.http_client, url, headers)
        self._ensure_success(response, url)
        return response.content.decode("utf-8", errors="replace")

    @staticmethod
    async def _send(
        client: httpx.AsyncClient, url: str, headers: dict[str, str]
    ) -> httpx.Response:
        try:
            return await client.get(url, headers=headers, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Request to {url} failed: {e!r}", url=url) from e

    @staticmethod
    def _ensure_success(response: httpx.Response, url: str) -> None:
        if not response.is_success:
            reason = response.reason_phrase or "unsuccessful response"
            raise FetchError(
                "Response status code does not indicate success: "
                f"{response.status_code} ({reason})",
                url=url,
            )

    @staticmethod
    def _decode(response: httpx.Response, url: str) -> str:
        charset = response.charset_encoding
        try:
            return response.content.decode(charset or "utf-8")
        except (LookupError, UnicodeDecodeError) as e:
            raise ResponseDecodingError(
                f"The character set provided in ContentType ({charset}) is invalid: {e}",
                url=url,
            ) from e


@cache
def get_fetch_client() -> FetchClient:
    """Instantiate and memoize the process-wide fetch client."""
    return FetchClient()
