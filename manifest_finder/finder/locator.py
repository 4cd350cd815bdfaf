"""Locating manifest link elements in web pages"""

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import Tag

from manifest_finder.exceptions import ManifestNotFoundError
from manifest_finder.finder.constants import HTML_MIME_TYPES, META_REFRESH_URL_PATTERN
from manifest_finder.finder.document import AttributeMatch, HtmlDocument
from manifest_finder.finder.fetcher import FetchClient
from manifest_finder.finder.models import ManifestNode, ManifestNodeResult

logger = logging.getLogger(__name__)


class ManifestLocator:
    """Find the <link rel="manifest"> elements of a page.

    If a page declares none but carries a <meta http-equiv="refresh"> tag, the
    refresh target is loaded and searched once more.
    """

    def __init__(self, fetch_client: FetchClient) -> None:
        self.fetch_client = fetch_client

    async def load_page(self, url: str, follow_redirects: bool = True) -> HtmlDocument:
        """Download and parse the page at `url`.

        Raises:
            FetchError: if the page couldn't be downloaded.
        """
        html = await self.fetch_client.fetch(url, HTML_MIME_TYPES, follow_redirects)
        return HtmlDocument(html, url)

    async def locate(
        self, document: HtmlDocument, allow_redirect: bool = True
    ) -> ManifestNodeResult:
        """Return the primary manifest link of `document` and any additional ones.

        Raises:
            ManifestNotFoundError: if no manifest link exists, even after a refresh redirect.
        """
        links = self.find_manifest_links(document)

        if not links and allow_redirect:
            redirect_result = await self._locate_from_refresh_tag(document)
            if redirect_result is not None:
                return redirect_result

        if not links:
            raise ManifestNotFoundError(
                "Unable to find manifest node in document",
                details={"documentHtml": document.html},
            )

        # An exact rel wins over substring matches such as rel="wlwmanifest".
        primary = next(
            (link for link in links if HtmlDocument.attribute(link, "rel") == "manifest"),
            links[0],
        )
        return ManifestNodeResult(
            page_url=document.url,
            primary=self._to_manifest_node(primary),
            additional=[self._to_manifest_node(link) for link in links if link is not primary],
            base_href=self.find_base_href(document),
        )

    @staticmethod
    def find_manifest_links(document: HtmlDocument) -> list[Tag]:
        """Find manifest links in <head>, then anywhere for pages without one in <head>."""
        head = document.head
        if head is not None:
            links = document.find_all(
                "link", AttributeMatch("rel", "manifest", exact=False), within=head
            )
            if links:
                return links

        # Some sites in the wild have no <head> and put the manifest link right in the HTML.
        return document.find_all("link", AttributeMatch("rel", "manifest"))

    @staticmethod
    def find_base_href(document: HtmlDocument) -> Optional[str]:
        """Return the href of <head><base>, if any."""
        head = document.head
        if head is None:
            return None
        base = document.find_first("base", within=head)
        return HtmlDocument.attribute(base, "href") if base is not None else None

    @staticmethod
    def find_refresh_target(document: HtmlDocument) -> Optional[str]:
        """Return the absolute target of a <meta http-equiv="refresh"> tag in <head>.

        None if there is no such tag, its target can't be parsed, or it points back at
        the page itself.
        """
        head = document.head
        if head is None:
            return None

        refresh_tag = document.find_first(
            "meta", AttributeMatch("http-equiv", "refresh", ignore_case=True), within=head
        )
        if refresh_tag is None:
            return None

        content = HtmlDocument.attribute(refresh_tag, "content") or ""
        match = META_REFRESH_URL_PATTERN.search(content)
        if match is None:
            return None

        target = urljoin(document.url, match.group(1).strip())
        parsed = urlparse(target)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None
        if target == document.url:
            return None
        return target

    async def _locate_from_refresh_tag(
        self, document: HtmlDocument
    ) -> Optional[ManifestNodeResult]:
        target = self.find_refresh_target(document)
        if target is None:
            return None

        logger.info(f"Page contained redirect tag in <head>. Redirecting to {target}")
        redirect_document = await self.load_page(target)
        # Redirect tags aren't followed again, so refresh loops can't recurse.
        return await self.locate(redirect_document, allow_redirect=False)

    @staticmethod
    def _to_manifest_node(link: Tag) -> ManifestNode:
        return ManifestNode(
            href=HtmlDocument.attribute(link, "href"),
            rel=HtmlDocument.attribute(link, "rel"),
            outer_html=HtmlDocument.outer_html(link),
        )
