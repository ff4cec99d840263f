"""Broken-link verification pass run after crawling."""

import asyncio
import logging
from typing import Dict, Iterable, Optional
from urllib.parse import urldefrag

import httpx

from seo_audit.constants import (
    DEFAULT_LINK_CHECK_CONCURRENCY,
    DEFAULT_LINK_CHECK_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    HEAD_FALLBACK_STATUS_CODES,
)
from seo_audit.models import PageResult

logger = logging.getLogger(__name__)


class LinkVerifier:
    """Checks every unique link once and marks broken ones on each page.

    A link is broken when it answers with status >= 400 or cannot be
    fetched at all. Each URL is requested with HEAD first and retried
    with GET when the server does not support HEAD.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_LINK_CHECK_TIMEOUT_SECONDS,
        max_concurrent: int = DEFAULT_LINK_CHECK_CONCURRENCY,
        user_agent: str = DEFAULT_USER_AGENT,
        check_external: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            timeout: Per-request timeout in seconds
            max_concurrent: Maximum requests in flight
            user_agent: User-Agent header sent with each request
            check_external: Also verify links to other hosts
            transport: Custom httpx transport (used by tests)
        """
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.user_agent = user_agent
        self.check_external = check_external
        self._transport = transport
        self.status_by_url: Dict[str, int] = {}

    async def verify(self, pages: Iterable[PageResult]) -> int:
        """Verify links on all pages, appending broken ones to ``broken_links``.

        Links already marked broken by an earlier call are not appended again.

        Args:
            pages: Crawled pages

        Returns:
            Number of distinct broken URLs found
        """
        pages = list(pages)
        targets = set()
        for page in pages:
            for link in self._links_to_check(page):
                targets.add(urldefrag(link.href).url)

        if not targets:
            return 0

        logger.info(f"Verifying {len(targets)} unique links...")
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        ) as client:

            async def check(url: str) -> None:
                async with semaphore:
                    self.status_by_url[url] = await self._fetch_status(client, url)

            await asyncio.gather(*(check(url) for url in sorted(targets)))

        broken = {url for url, status in self.status_by_url.items() if self.is_broken_status(status)}

        for page in pages:
            for link in self._links_to_check(page):
                if not link.is_broken and urldefrag(link.href).url in broken:
                    link.is_broken = True
                    page.broken_links.append(link)

        if broken:
            logger.warning(f"Found {len(broken)} broken links")
        return len(broken)

    def _links_to_check(self, page: PageResult):
        yield from page.internal_links
        if self.check_external:
            yield from page.external_links

    @staticmethod
    def is_broken_status(status: int) -> bool:
        return status == 0 or status >= 400

    async def _fetch_status(self, client: httpx.AsyncClient, url: str) -> int:
        """Return the final status code for a URL, or 0 if unreachable."""
        try:
            response = await client.head(url)
            if response.status_code in HEAD_FALLBACK_STATUS_CODES:
                response = await client.get(url)
            return response.status_code
        except httpx.HTTPError as e:
            logger.debug(f"Link check failed for {url}: {e}")
            return 0
