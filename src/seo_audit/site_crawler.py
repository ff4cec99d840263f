"""Frontier-driven site crawler with batch-bounded concurrency."""

import asyncio
import logging
import time
from typing import Callable, Iterable, List, Optional, Set

from seo_audit.auth import Authenticator
from seo_audit.browser import BrowserSession
from seo_audit.config import AuditConfig, SiteConfig
from seo_audit.models import AuthCredentials, CrawlerState, CrawlReport, PageResult
from seo_audit.page_crawler import PageCrawler
from seo_audit.report import ReportAssembler
from seo_audit.url_utils import (
    ExclusionMatcher,
    belongs_to_site,
    is_internal_url,
    normalize_url,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class SEOCrawler:
    """Crawls every enabled site breadth-first in FIFO discovery order.

    Work is done in batches of at most ``options.concurrency`` pages. A
    batch is crawled in parallel and fully awaited before the frontier is
    touched again, so only this coroutine ever mutates the crawler state:

        crawler = SEOCrawler(config)
        report = await crawler.crawl()

    No URL is crawled twice: a URL's normalized form is added to
    ``state.visited`` before its page crawl starts.
    """

    def __init__(
        self,
        config: AuditConfig,
        credentials: Optional[AuthCredentials] = None,
        session_factory: Callable = BrowserSession,
        assembler: Optional[ReportAssembler] = None,
        link_verifier=None,
        authenticator: Optional[Authenticator] = None,
    ):
        """Initialize the crawler.

        Args:
            config: Loaded audit configuration
            credentials: Optional login used for protected routes
            session_factory: Callable taking CrawlOptions and returning an
                async context manager with ``new_page()``
            assembler: Report assembler (default analyzer thresholds if None)
            link_verifier: Optional object with ``async verify(pages)`` run
                after crawling to populate broken links
            authenticator: Override for the login flow
        """
        self.config = config
        self.sites: List[SiteConfig] = config.enabled_sites
        self.options = config.options
        self.seed_paths = list(config.seed_paths)
        self.exclusions = ExclusionMatcher(config.exclude_patterns)
        self.credentials = credentials
        self._session_factory = session_factory
        self._assembler = assembler or ReportAssembler()
        self._link_verifier = link_verifier
        self._authenticator = authenticator
        self._on_progress: Optional[ProgressCallback] = None

        self.state = CrawlerState()
        self._queued: Set[str] = set()
        self.batches_run = 0
        self._processed = 0
        self._total_estimate = 0

    @property
    def base_urls(self) -> List[str]:
        return [site.base_url for site in self.sites]

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        """Set a callback receiving (current, total_estimate, url) per page."""
        self._on_progress = callback

    def set_credentials(self, email: str, password: str) -> None:
        self.credentials = AuthCredentials(email=email, password=password)

    async def crawl(
        self,
        protected_paths: Iterable[str] = (),
        admin_paths: Iterable[str] = (),
    ) -> CrawlReport:
        """Run the whole audit.

        Args:
            protected_paths: Seed paths enqueued only after a successful login
            admin_paths: Seed paths enqueued after login on admin-enabled sites

        Returns:
            CrawlReport for every crawled page

        Raises:
            BrowserLaunchError: If the browser cannot be started
        """
        start_time = time.time()

        async with self._session_factory(self.options) as session:
            await self._seed_frontier(session, list(protected_paths), list(admin_paths))

            logger.info(f"Starting crawl with {len(self.state.queue)} seed URLs...")
            logger.info(
                f"Max pages: {self.options.max_pages or 'unlimited'}, "
                f"concurrency: {self.options.concurrency}, "
                f"delay: {self.options.delay_between_requests}ms"
            )

            page_crawler = PageCrawler(session, self.options, self.base_urls, self.exclusions)
            await self._drain_frontier(page_crawler)

        if self._link_verifier is not None:
            await self._link_verifier.verify(self.state.results)

        total_crawl_time_ms = int((time.time() - start_time) * 1000)

        logger.info(f"\n{'=' * 60}")
        logger.info(
            f"Crawl complete! Processed {len(self.state.results)} pages "
            f"in {self.batches_run} batches"
        )
        logger.info(f"{'=' * 60}\n")

        return self._assembler.assemble(
            self.state.results,
            [site.name for site in self.sites],
            total_crawl_time_ms,
        )

    # ------------------------------------------------------------------
    # Frontier
    # ------------------------------------------------------------------

    def _site_url(self, site: SiteConfig, path: str) -> str:
        return site.base_url.rstrip("/") + "/" + path.lstrip("/")

    def _enqueue(self, url: str, base: str) -> bool:
        """Append a URL to the frontier unless seen, queued or excluded."""
        normalized = normalize_url(url, base)
        if normalized in self.state.visited or normalized in self._queued:
            return False
        if self.exclusions.matches(url) or self.exclusions.matches(normalized):
            return False
        self.state.queue.append(url)
        self._queued.add(normalized)
        return True

    async def _seed_frontier(self, session, protected_paths: List[str], admin_paths: List[str]) -> None:
        for site in self.sites:
            for path in self.seed_paths:
                self._enqueue(self._site_url(site, path), site.base_url)

        auth_site = next((s for s in self.sites if s.crawl_protected), None)
        if not self.credentials or auth_site is None:
            return

        authenticator = self._authenticator or Authenticator(
            self.credentials, timeout_ms=self.options.timeout
        )
        if await authenticator.authenticate(session, auth_site):
            self.state.is_authenticated = True

        if not self.state.is_authenticated:
            logger.warning("Continuing without authentication; protected paths skipped")
            return

        for path in protected_paths:
            self._enqueue(self._site_url(auth_site, path), auth_site.base_url)
        if auth_site.crawl_admin:
            for path in admin_paths:
                self._enqueue(self._site_url(auth_site, path), auth_site.base_url)

    def _site_for(self, url: str) -> Optional[SiteConfig]:
        return next((s for s in self.sites if belongs_to_site(url, s.base_url)), None)

    def _budget_exhausted(self) -> bool:
        max_pages = self.options.max_pages
        return max_pages > 0 and len(self.state.results) >= max_pages

    def _next_batch(self) -> List[str]:
        size = self.options.concurrency
        if self.options.max_pages > 0:
            size = min(size, self.options.max_pages - len(self.state.results))

        batch = []
        while self.state.queue and len(batch) < size:
            batch.append(self.state.queue.popleft())
        return batch

    async def _drain_frontier(self, page_crawler: PageCrawler) -> None:
        state = self.state
        # Dequeued URLs are normalized against the first site's base URL
        dedup_base = self.base_urls[0] if self.sites else None
        self._total_estimate = len(state.queue)

        while state.queue:
            if self._budget_exhausted():
                logger.info(f"Reached max pages limit ({self.options.max_pages})")
                break

            batch = self._next_batch()
            self.batches_run += 1

            scheduled = []
            for url in batch:
                normalized = normalize_url(url, dedup_base)
                self._queued.discard(normalized)
                if normalized in state.visited:
                    continue

                state.visited.add(normalized)

                site = self._site_for(url)
                if site is None:
                    logger.debug(f"Skipping {url}: not under any enabled site")
                    continue
                scheduled.append((url, site))

            results = await asyncio.gather(
                *(self._crawl_one(page_crawler, url, site) for url, site in scheduled)
            )

            for (url, site), result in zip(scheduled, results):
                if result is None:
                    continue
                state.results.append(result)
                self._processed += 1
                queued = self._enqueue_discovered(result, site)
                if queued:
                    logger.debug(f"  → Queued {queued} new links from {url}")
                self._report_progress(url)

            if self._budget_exhausted():
                logger.info(f"Reached max pages limit ({self.options.max_pages})")
                break

            delay_ms = self.options.delay_between_requests
            if delay_ms > 0 and state.queue:
                await asyncio.sleep(delay_ms / 1000)

    async def _crawl_one(self, page_crawler: PageCrawler, url: str, site: SiteConfig) -> Optional[PageResult]:
        try:
            return await page_crawler.crawl_page(url, site)
        except Exception as e:
            logger.error(f"Error crawling {url}: {e}")
            return None

    def _enqueue_discovered(self, result: PageResult, site: SiteConfig) -> int:
        queued = 0
        base_urls = self.base_urls
        for link in result.internal_links:
            if not is_internal_url(link.href, base_urls):
                continue
            if self._enqueue(link.href, site.base_url):
                queued += 1
        return queued

    def _report_progress(self, url: str) -> None:
        if not self._on_progress:
            return
        total = max(self._total_estimate, len(self.state.queue) + self._processed)
        self._on_progress(self._processed, total, url)
