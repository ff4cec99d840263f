"""Single-page crawl worker: navigate, stabilize, extract, classify links."""

import logging
import time
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from seo_audit.config import CrawlOptions, SiteConfig
from seo_audit.constants import (
    DOCUMENT_SETTLE_MS,
    HYDRATION_DELAY_MS,
    MAX_LINK_TEXT_LENGTH,
    NAVIGATION_FAILURE_STATUS,
    NAVIGATION_WAIT_UNTIL,
    RETAINED_CONSOLE_TYPES,
)
from seo_audit.models import ConsoleMessage, LinkInfo, PageMetadata, PageResult
from seo_audit.url_utils import (
    ExclusionMatcher,
    canonical_href,
    is_internal_url,
    normalize_url,
)

logger = logging.getLogger(__name__)


# Resolves once the document has finished loading plus a short settle period
_DOCUMENT_COMPLETE_SCRIPT = """
(settleMs) => new Promise(resolve => {
    if (document.readyState === 'complete') {
        setTimeout(resolve, settleMs);
    } else {
        window.addEventListener('load', () => setTimeout(resolve, settleMs));
    }
})
"""

_METADATA_SCRIPT = """
() => {
    const meta = (selector) => {
        const el = document.querySelector(selector);
        return el ? el.getAttribute('content') : null;
    };
    const h1s = Array.from(document.querySelectorAll('h1'));
    const canonical = document.querySelector('link[rel="canonical"]');
    const jsonLd = Array.from(
        document.querySelectorAll('script[type="application/ld+json"]')
    ).map(el => el.textContent || '');

    return {
        title: document.title || null,
        metaDescription: meta('meta[name="description"]'),
        canonical: canonical ? canonical.getAttribute('href') : null,
        robotsMeta: meta('meta[name="robots"]'),
        h1Count: h1s.length,
        h1Text: h1s.map(el => (el.textContent || '').trim()),
        ogTitle: meta('meta[property="og:title"]'),
        ogDescription: meta('meta[property="og:description"]'),
        ogImage: meta('meta[property="og:image"]'),
        ogUrl: meta('meta[property="og:url"]'),
        twitterCard: meta('meta[name="twitter:card"]'),
        twitterTitle: meta('meta[name="twitter:title"]'),
        twitterDescription: meta('meta[name="twitter:description"]'),
        jsonLd: jsonLd,
        viewport: meta('meta[name="viewport"]'),
        charset: document.characterSet || null,
        lang: document.documentElement ? (document.documentElement.lang || null) : null,
    };
}
"""

_LINKS_SCRIPT = """
() => ({
    baseUri: document.baseURI || null,
    anchors: Array.from(document.querySelectorAll('a[href]')).map(a => ({
        href: a.getAttribute('href') || '',
        text: (a.textContent || '').trim(),
    })),
})
"""


class PageCrawler:
    """Crawls one URL at a time on pages opened from a shared session.

    ``crawl_page`` never raises: navigation and extraction failures are
    recorded on the returned PageResult.
    """

    def __init__(
        self,
        session,
        options: CrawlOptions,
        base_urls: Iterable[str],
        exclusions: Optional[ExclusionMatcher] = None,
    ):
        """
        Args:
            session: BrowserSession (or any object with ``new_page()``)
            options: Crawl options; ``timeout`` bounds each navigation
            base_urls: Base URLs of every enabled site, for link classification
            exclusions: Patterns for links that must be dropped
        """
        self.session = session
        self.options = options
        self.base_urls: List[str] = list(base_urls)
        self.exclusions = exclusions or ExclusionMatcher()

    async def crawl_page(self, url: str, site: SiteConfig) -> PageResult:
        """Crawl a single page.

        Args:
            url: URL to crawl
            site: Site the URL belongs to

        Returns:
            PageResult for the URL (status 0 and ``error`` set on failure)
        """
        console_messages: List[ConsoleMessage] = []
        redirect_chain: List[str] = []
        status_code = NAVIGATION_FAILURE_STATUS
        final_url = url
        error: Optional[str] = None
        metadata = PageMetadata.empty()
        internal_links: List[LinkInfo] = []
        external_links: List[LinkInfo] = []
        start_time = time.time()
        load_time_ms = 0
        page = None

        try:
            page = await self.session.new_page()

            def console_handler(msg):
                if msg.type in RETAINED_CONSOLE_TYPES:
                    console_messages.append(ConsoleMessage(type=msg.type, text=msg.text))

            def response_handler(response):
                if 300 <= response.status < 400:
                    redirect_chain.append(response.url)

            # Listeners go on before navigation so early events are kept
            page.on("console", console_handler)
            page.on("response", response_handler)

            start_time = time.time()
            try:
                response = await page.goto(
                    url,
                    wait_until=NAVIGATION_WAIT_UNTIL,
                    timeout=self.options.timeout,
                )
                status_code = response.status if response else NAVIGATION_FAILURE_STATUS
                final_url = page.url

                await self._wait_for_stable_dom(page)
            except Exception as e:
                error = str(e) or type(e).__name__
                status_code = NAVIGATION_FAILURE_STATUS
                logger.warning(f"  ⚠️  Navigation failed for {url}: {error}")

            load_time_ms = int((time.time() - start_time) * 1000)

            metadata = await self.extract_metadata(page)
            internal_links, external_links = await self.extract_links(
                page, final_url or site.base_url
            )
        except Exception as e:
            # new_page() failing or a broken page object
            error = error or str(e) or type(e).__name__
            logger.error(f"  ⚠️  Unexpected error crawling {url}: {e}")
            if not load_time_ms:
                load_time_ms = int((time.time() - start_time) * 1000)
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug(f"Failed to close page for {url}: {e}")

        logger.info(
            f"  ✓ {url} (status={status_code}, {len(internal_links)} internal links, "
            f"{load_time_ms}ms)"
        )

        return PageResult(
            url=url,
            normalized_url=normalize_url(url, site.base_url),
            final_url=final_url,
            status_code=status_code,
            site=site.name,
            redirect_chain=redirect_chain,
            metadata=metadata,
            internal_links=internal_links,
            external_links=external_links,
            broken_links=[],
            console_errors=[m for m in console_messages if m.type == "error"],
            load_time_ms=load_time_ms,
            error=error,
        )

    async def _wait_for_stable_dom(self, page) -> None:
        """Give client-rendered pages time to hydrate after the load event."""
        await page.wait_for_timeout(HYDRATION_DELAY_MS)
        await page.evaluate(_DOCUMENT_COMPLETE_SCRIPT, DOCUMENT_SETTLE_MS)

    async def extract_metadata(self, page) -> PageMetadata:
        """Read SEO metadata from the page's DOM.

        Returns empty metadata when the document cannot be evaluated.
        """
        try:
            data = await page.evaluate(_METADATA_SCRIPT)
        except Exception as e:
            logger.debug(f"Metadata extraction failed: {e}")
            return PageMetadata.empty()

        if not isinstance(data, dict):
            return PageMetadata.empty()
        return PageMetadata.from_dict(data)

    async def extract_links(self, page, fallback_base: str) -> Tuple[List[LinkInfo], List[LinkInfo]]:
        """Collect anchors and split them into internal and external links.

        Args:
            page: Page to read anchors from
            fallback_base: Base used when the document reports no baseURI

        Returns:
            Tuple of (internal_links, external_links)
        """
        try:
            data = await page.evaluate(_LINKS_SCRIPT)
        except Exception as e:
            logger.debug(f"Link extraction failed: {e}")
            return [], []

        if not isinstance(data, dict):
            return [], []

        base = data.get("baseUri") or fallback_base
        if not urlsplit(base).scheme.startswith("http"):
            base = fallback_base
        return self.classify_links(data.get("anchors") or [], base)

    def classify_links(self, anchors: list, base: str) -> Tuple[List[LinkInfo], List[LinkInfo]]:
        """Resolve raw anchors against ``base``, filter exclusions and classify."""
        internal_links: List[LinkInfo] = []
        external_links: List[LinkInfo] = []

        for anchor in anchors:
            try:
                absolute_url = canonical_href(urljoin(base, anchor.get("href") or ""))
                if urlsplit(absolute_url).scheme not in ("http", "https"):
                    continue
            except (ValueError, AttributeError, TypeError):
                continue

            if self.exclusions.matches(absolute_url):
                continue

            is_internal = is_internal_url(absolute_url, self.base_urls)
            link = LinkInfo(
                href=absolute_url,
                text=(anchor.get("text") or "")[:MAX_LINK_TEXT_LENGTH],
                is_internal=is_internal,
                is_external=not is_internal,
            )

            if is_internal:
                internal_links.append(link)
            else:
                external_links.append(link)

        return internal_links, external_links
