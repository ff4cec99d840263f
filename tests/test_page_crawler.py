"""Tests for the single-page crawl worker."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from seo_audit.config import CrawlOptions
from seo_audit.constants import MAX_LINK_TEXT_LENGTH
from seo_audit.page_crawler import PageCrawler
from seo_audit.url_utils import ExclusionMatcher

BASE = "https://example.com"


@pytest.fixture
def crawler(fake_session):
    return PageCrawler(fake_session, CrawlOptions(), [BASE])


class TestCrawlPage:
    """End-to-end behaviour of crawl_page against the fake browser."""

    @pytest.mark.asyncio
    async def test_successful_page(self, crawler, fake_web, page_spec, example_site):
        fake_web.add(BASE + "/about", page_spec(links=["/team", "https://other.org/"]))

        result = await crawler.crawl_page(BASE + "/about/", example_site)

        assert result.status_code == 200
        assert result.url == BASE + "/about/"
        assert result.normalized_url == BASE + "/about"
        assert result.site == "Example"
        assert result.error is None
        assert result.metadata.title == "Example page title"
        assert result.metadata.h1_count == 1
        assert [link.href for link in result.internal_links] == [BASE + "/team"]
        assert [link.href for link in result.external_links] == ["https://other.org/"]
        assert result.broken_links == []
        assert result.crawled_at.endswith("Z")

    @pytest.mark.asyncio
    async def test_page_always_closed(self, crawler, fake_web, fake_session, example_site):
        fake_web.add(BASE + "/")

        await crawler.crawl_page(BASE + "/", example_site)

        assert len(fake_session.pages) == 1
        assert fake_session.pages[0].closed
        assert fake_session.open_pages == 0

    @pytest.mark.asyncio
    async def test_error_status_still_extracted(self, crawler, fake_web, page_spec, example_site):
        fake_web.add(BASE + "/gone", page_spec(status=404, links=["/home"]))

        result = await crawler.crawl_page(BASE + "/gone", example_site)

        assert result.status_code == 404
        assert result.is_failure
        assert result.error is None
        assert [link.href for link in result.internal_links] == [BASE + "/home"]

    @pytest.mark.asyncio
    async def test_navigation_failure_records_status_zero(
        self, crawler, fake_web, fake_session, page_spec, example_site
    ):
        fake_web.add(BASE + "/slow", page_spec(goto_error="Timeout 30000ms exceeded"))

        result = await crawler.crawl_page(BASE + "/slow", example_site)

        assert result.status_code == 0
        assert result.error == "Timeout 30000ms exceeded"
        assert result.final_url == BASE + "/slow"
        assert fake_session.pages[0].closed

    @pytest.mark.asyncio
    async def test_extraction_failure_yields_empty_metadata(
        self, crawler, fake_web, page_spec, example_site
    ):
        fake_web.add(BASE + "/broken", page_spec(evaluate_error="Execution context was destroyed"))

        result = await crawler.crawl_page(BASE + "/broken", example_site)

        assert result.metadata.title is None
        assert result.metadata.h1_count == 0
        assert result.internal_links == []
        assert result.external_links == []

    @pytest.mark.asyncio
    async def test_new_page_failure_never_raises(self, example_site):
        session = MagicMock()
        session.new_page = AsyncMock(side_effect=RuntimeError("Target closed"))
        crawler = PageCrawler(session, CrawlOptions(), [BASE])

        result = await crawler.crawl_page(BASE + "/", example_site)

        assert result.status_code == 0
        assert result.error == "Target closed"

    @pytest.mark.asyncio
    async def test_only_console_errors_retained(self, crawler, fake_web, page_spec, example_site):
        fake_web.add(BASE + "/", page_spec(console=[
            ("log", "hello"),
            ("warning", "deprecated API"),
            ("error", "Uncaught TypeError: x is undefined"),
            ("error", "Failed to load resource"),
        ]))

        result = await crawler.crawl_page(BASE + "/", example_site)

        assert [m.text for m in result.console_errors] == [
            "Uncaught TypeError: x is undefined",
            "Failed to load resource",
        ]
        assert all(m.type == "error" for m in result.console_errors)

    @pytest.mark.asyncio
    async def test_redirect_responses_recorded(self, crawler, fake_web, page_spec, example_site):
        fake_web.add(BASE + "/old", page_spec(
            redirects=[BASE + "/old", BASE + "/interim"],
            final_url=BASE + "/new",
        ))

        result = await crawler.crawl_page(BASE + "/old", example_site)

        assert result.redirect_chain == [BASE + "/old", BASE + "/interim"]
        assert result.final_url == BASE + "/new"
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_listeners_registered_before_navigation(self, example_site):
        """Events fired during goto must be captured."""
        calls = []
        page = MagicMock()
        page.url = BASE + "/"
        page.on = MagicMock(side_effect=lambda event, handler: calls.append(("on", event)))

        async def goto(*args, **kwargs):
            calls.append(("goto",))
            response = MagicMock()
            response.status = 200
            return response

        page.goto = goto
        page.wait_for_timeout = AsyncMock()
        page.evaluate = AsyncMock(return_value=None)
        page.close = AsyncMock()
        session = MagicMock()
        session.new_page = AsyncMock(return_value=page)

        await PageCrawler(session, CrawlOptions(), [BASE]).crawl_page(BASE + "/", example_site)

        assert calls.index(("goto",)) > calls.index(("on", "console"))
        assert calls.index(("goto",)) > calls.index(("on", "response"))
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_uses_configured_timeout(self, example_site):
        page = MagicMock()
        page.url = BASE + "/"
        page.goto = AsyncMock(return_value=None)
        page.wait_for_timeout = AsyncMock()
        page.evaluate = AsyncMock(return_value=None)
        page.close = AsyncMock()
        session = MagicMock()
        session.new_page = AsyncMock(return_value=page)

        crawler = PageCrawler(session, CrawlOptions(timeout=5000), [BASE])
        result = await crawler.crawl_page(BASE + "/", example_site)

        page.goto.assert_awaited_once_with(BASE + "/", wait_until="networkidle", timeout=5000)
        # A navigation with no response is treated as a failure status
        assert result.status_code == 0


class TestClassifyLinks:
    """Resolution, filtering and classification of raw anchors."""

    def test_relative_links_resolved_against_base(self, crawler):
        internal, external = crawler.classify_links(
            [{"href": "team", "text": "Team"}, {"href": "../up", "text": "Up"}],
            BASE + "/about/",
        )

        assert [link.href for link in internal] == [BASE + "/about/team", BASE + "/up"]
        assert external == []

    def test_subdomains_are_internal(self, crawler):
        internal, external = crawler.classify_links(
            [{"href": "https://blog.example.com/post", "text": ""}], BASE + "/"
        )

        assert internal[0].is_internal and not internal[0].is_external
        assert external == []

    def test_external_links_flagged(self, crawler):
        internal, external = crawler.classify_links(
            [{"href": "https://notexample.com/", "text": "Elsewhere"}], BASE + "/"
        )

        assert internal == []
        assert external[0].is_external and not external[0].is_internal

    def test_non_http_schemes_skipped(self, crawler):
        internal, external = crawler.classify_links(
            [
                {"href": "mailto:hi@example.com", "text": "Mail"},
                {"href": "javascript:void(0)", "text": "JS"},
                {"href": "tel:+123", "text": "Call"},
                {"href": "/ok", "text": "OK"},
            ],
            BASE + "/",
        )

        assert [link.href for link in internal] == [BASE + "/ok"]
        assert external == []

    def test_malformed_links_skipped(self, crawler):
        internal, _ = crawler.classify_links(
            [{"href": "http://[bad", "text": "bad"}, {"href": "/fine", "text": "fine"}],
            BASE + "/",
        )

        assert [link.href for link in internal] == [BASE + "/fine"]

    def test_hrefs_serialized_with_lowercase_host_and_no_default_port(self, crawler):
        internal, external = crawler.classify_links(
            [
                {"href": "https://EXAMPLE.com/About", "text": "About"},
                {"href": "https://example.com:443/pricing?b=2&a=1#plans", "text": "Pricing"},
                {"href": "HTTPS://Other.ORG", "text": "Other"},
            ],
            BASE + "/",
        )

        assert [link.href for link in internal] == [
            BASE + "/About",
            BASE + "/pricing?b=2&a=1#plans",
        ]
        assert [link.href for link in external] == ["https://other.org/"]

    def test_excluded_links_dropped(self, fake_session):
        crawler = PageCrawler(
            fake_session, CrawlOptions(), [BASE], ExclusionMatcher(["*/private/*"])
        )

        internal, _ = crawler.classify_links(
            [{"href": "/private/x", "text": ""}, {"href": "/public", "text": ""}], BASE + "/"
        )

        assert [link.href for link in internal] == [BASE + "/public"]

    def test_link_text_truncated(self, crawler):
        internal, _ = crawler.classify_links(
            [{"href": "/long", "text": "x" * 500}], BASE + "/"
        )

        assert len(internal[0].text) == MAX_LINK_TEXT_LENGTH

    @pytest.mark.asyncio
    async def test_document_base_uri_preferred(self, crawler):
        page = MagicMock()
        page.evaluate = AsyncMock(return_value={
            "baseUri": "https://example.com/docs/",
            "anchors": [{"href": "intro", "text": "Intro"}],
        })

        internal, _ = await crawler.extract_links(page, BASE + "/other")

        assert internal[0].href == "https://example.com/docs/intro"

    @pytest.mark.asyncio
    async def test_fallback_base_used_without_base_uri(self, crawler):
        page = MagicMock()
        page.evaluate = AsyncMock(return_value={
            "baseUri": "about:blank",
            "anchors": [{"href": "intro", "text": "Intro"}],
        })

        internal, _ = await crawler.extract_links(page, BASE + "/guide/")

        assert internal[0].href == BASE + "/guide/intro"
