"""Tests for report assembly and serialization."""

from unittest.mock import MagicMock

from seo_audit.models import (
    ConsoleMessage,
    CrawlerState,
    LinkInfo,
    PageMetadata,
    PageResult,
    SEOIssue,
    Severity,
)
from seo_audit.report import ReportAssembler, build_broken_links_report, compute_stats


def page(url, status=200, load=100, **kwargs):
    return PageResult(
        url=url,
        normalized_url=url,
        final_url=url,
        status_code=status,
        site="Example",
        load_time_ms=load,
        **kwargs,
    )


class TestComputeStats:
    """Test suite for compute_stats."""

    def test_empty(self):
        stats = compute_stats([])

        assert stats.total_pages == 0
        assert stats.avg_load_time_ms == 0

    def test_counts(self):
        pages = [
            page("https://example.com/", load=100, metadata=PageMetadata(
                title="Home", meta_description="d", h1_count=1)),
            page("https://example.com/old", load=200, redirect_chain=["https://example.com/old"],
                 metadata=PageMetadata(title="Old", h1_count=2, robots_meta="NOINDEX, follow")),
            page("https://example.com/404", status=404, load=301,
                 console_errors=[ConsoleMessage("error", "x")],
                 broken_links=[LinkInfo(href="https://example.com/nope", is_broken=True)]),
            page("https://example.com/down", status=0, load=0),
        ]

        stats = compute_stats(pages, total_crawl_time_ms=1234)

        assert stats.total_pages == 4
        assert stats.successful_pages == 2
        assert stats.failed_pages == 2
        assert stats.redirected_pages == 1
        assert stats.pages_with_errors == 1
        assert stats.pages_with_broken_links == 1
        assert stats.pages_with_missing_title == 2
        assert stats.pages_with_missing_description == 3
        assert stats.pages_with_missing_h1 == 2
        assert stats.pages_with_multiple_h1 == 1
        assert stats.pages_with_no_index == 1
        assert stats.avg_load_time_ms == 150
        assert stats.total_crawl_time_ms == 1234

    def test_redirect_status_neither_success_nor_failure(self):
        stats = compute_stats([page("https://example.com/r", status=301)])

        assert stats.successful_pages == 0
        assert stats.failed_pages == 0


class TestBrokenLinksReport:
    """Flattening of per-page broken links."""

    def test_rows_in_page_order(self):
        pages = [
            page("https://example.com/a", broken_links=[
                LinkInfo(href="https://example.com/x", text="X"),
                LinkInfo(href="https://example.com/y", text="Y"),
            ]),
            page("https://example.com/b"),
            page("https://example.com/c", broken_links=[LinkInfo(href="https://example.com/x", text="again")]),
        ]

        rows = build_broken_links_report(pages)

        assert [(r.source_url, r.broken_url, r.link_text) for r in rows] == [
            ("https://example.com/a", "https://example.com/x", "X"),
            ("https://example.com/a", "https://example.com/y", "Y"),
            ("https://example.com/c", "https://example.com/x", "again"),
        ]


class TestReportAssembler:
    """Test suite for ReportAssembler."""

    def test_assemble(self):
        pages = [page("https://example.com/")]

        report = ReportAssembler().assemble(pages, ["Example"], 42)

        assert report.sites == ["Example"]
        assert report.pages == pages
        assert report.stats.total_pages == 1
        assert report.stats.total_crawl_time_ms == 42
        assert report.generated_at.endswith("Z")
        assert report.has_critical_issues

    def test_uses_injected_analyzer(self):
        issue = SEOIssue(Severity.INFO, "Title", "https://example.com/", "m", "r")
        analyzer = MagicMock()
        analyzer.analyze.return_value = [issue]

        report = ReportAssembler(analyzer).assemble([page("https://example.com/")], ["Example"])

        assert report.issues == [issue]
        assert not report.has_critical_issues
        assert report.issues_by_severity(Severity.INFO) == [issue]


class TestSerialization:
    """camelCase report shape."""

    def test_page_to_dict(self):
        result = page(
            "https://example.com/",
            metadata=PageMetadata(title="Home", og_title="OG", json_ld=['{"@type": "Thing"}']),
            internal_links=[LinkInfo(href="https://example.com/a", text="A", is_internal=True)],
        )

        data = result.to_dict()

        assert data["statusCode"] == 200
        assert data["normalizedUrl"] == "https://example.com/"
        assert data["metadata"]["ogTitle"] == "OG"
        assert data["metadata"]["jsonLd"] == ['{"@type": "Thing"}']
        assert data["internalLinks"] == [{
            "href": "https://example.com/a",
            "text": "A",
            "isInternal": True,
            "isExternal": False,
            "isBroken": False,
        }]
        assert "error" not in data

    def test_page_error_included_when_set(self):
        result = page("https://example.com/", status=0)
        result.error = "Timeout"

        assert result.to_dict()["error"] == "Timeout"

    def test_report_to_dict(self):
        pages = [page("https://example.com/", broken_links=[LinkInfo(href="https://example.com/x")])]
        data = ReportAssembler().assemble(pages, ["Example"]).to_dict()

        assert set(data) == {"generatedAt", "sites", "stats", "pages", "brokenLinksReport", "issues"}
        assert data["stats"]["totalPages"] == 1
        assert data["brokenLinksReport"][0] == {
            "sourceUrl": "https://example.com/",
            "brokenUrl": "https://example.com/x",
            "linkText": "",
        }
        assert data["issues"][0]["severity"] == "critical"


class TestModels:
    """Small behaviours on the data models."""

    def test_severity_rank(self):
        assert Severity.CRITICAL.rank < Severity.WARNING.rank < Severity.INFO.rank

    def test_metadata_from_dict(self):
        meta = PageMetadata.from_dict({
            "title": "",
            "metaDescription": "desc",
            "h1Text": ["A", "B"],
            "robotsMeta": "noindex",
        })

        assert meta.title is None
        assert meta.meta_description == "desc"
        assert meta.h1_count == 2
        assert meta.is_noindex

    def test_metadata_empty(self):
        meta = PageMetadata.empty()

        assert meta.title is None
        assert meta.h1_count == 0
        assert not meta.is_noindex

    def test_crawler_state_starts_empty(self):
        state = CrawlerState()

        assert not state.visited and not state.queue and not state.results
        assert state.is_authenticated is False
