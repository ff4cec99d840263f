"""Assembles crawl results into a CrawlReport. Performs no I/O."""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from seo_audit.issue_analyzer import IssueAnalyzer
from seo_audit.models import BrokenLinkEntry, CrawlReport, CrawlStats, PageResult


def compute_stats(pages: Sequence[PageResult], total_crawl_time_ms: int = 0) -> CrawlStats:
    """Aggregate counts and averages over crawled pages.

    Args:
        pages: Crawled pages
        total_crawl_time_ms: Wall-clock duration of the whole run

    Returns:
        CrawlStats for the report
    """
    total = len(pages)
    avg_load = round(sum(p.load_time_ms for p in pages) / total) if total else 0

    return CrawlStats(
        total_pages=total,
        successful_pages=sum(1 for p in pages if p.is_success),
        failed_pages=sum(1 for p in pages if p.is_failure),
        redirected_pages=sum(1 for p in pages if p.redirect_chain),
        pages_with_errors=sum(1 for p in pages if p.console_errors),
        pages_with_broken_links=sum(1 for p in pages if p.broken_links),
        pages_with_missing_title=sum(1 for p in pages if not p.metadata.title),
        pages_with_missing_description=sum(1 for p in pages if not p.metadata.meta_description),
        pages_with_missing_h1=sum(1 for p in pages if p.metadata.h1_count == 0),
        pages_with_multiple_h1=sum(1 for p in pages if p.metadata.h1_count > 1),
        pages_with_no_index=sum(1 for p in pages if p.metadata.is_noindex),
        avg_load_time_ms=int(avg_load),
        total_crawl_time_ms=int(total_crawl_time_ms),
    )


def build_broken_links_report(pages: Iterable[PageResult]) -> List[BrokenLinkEntry]:
    """Flatten each page's broken links into report rows."""
    return [
        BrokenLinkEntry(source_url=page.url, broken_url=link.href, link_text=link.text)
        for page in pages
        for link in page.broken_links
    ]


class ReportAssembler:
    """Builds the terminal CrawlReport handed to report writers."""

    def __init__(self, analyzer: Optional[IssueAnalyzer] = None):
        self.analyzer = analyzer or IssueAnalyzer()

    def assemble(
        self,
        pages: Sequence[PageResult],
        sites: Iterable[str],
        total_crawl_time_ms: int = 0,
    ) -> CrawlReport:
        """Assemble a report.

        Args:
            pages: Crawled pages in crawl order
            sites: Names of the sites that were crawled
            total_crawl_time_ms: Wall-clock duration of the run

        Returns:
            CrawlReport with stats, broken links and sorted issues
        """
        pages = list(pages)
        return CrawlReport(
            generated_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            sites=list(sites),
            stats=compute_stats(pages, total_crawl_time_ms),
            pages=pages,
            broken_links_report=build_broken_links_report(pages),
            issues=self.analyzer.analyze(pages),
        )
