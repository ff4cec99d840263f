"""Rule-based SEO issue detection over crawled pages."""

from typing import Iterable, List, Optional

from seo_audit.config import AuditThresholds, default_thresholds
from seo_audit.models import PageResult, SEOIssue, Severity


class IssueAnalyzer:
    """Classifies each page's extracted data into severity-ranked findings.

    Every rule is independent, so one page can yield many issues. The
    returned list is sorted critical -> warning -> info, keeping page
    order within a tier.
    """

    def __init__(self, thresholds: Optional[AuditThresholds] = None):
        """Initialize analyzer with configurable thresholds.

        Args:
            thresholds: Length and timing limits used by the rules
        """
        self.thresholds = thresholds or default_thresholds

    def analyze(self, pages: Iterable[PageResult]) -> List[SEOIssue]:
        """Analyze all pages.

        Args:
            pages: Crawled pages in crawl order

        Returns:
            Flat list of SEOIssue sorted by severity
        """
        issues: List[SEOIssue] = []
        for page in pages:
            issues.extend(self.analyze_page(page))

        # list.sort is stable, so page order survives within a tier
        issues.sort(key=lambda issue: issue.severity.rank)
        return issues

    def analyze_page(self, page: PageResult) -> List[SEOIssue]:
        """Apply every rule to a single page, in rule order."""
        issues: List[SEOIssue] = []
        meta = page.metadata
        url = page.url

        def add(severity: Severity, category: str, message: str, recommendation: str) -> None:
            issues.append(SEOIssue(
                severity=severity,
                category=category,
                url=url,
                message=message,
                recommendation=recommendation,
            ))

        if page.is_failure:
            suffix = f": {page.error}" if page.error else ""
            add(
                Severity.CRITICAL, "HTTP Status",
                f"Page returned status {page.status_code}{suffix}",
                "Fix the server error or remove broken links to this page",
            )

        if not meta.title:
            add(
                Severity.CRITICAL, "Title",
                "Page is missing a title tag",
                "Add a unique, descriptive title tag (50-60 characters)",
            )
        elif len(meta.title) > self.thresholds.title_max:
            add(
                Severity.WARNING, "Title",
                f"Title is too long ({len(meta.title)} characters)",
                f"Shorten the title to 50-{self.thresholds.title_max} characters",
            )

        if not meta.meta_description:
            add(
                Severity.CRITICAL, "Meta Description",
                "Page is missing a meta description",
                "Add a compelling meta description (150-160 characters)",
            )
        elif len(meta.meta_description) > self.thresholds.meta_description_max:
            add(
                Severity.WARNING, "Meta Description",
                f"Meta description is too long ({len(meta.meta_description)} characters)",
                f"Shorten the meta description to 150-{self.thresholds.meta_description_max} characters",
            )

        if meta.h1_count == 0:
            add(
                Severity.WARNING, "H1",
                "Page is missing an H1 tag",
                "Add a single H1 tag that describes the page content",
            )
        elif meta.h1_count > 1:
            add(
                Severity.WARNING, "H1",
                f"Page has multiple H1 tags ({meta.h1_count})",
                "Use only one H1 tag per page",
            )

        if not meta.canonical:
            add(
                Severity.WARNING, "Canonical",
                "Page is missing a canonical URL",
                "Add a canonical link element to prevent duplicate content issues",
            )

        if not meta.og_title or not meta.og_description:
            add(
                Severity.INFO, "Open Graph",
                "Page is missing Open Graph tags",
                "Add og:title and og:description for better social sharing",
            )

        if page.console_errors:
            add(
                Severity.WARNING, "JavaScript",
                f"Page has {len(page.console_errors)} JavaScript error(s)",
                "Fix JavaScript errors to improve user experience and SEO",
            )

        if page.load_time_ms > self.thresholds.slow_page_ms:
            add(
                Severity.WARNING, "Performance",
                f"Page load time is slow ({page.load_time_ms / 1000:.2f}s)",
                f"Optimize page performance - aim for under {self.thresholds.slow_page_ms / 1000:g} seconds",
            )

        if not meta.viewport:
            add(
                Severity.WARNING, "Mobile",
                "Page is missing viewport meta tag",
                "Add viewport meta tag for mobile responsiveness",
            )

        if not meta.lang:
            add(
                Severity.INFO, "Accessibility",
                "Page is missing lang attribute",
                "Add lang attribute to the HTML element",
            )

        return issues
