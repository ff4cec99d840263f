"""Data models for SEO audit crawling.

Field names follow Python conventions; ``to_dict()`` produces the camelCase
report shape consumed by existing report tooling.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Severity(str, Enum):
    """Issue severity tiers, most severe first."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


@dataclass
class AuthCredentials:
    """Login for authenticated crawling."""

    email: str
    password: str

    def __repr__(self) -> str:
        return f"AuthCredentials(email={self.email!r}, password='***')"


@dataclass
class ConsoleMessage:
    """A console error or warning emitted by a page."""

    type: str
    text: str

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass
class PageMetadata:
    """Metadata extracted from a rendered page."""

    title: Optional[str] = None
    meta_description: Optional[str] = None
    canonical: Optional[str] = None
    robots_meta: Optional[str] = None
    h1_count: int = 0
    h1_text: list[str] = field(default_factory=list)

    # Open Graph
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    og_url: Optional[str] = None

    # Twitter card
    twitter_card: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None

    json_ld: list[str] = field(default_factory=list)
    viewport: Optional[str] = None
    charset: Optional[str] = None
    lang: Optional[str] = None

    @classmethod
    def empty(cls) -> "PageMetadata":
        """Metadata for a page whose DOM could not be read."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> "PageMetadata":
        """Build from the camelCase object returned by in-page extraction."""
        h1_text = [str(text) for text in (data.get("h1Text") or [])]
        return cls(
            title=data.get("title") or None,
            meta_description=data.get("metaDescription") or None,
            canonical=data.get("canonical") or None,
            robots_meta=data.get("robotsMeta") or None,
            h1_count=int(data.get("h1Count") or len(h1_text)),
            h1_text=h1_text,
            og_title=data.get("ogTitle") or None,
            og_description=data.get("ogDescription") or None,
            og_image=data.get("ogImage") or None,
            og_url=data.get("ogUrl") or None,
            twitter_card=data.get("twitterCard") or None,
            twitter_title=data.get("twitterTitle") or None,
            twitter_description=data.get("twitterDescription") or None,
            json_ld=[str(blob) for blob in (data.get("jsonLd") or [])],
            viewport=data.get("viewport") or None,
            charset=data.get("charset") or None,
            lang=data.get("lang") or None,
        )

    @property
    def is_noindex(self) -> bool:
        return bool(self.robots_meta) and "noindex" in self.robots_meta.lower()

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "metaDescription": self.meta_description,
            "canonical": self.canonical,
            "robotsMeta": self.robots_meta,
            "h1Count": self.h1_count,
            "h1Text": list(self.h1_text),
            "ogTitle": self.og_title,
            "ogDescription": self.og_description,
            "ogImage": self.og_image,
            "ogUrl": self.og_url,
            "twitterCard": self.twitter_card,
            "twitterTitle": self.twitter_title,
            "twitterDescription": self.twitter_description,
            "jsonLd": list(self.json_ld),
            "viewport": self.viewport,
            "charset": self.charset,
            "lang": self.lang,
        }


@dataclass
class LinkInfo:
    """An anchor found on a page, resolved to an absolute URL."""

    href: str
    text: str = ""
    is_internal: bool = False
    is_external: bool = False
    is_broken: bool = False

    def to_dict(self) -> dict:
        return {
            "href": self.href,
            "text": self.text,
            "isInternal": self.is_internal,
            "isExternal": self.is_external,
            "isBroken": self.is_broken,
        }


@dataclass
class PageResult:
    """Complete record of one crawled URL."""

    url: str
    normalized_url: str
    final_url: str
    status_code: int
    site: str
    redirect_chain: list[str] = field(default_factory=list)
    metadata: PageMetadata = field(default_factory=PageMetadata)
    internal_links: list[LinkInfo] = field(default_factory=list)
    external_links: list[LinkInfo] = field(default_factory=list)
    broken_links: list[LinkInfo] = field(default_factory=list)
    console_errors: list[ConsoleMessage] = field(default_factory=list)
    load_time_ms: int = 0
    crawled_at: str = field(default_factory=_utc_now_iso)
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_failure(self) -> bool:
        return self.status_code >= 400 or self.status_code == 0

    def to_dict(self) -> dict:
        data = {
            "url": self.url,
            "normalizedUrl": self.normalized_url,
            "finalUrl": self.final_url,
            "statusCode": self.status_code,
            "redirectChain": list(self.redirect_chain),
            "metadata": self.metadata.to_dict(),
            "internalLinks": [link.to_dict() for link in self.internal_links],
            "externalLinks": [link.to_dict() for link in self.external_links],
            "brokenLinks": [link.to_dict() for link in self.broken_links],
            "consoleErrors": [msg.to_dict() for msg in self.console_errors],
            "loadTimeMs": self.load_time_ms,
            "crawledAt": self.crawled_at,
            "site": self.site,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class SEOIssue:
    """A single rule-derived finding."""

    severity: Severity
    category: str
    url: str
    message: str
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "category": self.category,
            "url": self.url,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass
class CrawlStats:
    """Aggregate counts and averages for one run."""

    total_pages: int = 0
    successful_pages: int = 0
    failed_pages: int = 0
    redirected_pages: int = 0
    pages_with_errors: int = 0
    pages_with_broken_links: int = 0
    pages_with_missing_title: int = 0
    pages_with_missing_description: int = 0
    pages_with_missing_h1: int = 0
    pages_with_multiple_h1: int = 0
    pages_with_no_index: int = 0
    avg_load_time_ms: int = 0
    total_crawl_time_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "totalPages": self.total_pages,
            "successfulPages": self.successful_pages,
            "failedPages": self.failed_pages,
            "redirectedPages": self.redirected_pages,
            "pagesWithErrors": self.pages_with_errors,
            "pagesWithBrokenLinks": self.pages_with_broken_links,
            "pagesWithMissingTitle": self.pages_with_missing_title,
            "pagesWithMissingDescription": self.pages_with_missing_description,
            "pagesWithMissingH1": self.pages_with_missing_h1,
            "pagesWithMultipleH1": self.pages_with_multiple_h1,
            "pagesWithNoIndex": self.pages_with_no_index,
            "avgLoadTimeMs": self.avg_load_time_ms,
            "totalCrawlTimeMs": self.total_crawl_time_ms,
        }


@dataclass
class BrokenLinkEntry:
    """One broken link and the page it was found on."""

    source_url: str
    broken_url: str
    link_text: str

    def to_dict(self) -> dict:
        return {
            "sourceUrl": self.source_url,
            "brokenUrl": self.broken_url,
            "linkText": self.link_text,
        }


@dataclass
class CrawlReport:
    """Terminal artifact of one audit run."""

    generated_at: str
    sites: list[str]
    stats: CrawlStats
    pages: list[PageResult] = field(default_factory=list)
    broken_links_report: list[BrokenLinkEntry] = field(default_factory=list)
    issues: list[SEOIssue] = field(default_factory=list)

    def issues_by_severity(self, severity: Severity) -> list[SEOIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def has_critical_issues(self) -> bool:
        return any(issue.severity == Severity.CRITICAL for issue in self.issues)

    def to_dict(self) -> dict:
        return {
            "generatedAt": self.generated_at,
            "sites": list(self.sites),
            "stats": self.stats.to_dict(),
            "pages": [page.to_dict() for page in self.pages],
            "brokenLinksReport": [entry.to_dict() for entry in self.broken_links_report],
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class CrawlerState:
    """Frontier state owned by a single crawler run.

    Only the scheduler mutates this, and only between batches.
    """

    visited: set[str] = field(default_factory=set)
    queue: deque = field(default_factory=deque)
    results: list[PageResult] = field(default_factory=list)
    is_authenticated: bool = False
