"""SEO audit crawler with authenticated crawling and ranked issue reports."""

__version__ = "0.1.0"

from seo_audit.auth import Authenticator, AuthState
from seo_audit.browser import BrowserSession
from seo_audit.config import (
    AuditConfig,
    AuditThresholds,
    CrawlOptions,
    SiteConfig,
    settings,
)
from seo_audit.exceptions import (
    BrowserLaunchError,
    ConfigError,
    MissingCredentialsError,
    SEOAuditError,
)
from seo_audit.issue_analyzer import IssueAnalyzer
from seo_audit.link_verifier import LinkVerifier
from seo_audit.models import (
    AuthCredentials,
    BrokenLinkEntry,
    ConsoleMessage,
    CrawlerState,
    CrawlReport,
    CrawlStats,
    LinkInfo,
    PageMetadata,
    PageResult,
    SEOIssue,
    Severity,
)
from seo_audit.output_manager import OutputManager
from seo_audit.page_crawler import PageCrawler
from seo_audit.report import ReportAssembler, compute_stats
from seo_audit.site_crawler import SEOCrawler
from seo_audit.url_utils import (
    ExclusionMatcher,
    belongs_to_site,
    canonical_href,
    compile_exclusion,
    is_internal_url,
    normalize_url,
)

__all__ = [
    # Core
    "SEOCrawler",
    "PageCrawler",
    "BrowserSession",
    "Authenticator",
    "AuthState",
    "IssueAnalyzer",
    "ReportAssembler",
    "compute_stats",
    "LinkVerifier",
    "OutputManager",
    # Config
    "AuditConfig",
    "AuditThresholds",
    "CrawlOptions",
    "SiteConfig",
    "settings",
    # Models
    "AuthCredentials",
    "BrokenLinkEntry",
    "ConsoleMessage",
    "CrawlerState",
    "CrawlReport",
    "CrawlStats",
    "LinkInfo",
    "PageMetadata",
    "PageResult",
    "SEOIssue",
    "Severity",
    # URLs
    "ExclusionMatcher",
    "belongs_to_site",
    "canonical_href",
    "compile_exclusion",
    "is_internal_url",
    "normalize_url",
    # Errors
    "SEOAuditError",
    "ConfigError",
    "MissingCredentialsError",
    "BrowserLaunchError",
]
