"""Command-line interface for the SEO audit crawler.

Usage:
    seo-audit                      # Crawl all enabled sites
    seo-audit --local              # Crawl localhost only
    seo-audit --max=50             # Limit to 50 pages
    seo-audit --local --auth       # Crawl localhost with authentication
"""

import argparse
import asyncio
import sys
import time
from typing import List, Optional

from seo_audit.config import AuditConfig, settings
from seo_audit.constants import PROGRESS_URL_MAX_LENGTH
from seo_audit.exceptions import SEOAuditError
from seo_audit.link_verifier import LinkVerifier
from seo_audit.logging_config import get_logger, setup_logging
from seo_audit.models import CrawlReport, Severity
from seo_audit.output_manager import OutputManager
from seo_audit.site_crawler import SEOCrawler

logger = get_logger(__name__)

EPILOG = """
Environment Variables:
  AUDIT_EMAIL        Email for authenticated crawling
  AUDIT_PASSWORD     Password for authenticated crawling

Examples:
  seo-audit                      # Crawl all enabled sites
  seo-audit --local              # Crawl localhost only
  seo-audit --local --auth       # Crawl localhost with auth
  seo-audit --max=100            # Limit to 100 pages
  seo-audit --production         # Crawl production only
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="seo-audit",
        description="SEO audit crawler",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--local", "-l", action="store_true",
        help="Crawl localhost only (enables local dev site)"
    )
    parser.add_argument(
        "--staging", "-s", action="store_true",
        help="Crawl staging site only"
    )
    parser.add_argument(
        "--production", "-p", action="store_true",
        help="Crawl production site only"
    )
    parser.add_argument(
        "--auth", "-a", action="store_true",
        help="Authenticate before crawling (requires AUDIT_EMAIL and AUDIT_PASSWORD)"
    )
    parser.add_argument(
        "--admin", action="store_true",
        help="Include admin routes (requires auth and an admin account)"
    )
    parser.add_argument(
        "--max", dest="max_pages", type=int, default=0, metavar="N",
        help="Limit crawl to N pages (default: unlimited)"
    )
    parser.add_argument(
        "--concurrency", type=int, default=0, metavar="N",
        help="Number of concurrent pages (default: from config)"
    )
    parser.add_argument(
        "--delay", type=int, default=0, metavar="N",
        help="Delay between batches in ms (default: from config)"
    )
    parser.add_argument(
        "--config", default=settings.CONFIG_PATH,
        help=f"Path to sites configuration, JSON or YAML (default: {settings.CONFIG_PATH})"
    )
    parser.add_argument(
        "--output", default=settings.REPORTS_DIR,
        help=f"Directory for report files (default: {settings.REPORTS_DIR})"
    )
    parser.add_argument(
        "--verify-links", action="store_true",
        help="Check discovered internal links for broken targets after crawling"
    )
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL,
        help="Logging level (default: INFO)"
    )
    return parser.parse_args(argv)


def make_progress_printer():
    """Build a progress callback that rewrites a single terminal line."""
    last_percent = -1

    def on_progress(current: int, total: int, url: str) -> None:
        nonlocal last_percent
        percent = round(current / total * 100) if total else 100
        if percent != last_percent or current == total:
            last_percent = percent
            if len(url) > PROGRESS_URL_MAX_LENGTH:
                url = url[:PROGRESS_URL_MAX_LENGTH - 3] + "..."
            sys.stdout.write(
                f"\rProgress: {current}/{total} ({percent}%) - {url.ljust(PROGRESS_URL_MAX_LENGTH)}"
            )
            sys.stdout.flush()

    return on_progress


def print_summary(report: CrawlReport, elapsed: float) -> None:
    stats = report.stats
    print("\n")
    print("Crawl completed!\n")
    print("Summary:")
    print(f"  Total Pages: {stats.total_pages}")
    print(f"  Successful: {stats.successful_pages}")
    print(f"  Failed: {stats.failed_pages}")
    print(f"  Redirected: {stats.redirected_pages}")
    print(f"  Avg Load Time: {stats.avg_load_time_ms}ms")
    print(f"  Total Time: {elapsed:.1f}s")
    print("")
    print("Issues Found:")
    print(f"  Critical: {len(report.issues_by_severity(Severity.CRITICAL))}")
    print(f"  Warning: {len(report.issues_by_severity(Severity.WARNING))}")
    print(f"  Info: {len(report.issues_by_severity(Severity.INFO))}")
    print("")


def main(argv: Optional[List[str]] = None) -> int:
    """Run the audit. Returns the process exit code."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    print("\n========================================")
    print("         SEO Audit Crawler")
    print("========================================\n")

    try:
        config = AuditConfig.from_file(args.config).apply_cli_overrides(
            local=args.local,
            staging=args.staging,
            production=args.production,
            auth=args.auth,
            admin=args.admin,
            max_pages=args.max_pages,
            concurrency=args.concurrency,
            delay=args.delay,
        )

        if not config.enabled_sites:
            print(
                "No sites enabled. Check your configuration or use "
                "--local, --staging, or --production flags."
            )
            return 1

        credentials = settings.get_credentials() if args.auth else None
    except SEOAuditError as e:
        print(f"Error: {e}")
        return 1

    options = config.options
    print("Configuration:")
    print(f"  Sites: {', '.join(site.name for site in config.enabled_sites)}")
    print(f"  Max Pages: {options.max_pages or 'Unlimited'}")
    print(f"  Concurrency: {options.concurrency}")
    print(f"  Delay: {options.delay_between_requests}ms")
    print(f"  Auth: {'Enabled' if args.auth else 'Disabled'}")
    print(f"  Admin: {'Enabled' if args.admin else 'Disabled'}")
    if credentials:
        print(f"  Account: {credentials.email}")
    print("")

    link_verifier = LinkVerifier(user_agent=options.user_agent) if args.verify_links else None
    crawler = SEOCrawler(config, credentials=credentials, link_verifier=link_verifier)
    crawler.set_progress_callback(make_progress_printer())

    print("Starting crawl...\n")
    start_time = time.time()

    try:
        report = asyncio.run(crawler.crawl(
            config.protected_seed_paths if args.auth else [],
            config.admin_seed_paths if args.admin else [],
        ))
    except SEOAuditError as e:
        print(f"\n\nCrawl failed: {e}")
        return 1

    print_summary(report, time.time() - start_time)

    try:
        paths = OutputManager(args.output).save_report(report)
    except OSError as e:
        print(f"\n\nCrawl failed: could not write reports to {args.output}: {e}")
        return 1

    print("Reports saved:")
    for path in paths.values():
        print(f"  {path}")
    print("")

    critical_count = len(report.issues_by_severity(Severity.CRITICAL))
    if critical_count > 0:
        print(f"Warning: {critical_count} critical issue(s) found!")
        logger.debug(f"Exiting with status 1 ({critical_count} critical issues)")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
