"""Output manager for writing audit reports with timestamped names."""

import csv
import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from seo_audit.constants import DEFAULT_REPORTS_DIR, REPORT_FILE_PREFIX
from seo_audit.models import CrawlReport

logger = logging.getLogger(__name__)

PAGE_CSV_COLUMNS = [
    "URL",
    "Site",
    "Status",
    "Final URL",
    "Title",
    "Title Length",
    "Meta Description",
    "Description Length",
    "H1 Count",
    "Canonical",
    "Robots",
    "Internal Links",
    "External Links",
    "Broken Links",
    "Console Errors",
    "Load Time (ms)",
    "Error",
]

ISSUE_CSV_COLUMNS = ["Severity", "Category", "URL", "Message", "Recommendation"]


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def report_to_json(report: CrawlReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False, cls=DateTimeEncoder)


def pages_to_csv(report: CrawlReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(PAGE_CSV_COLUMNS)

    for page in report.pages:
        meta = page.metadata
        writer.writerow([
            page.url,
            page.site,
            page.status_code,
            page.final_url,
            meta.title or "",
            len(meta.title or ""),
            meta.meta_description or "",
            len(meta.meta_description or ""),
            meta.h1_count,
            meta.canonical or "",
            meta.robots_meta or "",
            len(page.internal_links),
            len(page.external_links),
            len(page.broken_links),
            len(page.console_errors),
            page.load_time_ms,
            page.error or "",
        ])

    return buffer.getvalue()


def issues_to_csv(report: CrawlReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(ISSUE_CSV_COLUMNS)

    for issue in report.issues:
        writer.writerow([
            issue.severity.value,
            issue.category,
            issue.url,
            issue.message,
            issue.recommendation,
        ])

    return buffer.getvalue()


class OutputManager:
    """Writes report files into a reports directory."""

    def __init__(self, base_output_dir: str = DEFAULT_REPORTS_DIR):
        """Initialize output manager.

        Args:
            base_output_dir: Directory for report files (created if missing)
        """
        self.base_output_dir = Path(base_output_dir)
        self.base_output_dir.mkdir(parents=True, exist_ok=True)

    def report_basename(self, timestamp: Optional[datetime] = None) -> str:
        """Build the file stem, e.g. ``seo-audit-2025-11-23-1430``."""
        if timestamp is None:
            timestamp = datetime.now()
        return f"{REPORT_FILE_PREFIX}-{timestamp.strftime('%Y-%m-%d-%H%M')}"

    def save_report(
        self,
        report: CrawlReport,
        timestamp: Optional[datetime] = None,
    ) -> Dict[str, Path]:
        """Save the JSON report plus pages and issues CSV files.

        Args:
            report: Assembled crawl report
            timestamp: Optional timestamp for file names (defaults to now)

        Returns:
            Mapping of report kind ("json", "pages_csv", "issues_csv") to path
        """
        base_name = self.report_basename(timestamp)
        paths = {
            "pages_csv": self.base_output_dir / f"{base_name}-pages.csv",
            "issues_csv": self.base_output_dir / f"{base_name}-issues.csv",
            "json": self.base_output_dir / f"{base_name}.json",
        }

        self._write(paths["pages_csv"], pages_to_csv(report))
        self._write(paths["issues_csv"], issues_to_csv(report))
        self._write(paths["json"], report_to_json(report))

        logger.info(f"Reports saved to {self.base_output_dir}")
        return paths

    def _write(self, path: Path, content: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
