# src/seo_audit/constants.py
"""Centralized constants for the SEO audit crawler.

This module contains magic numbers and default values that are used
across multiple modules. For user-configurable thresholds, see config.py
and AuditThresholds.
"""

# =============================================================================
# Crawler Constants
# =============================================================================

# Default number of pages crawled in parallel per batch
DEFAULT_CONCURRENCY = 3

# Default navigation timeout in milliseconds
DEFAULT_NAVIGATION_TIMEOUT_MS = 30000

# Default page budget (0 = unlimited)
DEFAULT_MAX_PAGES = 0

# Default delay between batches in milliseconds
DEFAULT_BATCH_DELAY_MS = 500

# Playwright wait strategy used for page navigation
NAVIGATION_WAIT_UNTIL = "networkidle"

# Fixed delay after navigation for client-rendered pages (milliseconds)
HYDRATION_DELAY_MS = 1000

# Extra settle time once document.readyState is "complete" (milliseconds)
DOCUMENT_SETTLE_MS = 500

# Maximum characters of anchor text kept per link
MAX_LINK_TEXT_LENGTH = 100

# Console message types retained from the page
RETAINED_CONSOLE_TYPES = ("error", "warning")

# Status code recorded when navigation fails outright
NAVIGATION_FAILURE_STATUS = 0


# =============================================================================
# Browser Constants
# =============================================================================

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; SEOAuditBot/1.0; +https://github.com/seo-audit)"
)

DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_VIEWPORT_HEIGHT = 720


# =============================================================================
# Authentication Constants
# =============================================================================

DEFAULT_LOGIN_PATH = "/signin"

EMAIL_INPUT_SELECTOR = 'input[type="email"], input[name="email"]'
PASSWORD_INPUT_SELECTOR = 'input[type="password"], input[name="password"]'
SUBMIT_BUTTON_SELECTOR = 'button[type="submit"]'

# Bounded wait for the login form to render (milliseconds)
LOGIN_FORM_TIMEOUT_MS = 10000

# Bounded wait for the URL to leave the login path (milliseconds)
LOGIN_REDIRECT_TIMEOUT_MS = 30000

# Settle delay after the post-login redirect (milliseconds)
LOGIN_SETTLE_MS = 2000

# DOM markers that indicate a signed-in session
AUTH_SUCCESS_SELECTORS = ('[data-testid="user-menu"]', ".user-avatar")


# =============================================================================
# Link Verification Constants
# =============================================================================

DEFAULT_LINK_CHECK_TIMEOUT_SECONDS = 10.0

DEFAULT_LINK_CHECK_CONCURRENCY = 10

# Status codes that mean "HEAD not supported, retry with GET"
HEAD_FALLBACK_STATUS_CODES = (405, 501)


# =============================================================================
# Reporting Constants
# =============================================================================

DEFAULT_REPORTS_DIR = "reports"

REPORT_FILE_PREFIX = "seo-audit"

# Maximum characters of a URL shown on the progress line
PROGRESS_URL_MAX_LENGTH = 60
