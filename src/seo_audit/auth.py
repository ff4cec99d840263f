"""
Login-form authentication for crawling protected routes.

Success detection is heuristic: a signed-in DOM marker or a URL that has
left the login path counts as authenticated. A False result means "not
known to be signed in", not "definitely rejected".
"""

import logging
from enum import Enum
from typing import Optional

from seo_audit.config import SiteConfig
from seo_audit.constants import (
    AUTH_SUCCESS_SELECTORS,
    DEFAULT_LOGIN_PATH,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    EMAIL_INPUT_SELECTOR,
    LOGIN_FORM_TIMEOUT_MS,
    LOGIN_REDIRECT_TIMEOUT_MS,
    LOGIN_SETTLE_MS,
    NAVIGATION_WAIT_UNTIL,
    PASSWORD_INPUT_SELECTOR,
    SUBMIT_BUTTON_SELECTOR,
)
from seo_audit.models import AuthCredentials

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    """Authentication lifecycle for one run."""

    UNAUTHENTICATED = "unauthenticated"
    ATTEMPTING = "attempting"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


# Evaluated in the page after the post-login redirect
_LOGIN_CHECK_SCRIPT = """
([selectors, loginPath]) => {
    return (
        selectors.some(selector => document.querySelector(selector) !== null) ||
        !window.location.pathname.includes(loginPath)
    );
}
"""


class Authenticator:
    """Drives a site's login form through a browser session."""

    def __init__(
        self,
        credentials: AuthCredentials,
        timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        login_path: str = DEFAULT_LOGIN_PATH,
    ):
        self.credentials = credentials
        self.timeout_ms = timeout_ms
        self.login_path = login_path
        self.state = AuthState.UNAUTHENTICATED
        self.last_error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED

    def login_url(self, site: SiteConfig) -> str:
        return f"{site.base_url.rstrip('/')}{self.login_path}"

    async def authenticate(self, session, site: SiteConfig) -> bool:
        """Sign in to a site.

        Failures are logged and reported as False; they never propagate,
        so the crawl can carry on unauthenticated.

        Args:
            session: BrowserSession providing new_page()
            site: Site whose login form is used

        Returns:
            True if the session appears to be signed in
        """
        logger.info(f"Authenticating on {site.name}...")
        self.state = AuthState.ATTEMPTING
        login_path = self.login_path
        page = None

        try:
            page = await session.new_page()

            await page.goto(
                self.login_url(site),
                wait_until=NAVIGATION_WAIT_UNTIL,
                timeout=self.timeout_ms,
            )
            await page.wait_for_selector(EMAIL_INPUT_SELECTOR, timeout=LOGIN_FORM_TIMEOUT_MS)

            await page.fill(EMAIL_INPUT_SELECTOR, self.credentials.email)
            await page.fill(PASSWORD_INPUT_SELECTOR, self.credentials.password)
            await page.click(SUBMIT_BUTTON_SELECTOR)

            await page.wait_for_url(
                lambda url: login_path not in url,
                timeout=LOGIN_REDIRECT_TIMEOUT_MS,
            )
            await page.wait_for_timeout(LOGIN_SETTLE_MS)

            is_logged_in = bool(await page.evaluate(
                _LOGIN_CHECK_SCRIPT, [list(AUTH_SUCCESS_SELECTORS), login_path]
            ))
        except Exception as e:
            self.state = AuthState.FAILED
            self.last_error = str(e)
            logger.warning(f"Authentication failed on {site.name}: {e}")
            return False
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug(f"Failed to close login page: {e}")

        if is_logged_in:
            self.state = AuthState.AUTHENTICATED
            logger.info("Authentication successful!")
        else:
            self.state = AuthState.FAILED
            logger.warning("Authentication may have failed - proceeding unauthenticated")

        return is_logged_in
