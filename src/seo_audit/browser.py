"""
Shared headless-browser session for audit crawls.

One browser process and one browser context are shared for the whole run;
every page crawl gets its own Page from that context:

    async with BrowserSession(options) as session:
        page = await session.new_page()
"""
import logging
from typing import List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from seo_audit.config import CrawlOptions
from seo_audit.exceptions import BrowserLaunchError

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    Playwright-backed browser session.

    Designed to be used as an async context manager, managing the
    browser lifecycle. Also tracks how many pages are open at once so
    callers can assert the concurrency bound.
    """

    def __init__(
        self,
        options: CrawlOptions,
        headless: bool = True,
        browser_type: str = "chromium",
        launch_args: Optional[List[str]] = None,
    ):
        """
        Initialize the browser session.

        Args:
            options: Crawl options (user agent and viewport are used here)
            headless: Run browser without a visible window
            browser_type: Playwright engine name (chromium, firefox, webkit)
            launch_args: Extra command-line arguments for the browser
        """
        self._options = options
        self._headless = headless
        self._browser_type = browser_type
        self._launch_args = launch_args or []
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self.open_pages = 0
        self.peak_open_pages = 0

    async def __aenter__(self) -> "BrowserSession":
        """Enter async context manager, launching browser and context."""
        logger.info(f"Launching {self._browser_type} browser (headless={self._headless})")

        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._browser_type)

            launch_options = {"headless": self._headless}
            if self._launch_args:
                launch_options["args"] = self._launch_args

            self._browser = await launcher.launch(**launch_options)
            self._context = await self._browser.new_context(
                user_agent=self._options.user_agent,
                viewport=self._options.viewport.model_dump(),
            )
        except Exception as e:
            await self._shutdown()
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

        logger.info("Browser launched successfully")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager, closing context and browser."""
        await self._shutdown()
        logger.info("Browser closed")

    async def _shutdown(self) -> None:
        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def new_page(self) -> Page:
        """
        Open an isolated page in the shared context.

        Raises:
            RuntimeError: If the session has not been entered
        """
        if not self._context:
            raise RuntimeError(
                "Browser is not running. Use BrowserSession as an async context manager: "
                "async with BrowserSession(options) as session:"
            )

        page = await self._context.new_page()
        self.open_pages += 1
        self.peak_open_pages = max(self.peak_open_pages, self.open_pages)
        page.once("close", self._on_page_closed)
        return page

    def _on_page_closed(self, *_args) -> None:
        self.open_pages = max(0, self.open_pages - 1)
