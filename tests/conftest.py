"""Shared fixtures: an in-memory stand-in for the Playwright browser session."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from seo_audit.config import AuditConfig, CrawlOptions, SiteConfig
from seo_audit.url_utils import normalize_url


def make_metadata(**overrides) -> dict:
    """In-page metadata payload for a well-formed page."""
    data = {
        "title": "Example page title",
        "metaDescription": "A description of the example page.",
        "canonical": "https://example.com/",
        "robotsMeta": None,
        "h1Count": 1,
        "h1Text": ["Welcome"],
        "ogTitle": "Example",
        "ogDescription": "Example description",
        "ogImage": None,
        "ogUrl": None,
        "twitterCard": None,
        "twitterTitle": None,
        "twitterDescription": None,
        "jsonLd": [],
        "viewport": "width=device-width, initial-scale=1",
        "charset": "UTF-8",
        "lang": "en",
    }
    data.update(overrides)
    return data


@dataclass
class FakeConsoleMessage:
    type: str
    text: str


@dataclass
class FakeResponse:
    status: int
    url: str


@dataclass
class FakePageSpec:
    """What the fake browser serves for one URL."""

    status: int = 200
    metadata: dict = field(default_factory=make_metadata)
    links: List[str] = field(default_factory=list)
    console: List[tuple] = field(default_factory=list)
    redirects: List[str] = field(default_factory=list)
    final_url: Optional[str] = None
    goto_error: Optional[str] = None
    evaluate_error: Optional[str] = None


class FakeWeb:
    """A tiny website keyed by normalized URL."""

    def __init__(self, pages: Optional[Dict[str, FakePageSpec]] = None):
        self.pages: Dict[str, FakePageSpec] = {}
        for url, spec in (pages or {}).items():
            self.add(url, spec)
        self.valid_credentials = ("audit@example.com", "correct-horse")
        self.navigations: List[str] = []

    def add(self, url: str, spec: Optional[FakePageSpec] = None) -> FakePageSpec:
        spec = spec or FakePageSpec()
        self.pages[normalize_url(url)] = spec
        return spec

    def lookup(self, url: str) -> Optional[FakePageSpec]:
        return self.pages.get(normalize_url(url))


class FakePage:
    """Implements the subset of playwright.async_api.Page the crawler uses."""

    def __init__(self, session: "FakeSession"):
        self._session = session
        self._web = session.web
        self._handlers: Dict[str, list] = {}
        self._spec: Optional[FakePageSpec] = None
        self._filled: Dict[str, str] = {}
        self.url = "about:blank"
        self.closed = False

    def on(self, event, handler):
        self._handlers.setdefault(event, []).append(handler)

    def _emit(self, event, payload):
        for handler in self._handlers.get(event, []):
            handler(payload)

    async def goto(self, url, wait_until=None, timeout=None):
        self._web.navigations.append(url)
        # Yield so sibling tasks in a batch really run concurrently
        await asyncio.sleep(0.01)

        spec = self._web.lookup(url)
        if spec is None and "/signin" in url:
            self.url = url
            return FakeResponse(status=200, url=url)
        if spec is None:
            spec = FakePageSpec(status=404, metadata={}, links=[])

        self._spec = spec
        for redirect in spec.redirects:
            self._emit("response", FakeResponse(status=301, url=redirect))
        for msg_type, text in spec.console:
            self._emit("console", FakeConsoleMessage(type=msg_type, text=text))

        if spec.goto_error:
            raise TimeoutError(spec.goto_error)

        self.url = spec.final_url or url
        self._emit("response", FakeResponse(status=spec.status, url=self.url))
        return FakeResponse(status=spec.status, url=self.url)

    async def wait_for_timeout(self, ms):
        await asyncio.sleep(0)

    async def evaluate(self, script, arg=None):
        await asyncio.sleep(0)
        spec = self._spec
        if spec is not None and spec.evaluate_error:
            raise RuntimeError(spec.evaluate_error)

        if "readyState" in script:
            return None
        if "metaDescription" in script:
            return dict(spec.metadata) if spec else {}
        if "baseUri" in script:
            anchors = [{"href": href, "text": f"Link to {href}"} for href in (spec.links if spec else [])]
            return {"baseUri": self.url if spec else "about:blank", "anchors": anchors}
        if "selectors" in script:
            selectors, login_path = arg
            return login_path not in self.url
        raise AssertionError(f"Unexpected script: {script[:40]}")

    async def wait_for_selector(self, selector, timeout=None):
        if "/signin" not in self.url:
            raise TimeoutError(f"Timeout {timeout}ms waiting for {selector}")

    async def fill(self, selector, value):
        self._filled[selector] = value

    async def click(self, selector):
        email = next((v for k, v in self._filled.items() if "email" in k), None)
        password = next((v for k, v in self._filled.items() if "password" in k), None)
        if (email, password) == self._web.valid_credentials:
            self.url = self.url.replace("/signin", "/dashboard")

    async def wait_for_url(self, predicate, timeout=None):
        if not predicate(self.url):
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")

    async def close(self):
        if not self.closed:
            self.closed = True
            self._session.open_pages -= 1


class FakeSession:
    """Async context manager mirroring BrowserSession."""

    def __init__(self, web: FakeWeb, options: Optional[CrawlOptions] = None):
        self.web = web
        self.options = options
        self.pages: List[FakePage] = []
        self.open_pages = 0
        self.peak_open_pages = 0
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def new_page(self):
        page = FakePage(self)
        self.pages.append(page)
        self.open_pages += 1
        self.peak_open_pages = max(self.peak_open_pages, self.open_pages)
        return page


@pytest.fixture
def fake_web():
    return FakeWeb()


@pytest.fixture
def fake_session(fake_web):
    return FakeSession(fake_web)


@pytest.fixture
def session_factory(fake_session):
    """Factory handed to SEOCrawler; always yields the same fake session."""
    def factory(options):
        fake_session.options = options
        return fake_session
    return factory


@pytest.fixture
def example_site():
    return SiteConfig(name="Example", base_url="https://example.com")


def make_config(sites=None, seed_paths=("/",), exclude_patterns=(), **options) -> AuditConfig:
    options.setdefault("delay_between_requests", 0)
    return AuditConfig(
        sites=sites or [SiteConfig(name="Example", base_url="https://example.com")],
        options=CrawlOptions(**options),
        seed_paths=list(seed_paths),
        exclude_patterns=list(exclude_patterns),
    )


@pytest.fixture
def page_spec():
    """The FakePageSpec class, for building pages served by ``fake_web``."""
    return FakePageSpec


@pytest.fixture
def audit_config():
    """Factory for AuditConfig objects with no inter-batch delay."""
    return make_config
