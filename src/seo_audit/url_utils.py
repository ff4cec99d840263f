"""URL normalization, internal-link classification and exclusion matching."""

import re
from typing import Iterable, List, Optional, Pattern
from urllib.parse import urljoin, urlsplit

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _host(scheme: str, hostname: str, port: Optional[int]) -> str:
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    return host


def _origin(scheme: str, hostname: str, port: Optional[int]) -> str:
    return f"{scheme}://{_host(scheme, hostname, port)}"


def _sorted_query(query: str) -> str:
    """Stable-sort raw ``key=value`` pairs by key without decoding them."""
    pairs = [pair for pair in query.split("&") if pair]
    pairs.sort(key=lambda pair: pair.split("=", 1)[0])
    return "&".join(pairs)


def canonical_href(url: str) -> str:
    """Serialize an absolute URL the way a browser reports ``a.href``.

    Lowercases the scheme and host, drops the default port and gives an
    empty path a single ``/``. Path, query and fragment are kept verbatim.
    Input without scheme or host is returned unchanged.

    Raises:
        ValueError: If the URL has an invalid host or port
    """
    parsed = urlsplit(url)
    if not parsed.scheme or not parsed.hostname:
        return url

    scheme = parsed.scheme.lower()
    userinfo = parsed.netloc.rsplit("@", 1)[0] + "@" if "@" in parsed.netloc else ""
    host = _host(scheme, parsed.hostname.lower(), parsed.port)

    result = f"{scheme}://{userinfo}{host}" + (parsed.path or "/")
    if parsed.query:
        result += "?" + parsed.query
    if parsed.fragment:
        result += "#" + parsed.fragment
    return result


def normalize_url(url: str, base: Optional[str] = None) -> str:
    """Canonicalize a URL for deduplication.

    Resolves ``url`` against ``base``, drops the fragment, strips trailing
    slashes from the path and sorts query parameters by key. Query pairs
    are compared as raw text, so distinct percent-escapes stay distinct.
    Input that cannot be parsed into an absolute URL is returned unchanged.

    Args:
        url: Absolute or relative URL
        base: Base URL used to resolve relative input

    Returns:
        Normalized URL, or ``url`` itself on parse failure
    """
    try:
        absolute = urljoin(base, url) if base else url
        parsed = urlsplit(absolute)
        if not parsed.scheme or not parsed.hostname:
            return url

        scheme = parsed.scheme.lower()
        normalized = _origin(scheme, parsed.hostname.lower(), parsed.port)
        normalized += parsed.path.rstrip("/")

        query = _sorted_query(parsed.query)
        if query:
            normalized += "?" + query

        return normalized
    except (ValueError, TypeError):
        return url


def belongs_to_site(url: str, base_url: str) -> bool:
    """Check whether a URL lies under a site's base URL.

    Both sides are normalized first, so host case and default ports do
    not matter.
    """
    normalized = normalize_url(url)
    base = normalize_url(base_url)
    if normalized == base:
        return True
    return normalized.startswith(base + "/") or normalized.startswith(base + "?")


def is_internal_url(url: str, base_urls: Iterable[str]) -> bool:
    """Check whether a URL's host equals or is a subdomain of a base host.

    Args:
        url: Absolute URL to classify
        base_urls: Configured site base URLs

    Returns:
        True if the URL belongs to one of the configured sites
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False

    for base in base_urls:
        try:
            base_host = urlsplit(base).hostname
        except ValueError:
            continue
        if base_host and (hostname == base_host or hostname.endswith("." + base_host)):
            return True
    return False


def compile_exclusion(pattern: str) -> Pattern:
    """Compile a glob-style exclusion pattern.

    ``*`` matches any sequence and ``?`` any single character. The compiled
    rule is case-insensitive and must match the whole URL.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts) + r"\Z", re.IGNORECASE | re.DOTALL)


class ExclusionMatcher:
    """A set of compiled exclusion patterns."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns: List[str] = list(patterns)
        self._compiled: List[Pattern] = [compile_exclusion(p) for p in self.patterns]

    def matches(self, url: str) -> bool:
        """Return True if ANY pattern matches the URL."""
        return any(rule.match(url) for rule in self._compiled)

    def __len__(self) -> int:
        return len(self._compiled)
