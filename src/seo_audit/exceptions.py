"""Exceptions raised during audit startup.

Only these errors are allowed to abort a run. Failures that happen while
crawling individual pages are recorded on the PageResult instead.
"""


class SEOAuditError(Exception):
    """Base class for fatal audit errors."""


class ConfigError(SEOAuditError):
    """Raised when the site configuration is missing or invalid."""

    def __init__(self, message: str, path: str = None):
        self.message = message
        self.path = path
        super().__init__(message)


class MissingCredentialsError(SEOAuditError):
    """Raised when authenticated crawling is requested without credentials."""


class BrowserLaunchError(SEOAuditError):
    """Raised when the headless browser cannot be started."""
