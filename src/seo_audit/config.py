from dotenv import load_dotenv
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import json
import os

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from seo_audit.constants import (
    DEFAULT_BATCH_DELAY_MS,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_PAGES,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_REPORTS_DIR,
    DEFAULT_USER_AGENT,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
)
from seo_audit.exceptions import ConfigError, MissingCredentialsError
from seo_audit.models import AuthCredentials

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    AUDIT_EMAIL = os.getenv("AUDIT_EMAIL")
    AUDIT_PASSWORD = os.getenv("AUDIT_PASSWORD")
    CONFIG_PATH = os.getenv("SEO_AUDIT_CONFIG", "sites.json")
    REPORTS_DIR = os.getenv("SEO_AUDIT_REPORTS_DIR", DEFAULT_REPORTS_DIR)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    def get_credentials(self) -> AuthCredentials:
        """Return the audit account credentials.

        Raises:
            MissingCredentialsError: If either variable is unset
        """
        email = os.getenv("AUDIT_EMAIL", self.AUDIT_EMAIL)
        password = os.getenv("AUDIT_PASSWORD", self.AUDIT_PASSWORD)
        if not email or not password:
            raise MissingCredentialsError(
                "Authentication requested but AUDIT_EMAIL or AUDIT_PASSWORD not set."
            )
        return AuthCredentials(email=email, password=password)


settings = Settings()


class Viewport(BaseModel):
    """Browser viewport dimensions."""

    width: int = Field(default=DEFAULT_VIEWPORT_WIDTH, ge=1)
    height: int = Field(default=DEFAULT_VIEWPORT_HEIGHT, ge=1)


class SiteConfig(BaseModel):
    """One crawl target. Immutable for the duration of a run."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    base_url: str = Field(alias="baseUrl")
    enabled: bool = True
    crawl_protected: bool = Field(default=False, alias="crawlProtected")
    crawl_admin: bool = Field(default=False, alias="crawlAdmin")


class CrawlOptions(BaseModel):
    """
    Options shared by every page crawl in a run.

    Times are in milliseconds, matching the sites.json format.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        ge=1,
        description="Maximum pages crawled in parallel per batch",
    )
    timeout: int = Field(
        default=DEFAULT_NAVIGATION_TIMEOUT_MS,
        ge=1000,
        description="Per-navigation timeout in milliseconds",
    )
    max_pages: int = Field(
        default=DEFAULT_MAX_PAGES,
        ge=0,
        alias="maxPages",
        description="Page budget for the whole run (0 = unlimited)",
    )
    delay_between_requests: int = Field(
        default=DEFAULT_BATCH_DELAY_MS,
        ge=0,
        alias="delayBetweenRequests",
        description="Delay between batches in milliseconds",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="userAgent")
    viewport: Viewport = Field(default_factory=Viewport)


class AuditConfig(BaseModel):
    """Everything loaded from sites.json."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sites: List[SiteConfig]
    options: CrawlOptions = Field(default_factory=CrawlOptions)
    seed_paths: List[str] = Field(default_factory=lambda: ["/"], alias="seedPaths")
    exclude_patterns: List[str] = Field(default_factory=list, alias="excludePatterns")
    protected_seed_paths: List[str] = Field(default_factory=list, alias="protectedSeedPaths")
    admin_seed_paths: List[str] = Field(default_factory=list, alias="adminSeedPaths")

    @property
    def enabled_sites(self) -> List[SiteConfig]:
        return [site for site in self.sites if site.enabled]

    @classmethod
    def from_dict(cls, data: dict, path: Optional[str] = None) -> "AuditConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}", path=path) from e

    @classmethod
    def from_file(cls, path: str) -> "AuditConfig":
        """Load configuration from a JSON or YAML file.

        Args:
            path: Path to sites.json / sites.yaml

        Returns:
            Validated AuditConfig

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        file_path = Path(path)

        if not file_path.exists():
            raise ConfigError(f"Configuration file not found: {path}", path=path)

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                if file_path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load {path}: {e}", path=path) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}", path=path)

        return cls.from_dict(data, path=path)

    def apply_cli_overrides(
        self,
        local: bool = False,
        staging: bool = False,
        production: bool = False,
        auth: bool = False,
        admin: bool = False,
        max_pages: int = 0,
        concurrency: int = 0,
        delay: int = 0,
    ) -> "AuditConfig":
        """Return a copy with command-line overrides applied.

        Site selection flags replace the enabled flags from the file:
        --local picks localhost sites, --staging picks staging sites and
        --production picks everything else. --auth turns on protected
        crawling for every enabled site and --admin adds admin routes.
        Numeric overrides only apply when positive.
        """
        sites = list(self.sites)

        if local or staging or production:
            sites = [
                site.model_copy(update={
                    "enabled": (
                        (local and "localhost" in site.base_url)
                        or (staging and "staging" in site.base_url)
                        or (
                            production
                            and "localhost" not in site.base_url
                            and "staging" not in site.base_url
                        )
                    )
                })
                for site in sites
            ]

        if auth:
            sites = [
                site.model_copy(update={
                    "crawl_protected": site.enabled,
                    "crawl_admin": admin and site.enabled,
                })
                for site in sites
            ]

        option_updates = {}
        if max_pages > 0:
            option_updates["max_pages"] = max_pages
        if concurrency > 0:
            option_updates["concurrency"] = concurrency
        if delay > 0:
            option_updates["delay_between_requests"] = delay

        return self.model_copy(update={
            "sites": sites,
            "options": self.options.model_copy(update=option_updates),
        })


@dataclass
class AuditThresholds:
    """Configurable thresholds for issue analysis."""

    title_max: int = 60
    meta_description_max: int = 160
    slow_page_ms: int = 3000

    @classmethod
    def from_env(cls) -> "AuditThresholds":
        """Load thresholds from environment variables.

        Environment variables should be prefixed with SEO_AUDIT_THRESHOLD_
        e.g., SEO_AUDIT_THRESHOLD_SLOW_PAGE_MS=4000

        Returns:
            AuditThresholds with values from environment
        """
        thresholds = cls()
        prefix = "SEO_AUDIT_THRESHOLD_"

        for field_name in thresholds.__dataclass_fields__:
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is not None:
                try:
                    setattr(thresholds, field_name, int(env_value))
                except ValueError:
                    pass  # Keep default if conversion fails

        return thresholds

    def to_dict(self) -> dict:
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }


# Global default thresholds instance
default_thresholds = AuditThresholds()
