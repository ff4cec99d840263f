"""Logging setup for the seo-audit command.

``cli.main`` calls :func:`setup_logging` once with the ``--log-level``
value (``LOG_LEVEL`` in the environment). The crawler modules log per-page
progress, login attempts and link verification totals under the
``seo_audit`` namespace; the console progress line and summary are plain
``print`` output and are not affected by the level chosen here.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# httpx logs one INFO line per request during --verify-links
NOISY_LOGGERS = ('httpx', 'httpcore', 'asyncio')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """Route crawler logs to stdout and, optionally, a file.

    Any previous root configuration is replaced, so calling this twice in
    one process (as the CLI tests do) does not stack handlers. Unknown level
    names fall back to INFO. The HTTP client and event loop loggers are held
    at WARNING regardless of ``level``.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; parent directories are created
        format_string: Optional custom format string
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a ``seo_audit`` module (pass ``__name__``)."""
    return logging.getLogger(name)
