"""Utilities and constants for HTTP Digest authentication."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Rich Console for pretty printing
console = Console(stderr=True)

# Get logger for the package
logger = logging.getLogger("digestx")

SCHEME = "Digest"

WWW_AUTHENTICATE = "WWW-Authenticate"
PROXY_AUTHENTICATE = "Proxy-Authenticate"
AUTHORIZATION = "Authorization"
PROXY_AUTHORIZATION = "Proxy-Authorization"

# Canonical casing of the authentication headers
HEADERS = {
    "www-authenticate": WWW_AUTHENTICATE,
    "proxy-authenticate": PROXY_AUTHENTICATE,
    "authorization": AUTHORIZATION,
    "proxy-authorization": PROXY_AUTHORIZATION,
    "authentication-info": "Authentication-Info",
    "proxy-authentication-info": "Proxy-Authentication-Info",
}


def configure_logging(level: str = "INFO", debug: bool = False) -> logging.Logger:
    """
    Attach a RichHandler to the package logger.

    The root logger is left alone so applications keep control over their
    own logging setup.

    Args:
        level: Logging level name (e.g. "INFO", "DEBUG")
        debug: Shortcut for level="DEBUG"

    Returns:
        The configured package logger
    """
    effective_level = "DEBUG" if debug else level

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, effective_level.upper(), logging.INFO))
    return logger
