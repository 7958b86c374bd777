"""LDAP user lookup entrypoint.

Looks up one user (first CLI argument or ``LDAP_LOOKUP_USERNAME``) and logs
the hydrated result.  Exit codes: 0 found, 1 not found, 2 error.
"""
import os
import logging
import sys
from typing import List, Optional

from ldap_user_provider.config import Config
from ldap_user_provider.core.application import Application

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging(debug: bool = False) -> logging.Logger:
    """Configure and return the application logger."""

    # Configure only the application logger, not the root logger
    app_logger = logging.getLogger("ldap_user_provider")
    app_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Prevent propagation to the root logger to avoid affecting other modules
    app_logger.propagate = False

    # Clear any existing handlers to avoid duplicate logs
    for h in list(app_logger.handlers):
        app_logger.removeHandler(h)

    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S %d.%m.%y",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    return app_logger

# ---------------------------------------------------------------------------
# Main entrypoint
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """Look up a single user and report it."""
    cfg = Config()
    logger = _setup_logging(debug=cfg.debug)

    args = sys.argv[1:] if argv is None else argv
    username = args[0] if args else os.getenv("LDAP_LOOKUP_USERNAME", "").strip()
    if not username:
        logger.error("No username given (argument or LDAP_LOOKUP_USERNAME)")
        return 2

    result = Application(config=cfg).lookup(username)

    if not result.success:
        logger.error("Lookup failed: %s", "; ".join(result.errors))
        return 2
    if not result.found:
        logger.info("User %s not found", username)
        return 1

    logger.info("User: %r", result.user)
    return 0


if __name__ == "__main__":
    sys.exit(main())
