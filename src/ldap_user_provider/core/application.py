"""Main application class for LDAP user lookups.

This module provides the central Application class that wires configuration,
the ldap3 driver and the :class:`~ldap_user_provider.manager.LdapManager`
together, with dependency injection for testability.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import Config
from ..ldap_client import Ldap3Driver
from ..manager import LdapManager
from ..models import DefaultUserFactory, DirectoryPort, UserFactory

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    """Result of a lookup operation."""
    success: bool
    user: Any
    errors: list[str]
    duration: float
    timestamp: float

    @property
    def found(self) -> bool:
        return self.user is not None


@dataclass
class Application:
    """Main application class for directory user lookups.

    Example:
        app = Application(config=Config())
        result = app.lookup("jdoe")
        if result.found:
            print(result.user.roles)
    """
    config: Config
    user_factory: UserFactory = field(default_factory=DefaultUserFactory)

    def __post_init__(self):
        """Initialize application after dataclass creation."""
        self.logger = logging.getLogger(f"{__name__}.Application")
        self._lookup_count = 0

    def build_driver(self) -> Ldap3Driver:
        return Ldap3Driver(
            host=self.config.ldap_host,
            bind_dn=self.config.ldap_bind_dn,
            bind_password=self.config.ldap_bind_password,
            ignore_cert=self.config.ignore_ldaps_cert,
            ca_file=self.config.ldap_ca_file,
            start_tls=self.config.ldap_start_tls,
            timeout=self.config.ldap_timeout,
        )

    def build_manager(self, driver_override: Optional[DirectoryPort] = None) -> LdapManager:
        return LdapManager(
            driver_override or self.build_driver(),
            self.user_factory,
            base_dn=self.config.ldap_base_dn,
            base_filter=self.config.ldap_filter,
            attributes=self.config.attribute_mappings(),
            role=self.config.role_config(),
            manages=self.config.manages_config(),
        )

    def lookup(self, username: str, driver_override: Optional[DirectoryPort] = None) -> LookupResult:
        """Look up a single user by username.

        Args:
            username: Value matched against the first configured attribute
            driver_override: Optional directory port for testing

        Returns:
            LookupResult: ``success`` is False only when an error occurred;
            an unknown user is a successful lookup with ``user=None``.
        """
        self._lookup_count += 1
        lookup_id = f"lookup-{self._lookup_count}-{int(time.time())}"

        start_time = time.time()
        self.logger.debug("Starting %s for %r with config: %s", lookup_id, username, self.config.masked())

        try:
            manager = self.build_manager(driver_override)
            user = manager.find_user_by_username(username)
        except Exception as exc:
            duration = time.time() - start_time
            self.logger.error(f"Lookup {lookup_id} failed: {exc}")
            return LookupResult(
                success=False,
                user=None,
                errors=[str(exc)],
                duration=duration,
                timestamp=start_time,
            )

        duration = time.time() - start_time
        if user is None:
            self.logger.info(f"Lookup {lookup_id}: no user {username!r} ({duration:.2f}s)")
        else:
            self.logger.info(f"Lookup {lookup_id}: found {username!r} ({duration:.2f}s)")

        return LookupResult(
            success=True,
            user=user,
            errors=[],
            duration=duration,
            timestamp=start_time,
        )
