"""User lookups against the directory – ties filters, search and hydration together.

This module performs no I/O of its own: every search and bind goes through the
injected :class:`~ldap_user_provider.models.DirectoryPort`, which makes the
manager easy to unit-test with an in-memory fake.
"""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

from .exceptions import AmbiguousResultError, ConfigurationError
from .filter_builder import build_filter
from .hydrator import Hydrator, SetterRegistry
from .models import AttributeMapping, DirectoryPort, RelationshipConfig, UserEntity, UserFactory
from .relationships import RelationshipResolver

logger = logging.getLogger("ldap_user_provider.manager")

__all__ = ["LdapManager"]


class LdapManager:
    """Find users in the directory and hydrate them into user objects.

    Configuration is validated here: ``user_factory.user_class`` must provide
    the core user methods and every mapped ``user_field`` must resolve to a
    setter on it.

    Example:
        manager = LdapManager(
            driver=Ldap3Driver(...),
            user_factory=DefaultUserFactory(),
            base_dn="ou=people,dc=domain,dc=local",
            base_filter="(objectClass=person)",
            attributes=[AttributeMapping("uid", "username"), AttributeMapping("mail", "email")],
        )
        user = manager.find_user_by_username("jdoe")
    """

    def __init__(
        self,
        driver: DirectoryPort,
        user_factory: UserFactory,
        *,
        base_dn: str,
        base_filter: str | None,
        attributes: Sequence[AttributeMapping],
        role: Optional[RelationshipConfig] = None,
        manages: Optional[RelationshipConfig] = None,
    ) -> None:
        if not attributes:
            raise ConfigurationError("At least one attribute mapping is required")
        if not issubclass(user_factory.user_class, UserEntity):
            raise ConfigurationError(
                f"{user_factory.user_class.__name__} must provide set_password, add_role and set_manages"
            )

        self.driver = driver
        self.user_factory = user_factory
        self.base_dn = base_dn
        self.base_filter = base_filter
        self.mappings = tuple(attributes)
        self.attributes: List[str] = [m.ldap_attr for m in self.mappings]
        self.username_attribute = self.attributes[0]

        registry = SetterRegistry.build(user_factory.user_class, (m.user_field for m in self.mappings))
        self.hydrator = Hydrator(
            self.mappings,
            registry,
            RelationshipResolver(driver),
            role=role,
            manages=manages,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def find_user_by_username(self, username: str) -> Any | None:
        return self.find_user_by({self.username_attribute: username})

    def find_user_by(self, criteria: Mapping[str, Any]) -> Any | None:
        """Return the single user matching *criteria*, or ``None``.

        Raises :class:`AmbiguousResultError` when more than one entry matches.
        """
        search_filter = build_filter(self.base_filter, criteria)
        logger.debug("Searching %s with filter: %s and attributes: %s", self.base_dn, search_filter, self.attributes)

        entries = self.driver.search(self.base_dn, search_filter, self.attributes)
        if entries.count > 1:
            logger.warning("Ambiguous search %s returned %d entries", search_filter, entries.count)
            raise AmbiguousResultError(search_filter, entries.count)

        if entries.count == 0:
            logger.debug("No entry matched %s", search_filter)
            return None

        user = self.user_factory.create_user()
        return self.hydrator.hydrate(user, entries[0])

    def get_roles_for_username(self, username: str) -> List[str]:
        """Roles of *username*; empty when the user does not exist."""
        user = self.find_user_by_username(username)
        if user is None:
            return []
        return list(getattr(user, "roles", []))

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def bind(self, user: Any, password: str) -> bool:
        """Check *password* against the directory; no local comparison is made."""
        return self.driver.bind(user, password)
