"""Follow-up lookups for roles and managed users.

Both lookups search for entries whose configured attribute references the
user's DN (e.g. groups with ``member=<dn>``) and read the first value of the
configured name attribute from each hit.
"""
from __future__ import annotations

import logging
import re
from typing import List

from .core.constants import ROLE_PREFIX
from .filter_builder import build_relationship_filter
from .models import DirectoryPort, RelationshipConfig, UserEntity, attribute_values

logger = logging.getLogger("ldap_user_provider.relationships")

__all__ = ["slugify", "RelationshipResolver"]

# Underscores count as separators too, so "__a__b" gives "A_B".
_SEPARATOR_RE = re.compile(r"[\W_]+")


def slugify(name: str) -> str:
    """Normalise *name* into an upper-case, underscore-delimited token.

    >>> slugify("Domain Admins")
    'DOMAIN_ADMINS'
    """
    return _SEPARATOR_RE.sub("_", name).strip("_").upper()


class RelationshipResolver:
    """Resolve role names and managed users through a :class:`DirectoryPort`."""

    def __init__(self, driver: DirectoryPort) -> None:
        self._driver = driver

    def _names(self, dn: str, config: RelationshipConfig) -> List[str]:
        search_filter = build_relationship_filter(config.filter, config.user_dn_attribute, dn)
        logger.debug("Searching %s with filter: %s", config.base_dn, search_filter)

        result = self._driver.search(config.base_dn, search_filter, [config.name_attribute])

        names: List[str] = []
        for entry in result:
            values = attribute_values(entry[config.name_attribute]) if config.name_attribute in entry else []
            if not values:
                logger.debug("Entry %s has no %s value, skipped", entry.get("dn"), config.name_attribute)
                continue
            names.append(str(values[0]))
        return names

    def resolve_roles(self, user: UserEntity, dn: str, config: RelationshipConfig) -> None:
        """Add a ``ROLE_<SLUG>`` role to *user* for every matching entry, in result order."""
        for name in self._names(dn, config):
            user.add_role(f"{ROLE_PREFIX}{slugify(name)}")

    def resolve_manages(self, user: UserEntity, dn: str, config: RelationshipConfig) -> None:
        """Replace the *manages* list of *user* with the names of the matching entries."""
        manages = self._names(dn, config)
        logger.debug("%s manages %d entries", dn, len(manages))
        user.set_manages(manages)
