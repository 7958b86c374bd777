"""Exception hierarchy.

A user that is simply not found is *not* an error – lookups return ``None``.
Transport and bind failures come straight from ldap3 and are not wrapped.
"""
from __future__ import annotations

from typing import Iterable

__all__ = ["LdapUserProviderError", "AmbiguousResultError", "ConfigurationError"]


class LdapUserProviderError(Exception):
    """Base class for errors raised by this package."""


class AmbiguousResultError(LdapUserProviderError):
    """A search expected to identify a single user matched several entries."""

    def __init__(self, search_filter: str, count: int) -> None:
        super().__init__(f"This search can only return a single user, got {count} entries for {search_filter}")
        self.search_filter = search_filter
        self.count = count


class ConfigurationError(LdapUserProviderError):
    """Invalid configuration, detected when the manager is built."""

    @classmethod
    def unknown_fields(cls, user_class: type, fields: Iterable[str]) -> "ConfigurationError":
        names = ", ".join(sorted(fields))
        return cls(f"{user_class.__name__} has no setter or field for: {names}")
