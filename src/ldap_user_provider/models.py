"""Data model shared by the query engine and the directory driver.

Raw entries are plain mappings produced by a directory port: every attribute
is either a scalar or a multi-valued ``{"count": n, "values": [...]}`` mapping,
and the reserved ``dn`` key holds the distinguished name.

User capabilities are expressed as :class:`typing.Protocol` classes; the
engine checks them with ``isinstance`` before calling optional methods.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Protocol, Sequence, Tuple, runtime_checkable

__all__ = [
    "AttributeMapping",
    "RelationshipConfig",
    "RawEntry",
    "SearchResult",
    "UserEntity",
    "EnableableUser",
    "LdapUserInterface",
    "DirectoryPort",
    "UserFactory",
    "LdapUser",
    "DefaultUserFactory",
    "attribute_values",
]

RawEntry = Mapping[str, Any]


def attribute_values(value: Any) -> List[Any]:
    """Return the values of a raw attribute as a list, dropping any count marker."""
    if isinstance(value, Mapping) and "count" in value:
        return list(value.get("values", ()))
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass(frozen=True, slots=True)
class AttributeMapping:
    """Directory attribute → user field (setter method or dataclass field)."""

    ldap_attr: str
    user_field: str


@dataclass(frozen=True, slots=True)
class RelationshipConfig:
    """Where and how to look up role / managed entries for a user DN."""

    base_dn: str
    user_dn_attribute: str
    name_attribute: str
    filter: str = ""

    def __bool__(self) -> bool:
        return bool(self.base_dn)


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Ordered entries returned by a directory search.

    ``count`` is derived from the entries so it always matches their number.
    """

    entries: Tuple[RawEntry, ...] = ()

    @property
    def count(self) -> int:
        return len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[RawEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> RawEntry:
        return self.entries[index]


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


@runtime_checkable
class UserEntity(Protocol):
    """Core capability every hydrated user must provide."""

    def set_password(self, password: str) -> None: ...

    def add_role(self, role: str) -> None: ...

    def set_manages(self, manages: Sequence[str]) -> None: ...


@runtime_checkable
class EnableableUser(Protocol):
    """Users with an enabled/disabled lifecycle."""

    def set_enabled(self, enabled: bool) -> None: ...


@runtime_checkable
class LdapUserInterface(Protocol):
    """Users that remember the directory entry they were loaded from."""

    def set_dn(self, dn: str) -> None: ...

    def get_dn(self) -> str: ...


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------


class DirectoryPort(Protocol):
    def search(self, base_dn: str, search_filter: str, attributes: Sequence[str]) -> SearchResult: ...

    def bind(self, user: Any, password: str) -> bool: ...


class UserFactory(Protocol):
    user_class: type

    def create_user(self) -> Any: ...


# ---------------------------------------------------------------------------
# Default user implementation
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LdapUser:
    username: str | None = None
    email: str | None = None
    display_name: str | None = None
    given_name: str | None = None
    surname: str | None = None
    dn: str | None = None
    password: str | None = None
    enabled: bool = False
    roles: List[str] = field(default_factory=list)
    manages: List[str] = field(default_factory=list)

    def set_password(self, password: str) -> None:
        self.password = password

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def add_role(self, role: str) -> None:
        self.roles.append(role)

    def set_manages(self, manages: Sequence[str]) -> None:
        self.manages = list(manages)

    def set_dn(self, dn: str) -> None:
        self.dn = dn

    def get_dn(self) -> str:
        return self.dn or ""

    def __repr__(self) -> str:  # pragma: no cover – cosmetic
        return (
            "LdapUser(" f"dn={self.dn!r}, username={self.username!r}, email={self.email!r}, "
            f"roles={self.roles}, manages={len(self.manages)} items, enabled={self.enabled})"
        )


@dataclass(slots=True)
class DefaultUserFactory:
    """Creates blank users of *user_class*; persistence is left to the caller."""

    user_class: type = LdapUser

    def create_user(self) -> Any:
        return self.user_class()
