"""Hydration of user objects from raw directory entries.

Configured field names are resolved to setter functions once, when the
:class:`SetterRegistry` is built, so an unknown field is reported before the
first lookup instead of in the middle of one.
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from .exceptions import ConfigurationError
from .models import (
    AttributeMapping,
    EnableableUser,
    LdapUserInterface,
    RawEntry,
    RelationshipConfig,
    UserEntity,
    attribute_values,
)
from .relationships import RelationshipResolver

logger = logging.getLogger("ldap_user_provider.hydrator")

__all__ = ["Setter", "SetterRegistry", "Hydrator"]

Setter = Callable[[Any, Any], None]


def _accepts_value(func: Callable[..., Any]) -> bool:
    """True if *func* can be called as ``func(user, value)``."""
    try:
        inspect.signature(func).bind(None, None)
    except (TypeError, ValueError):
        return False
    return True


def _field_setter(name: str) -> Setter:
    def setter(user: Any, value: Any) -> None:
        setattr(user, name, value)

    return setter


class SetterRegistry:
    """Mapping *field name → setter(user, value)* for one user class."""

    def __init__(self, setters: Dict[str, Setter]) -> None:
        self._setters = dict(setters)

    @classmethod
    def build(cls, user_class: type, fields: Iterable[str]) -> "SetterRegistry":
        """Resolve every name in *fields* against *user_class*.

        A callable attribute of the class taking one value wins; otherwise a
        dataclass field of that name is assigned directly.  Anything else,
        including dunder names and methods such as ``get_dn``, raises
        :class:`ConfigurationError`.
        """
        data_fields = {f.name for f in dataclasses.fields(user_class)} if dataclasses.is_dataclass(user_class) else set()

        setters: Dict[str, Setter] = {}
        missing = []
        for name in fields:
            if name.startswith("__"):
                missing.append(name)
                continue
            attr = getattr(user_class, name, None)
            if callable(attr) and _accepts_value(attr):
                setters[name] = attr
            elif name in data_fields:
                setters[name] = _field_setter(name)
            else:
                missing.append(name)

        if missing:
            raise ConfigurationError.unknown_fields(user_class, missing)
        return cls(setters)

    def __getitem__(self, name: str) -> Setter:
        return self._setters[name]

    def __contains__(self, name: object) -> bool:
        return name in self._setters

    def __len__(self) -> int:
        return len(self._setters)


def _collapse(raw: Any) -> Any:
    values = attribute_values(raw)
    return values[0] if len(values) == 1 else values


class Hydrator:
    """Populate a blank user from one raw entry.

    Order of operations:

    1. the password is cleared (directory users never keep a local one) and
       users with an enabled lifecycle are enabled;
    2. every mapped attribute present in the entry is passed to its setter,
       single values collapsed to a scalar;
    3. roles and managed users are resolved when configured;
    4. the entry DN is stored on users implementing
       :class:`~ldap_user_provider.models.LdapUserInterface`.
    """

    def __init__(
        self,
        mappings: Sequence[AttributeMapping],
        registry: SetterRegistry,
        resolver: RelationshipResolver,
        role: Optional[RelationshipConfig] = None,
        manages: Optional[RelationshipConfig] = None,
    ) -> None:
        self.mappings = tuple(mappings)
        self.registry = registry
        self.resolver = resolver
        self.role = role
        self.manages = manages

    def hydrate(self, user: UserEntity, entry: RawEntry) -> UserEntity:
        user.set_password("")

        if isinstance(user, EnableableUser):
            user.set_enabled(True)

        for mapping in self.mappings:
            if mapping.ldap_attr not in entry:
                continue
            self.registry[mapping.user_field](user, _collapse(entry[mapping.ldap_attr]))

        dn = entry.get("dn", "")

        if self.role:
            self.resolver.resolve_roles(user, dn, self.role)

        if self.manages:
            self.resolver.resolve_manages(user, dn, self.manages)

        if isinstance(user, LdapUserInterface):
            user.set_dn(dn)

        logger.debug("Hydrated %s from %s", type(user).__name__, dn)
        return user
