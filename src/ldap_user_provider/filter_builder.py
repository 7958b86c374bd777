"""LDAP filter builder utility.

This module constructs compound search filters from a base filter plus a
mapping of criteria.

    * base_filter – raw filter string from configuration (e.g.
      ``(objectClass=person)``), used verbatim.  If falsy, it is omitted.
    * criteria – ``{attribute: value}`` mapping; every value is escaped with
      :func:`~ldap_user_provider.escaping.escape_value` and rendered as
      ``(attribute=value)``.  A list value renders one clause per element.
    * operator – ``&`` (default) or ``|``; wraps the whole concatenation.

Attribute names are **not** escaped: they must come from trusted
configuration, never from user input.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .core.constants import FILTER_AND
from .escaping import escape_value

__all__ = ["build_filter", "build_relationship_filter"]


def _normalize(val: str | None) -> str | None:
    """Return stripped value or ``None`` if empty/None."""
    if val is None:
        return None
    val = val.strip()
    return val or None


def _wrap(raw: str | None) -> str:
    flt = _normalize(raw)
    if not flt:
        return ""
    # ensure it is wrapped in parentheses
    if not flt.startswith("("):
        flt = f"({flt})"
    return flt


def build_filter(
    base_filter: Optional[str],
    criteria: Mapping[str, Any],
    operator: str = FILTER_AND,
) -> str:
    """Construct a filter string from *base_filter* and *criteria*.

    Criteria are emitted in the mapping's iteration order so the output is
    deterministic.

    >>> build_filter("(objectClass=*)", {"uid": "john*doe"})
    '(&(objectClass=*)(uid=john\\\\2adoe))'
    """
    parts: list[str] = [_wrap(base_filter)]

    for attr, value in criteria.items():
        escaped = escape_value(value)
        if isinstance(escaped, list):
            parts.extend(f"({attr}={v})" for v in escaped)
        else:
            parts.append(f"({attr}={escaped})")

    return f"({operator}{''.join(parts)})"


def build_relationship_filter(extra_filter: Optional[str], user_dn_attribute: str, dn: str) -> str:
    """Filter selecting entries whose *user_dn_attribute* references *dn*.

    Used for the role and manages lookups.  The DN is escaped like any other
    value; a DN such as ``cn=Smith (IT),dc=local`` would otherwise break the
    filter.
    """
    return build_filter(extra_filter, {user_dn_attribute: dn})
