"""Central configuration dataclass loaded from environment variables.

Defaults are read when a :class:`Config` is *instantiated*, so tests can set
variables with ``monkeypatch`` before building one.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .core.constants import (
    YES_VALUES,
    DEFAULT_LDAP_HOST,
    DEFAULT_LDAP_FILTER,
    DEFAULT_LDAP_TIMEOUT,
    DEFAULT_LDAP_ATTRIBUTES,
    DEFAULT_ROLE_USER_DN_ATTR,
    DEFAULT_ROLE_NAME_ATTR,
    DEFAULT_MANAGES_USER_DN_ATTR,
    DEFAULT_MANAGES_NAME_ATTR,
)
from .exceptions import ConfigurationError
from .models import AttributeMapping, RelationshipConfig

_SENSITIVE = ("password", "secret", "token")


def _env(name: str, default: str = "") -> Any:
    return field(default_factory=lambda: os.getenv(name, default))


def _env_bool(name: str, default: bool = False) -> Any:
    def read() -> bool:
        val = os.getenv(name)
        if val is None:
            return default
        return val.strip().upper() in YES_VALUES

    return field(default_factory=read)


def parse_attribute_mappings(raw: str) -> List[AttributeMapping]:
    """Parse ``"uid=username,mail=email"`` into attribute mappings.

    Order is preserved: the first pair names the username attribute.
    """
    mappings: List[AttributeMapping] = []
    for pair in (p.strip() for p in raw.split(",")):
        if not pair:
            continue
        ldap_attr, sep, user_field = (s.strip() for s in pair.partition("="))
        if not sep or not ldap_attr or not user_field:
            raise ConfigurationError(f"Invalid attribute mapping {pair!r}, expected '<ldap_attr>=<user_field>'")
        mappings.append(AttributeMapping(ldap_attr, user_field))
    return mappings


@dataclass(slots=True)
class Config:
    """Runtime configuration derived from environment variables."""

    # LDAP --------------------------------------------------------------
    ldap_host: str = _env('LDAP_HOST', DEFAULT_LDAP_HOST)
    ldap_bind_dn: str = _env('LDAP_BIND_DN')
    ldap_bind_password: str = _env('LDAP_BIND_PASSWORD')
    ldap_base_dn: str = _env('LDAP_BASE_DN')
    ldap_filter: str = _env('LDAP_FILTER', DEFAULT_LDAP_FILTER)
    ldap_attributes: str = _env('LDAP_ATTRIBUTES', DEFAULT_LDAP_ATTRIBUTES)
    ldap_timeout: float = field(default_factory=lambda: float(os.getenv('LDAP_TIMEOUT', DEFAULT_LDAP_TIMEOUT)))
    ldap_start_tls: bool = _env_bool('LDAP_START_TLS', False)

    ignore_ldaps_cert: bool = _env_bool('IGNORE_LDAPS_CERT', False)
    ldap_ca_file: str | None = field(default_factory=lambda: os.getenv('LDAP_CA_FILE') or None)

    # Roles -------------------------------------------------------------
    role_base_dn: str = _env('LDAP_ROLE_BASE_DN')
    role_filter: str = _env('LDAP_ROLE_FILTER')
    role_user_dn_attr: str = _env('LDAP_ROLE_USER_DN_ATTRIBUTE', DEFAULT_ROLE_USER_DN_ATTR)
    role_name_attr: str = _env('LDAP_ROLE_NAME_ATTRIBUTE', DEFAULT_ROLE_NAME_ATTR)

    # Manages -----------------------------------------------------------
    manages_base_dn: str = _env('LDAP_MANAGES_BASE_DN')
    manages_filter: str = _env('LDAP_MANAGES_FILTER')
    manages_user_dn_attr: str = _env('LDAP_MANAGES_USER_DN_ATTRIBUTE', DEFAULT_MANAGES_USER_DN_ATTR)
    manages_name_attr: str = _env('LDAP_MANAGES_NAME_ATTRIBUTE', DEFAULT_MANAGES_NAME_ATTR)

    # Misc --------------------------------------------------------------
    debug: bool = _env_bool('DEBUG', False)

    def attribute_mappings(self) -> List[AttributeMapping]:
        mappings = parse_attribute_mappings(self.ldap_attributes)
        if not mappings:
            raise ConfigurationError("LDAP_ATTRIBUTES must name at least one attribute")
        return mappings

    def role_config(self) -> Optional[RelationshipConfig]:
        if not self.role_base_dn:
            return None
        return RelationshipConfig(
            base_dn=self.role_base_dn,
            user_dn_attribute=self.role_user_dn_attr,
            name_attribute=self.role_name_attr,
            filter=self.role_filter,
        )

    def manages_config(self) -> Optional[RelationshipConfig]:
        if not self.manages_base_dn:
            return None
        return RelationshipConfig(
            base_dn=self.manages_base_dn,
            user_dn_attribute=self.manages_user_dn_attr,
            name_attribute=self.manages_name_attr,
            filter=self.manages_filter,
        )

    def masked(self) -> Dict[str, Any]:
        """Config as a dict with sensitive values replaced, safe for logging."""
        cfg_dict = asdict(self)
        for k in cfg_dict:
            if any(s in k.lower() for s in _SENSITIVE):
                cfg_dict[k] = "***"
        return cfg_dict
