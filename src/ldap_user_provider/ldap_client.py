"""Directory port built on *ldap3*.

:class:`Ldap3Driver` is what :class:`~ldap_user_provider.manager.LdapManager`
talks to in production.  It works with any directory flavour ldap3 supports
(389ds/FreeIPA, OpenLDAP, Active Directory…).

Features
~~~~~~~~
* Searches with a service account (simple bind), one connection per call.
* Supports ``ldaps://`` and StartTLS with optional certificate ignore or CA
  file.
* Converts ldap3 responses into raw entries: list values become
  ``{"count": n, "values": [...]}``, scalars are kept, ``dn`` is added.
  Attribute names stay case-insensitive, and empty attributes are dropped so
  they look exactly like missing ones.
* Verifies user credentials by binding as the user.
"""
from __future__ import annotations

import logging
import ssl
from typing import Any, Callable, Dict, Sequence

from ldap3 import AUTO_BIND_NO_TLS, AUTO_BIND_TLS_BEFORE_BIND, SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPBindError
from ldap3.utils.ciDict import CaseInsensitiveDict

from .models import LdapUserInterface, RawEntry, SearchResult

logger = logging.getLogger("ldap_user_provider.ldap")

__all__ = ["Ldap3Driver", "to_raw_entry"]


# Helper ---------------------------------------------------------------------


def _build_server(host: str, ignore_cert: bool = False, ca_file: str | None = None, start_tls: bool = False) -> Server:
    """Build an ldap3 :class:`Server` with correct TLS settings."""
    use_ssl = host.lower().startswith("ldaps://")
    clean_host = host.replace("ldap://", "").replace("ldaps://", "")

    tls: Tls | None = None
    if use_ssl or start_tls:
        if ignore_cert:
            tls = Tls(validate=ssl.CERT_NONE)
        elif ca_file:
            tls = Tls(validate=ssl.CERT_REQUIRED, ca_certs_file=ca_file)
    return Server(clean_host, use_ssl=use_ssl, get_info=None, tls=tls)


def to_raw_entry(response: Dict[str, Any]) -> RawEntry:
    """Convert one ldap3 ``searchResEntry`` response into a raw entry."""
    entry: Dict[str, Any] = CaseInsensitiveDict()
    for name, value in (response.get("attributes") or {}).items():
        if value in (None, "", [], ()):  # noqa: RUF100
            continue
        if isinstance(value, (list, tuple)):
            entry[name] = {"count": len(value), "values": list(value)}
        else:
            entry[name] = value
    entry["dn"] = str(response.get("dn", ""))
    return entry


# Public API -----------------------------------------------------------------


class Ldap3Driver:
    """Search and bind against a live directory."""

    def __init__(
        self,
        *,
        host: str,
        bind_dn: str,
        bind_password: str,
        ignore_cert: bool = False,
        ca_file: str | None = None,
        start_tls: bool = False,
        timeout: int | float = 5,
        connection_factory: Callable[..., Connection] = Connection,
    ) -> None:
        self._server = _build_server(host, ignore_cert=ignore_cert, ca_file=ca_file, start_tls=start_tls)
        self._bind_dn = bind_dn
        self._bind_password = bind_password
        self._auto_bind = AUTO_BIND_TLS_BEFORE_BIND if start_tls else AUTO_BIND_NO_TLS
        self._timeout = timeout
        self._connection_factory = connection_factory

    def _connect(self, user: str, password: str) -> Connection:
        return self._connection_factory(
            self._server,
            user=user,
            password=password,
            auto_bind=self._auto_bind,
            receive_timeout=self._timeout,
        )

    def search(self, base_dn: str, search_filter: str, attributes: Sequence[str]) -> SearchResult:
        conn = self._connect(self._bind_dn, self._bind_password)
        try:
            logger.debug(f"Searching LDAP at {base_dn} with filter: {search_filter} and attributes: {list(attributes)}")
            conn.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=list(attributes),
            )
            entries = tuple(to_raw_entry(r) for r in (conn.response or []) if r.get("type") == "searchResEntry")
        finally:
            conn.unbind()

        logger.debug("Search returned %d entries", len(entries))
        return SearchResult(entries)

    def bind(self, user: Any, password: str) -> bool:
        """Return ``True`` if *password* is valid for *user*.

        An empty password is rejected up front: most servers accept it as an
        unauthenticated bind.
        """
        if not password:
            return False

        principal = user.get_dn() if isinstance(user, LdapUserInterface) else ""
        principal = principal or getattr(user, "username", None) or ""
        if not principal:
            logger.debug("Cannot bind %r: no DN or username", user)
            return False

        try:
            conn = self._connect(principal, password)
        except LDAPBindError:
            logger.debug("Bind failed for %s", principal)
            return False

        try:
            return bool(conn.bound)
        finally:
            conn.unbind()
