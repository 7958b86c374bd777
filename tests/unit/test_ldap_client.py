from unittest.mock import MagicMock

import pytest
from ldap3 import AUTO_BIND_NO_TLS, AUTO_BIND_TLS_BEFORE_BIND, SUBTREE
from ldap3.core.exceptions import LDAPBindError, LDAPSocketOpenError

from ldap_user_provider.ldap_client import Ldap3Driver, to_raw_entry
from ldap_user_provider.models import LdapUser

JDOE_DN = "uid=jdoe,ou=people,dc=domain,dc=local"


def _driver(conn=None, **kwargs):
    factory = MagicMock(return_value=conn if conn is not None else MagicMock())
    params = dict(host="ldap://localhost:389", bind_dn="cn=svc,dc=domain,dc=local", bind_password="svcpw")
    params.update(kwargs)
    return Ldap3Driver(connection_factory=factory, **params), factory


def test_to_raw_entry():
    entry = to_raw_entry(
        {
            "type": "searchResEntry",
            "dn": JDOE_DN,
            "attributes": {"uid": ["jdoe"], "cn": ["John", "Johnny"], "mail": [], "uidNumber": 1000},
        }
    )
    assert entry["dn"] == JDOE_DN
    assert entry["uid"] == {"count": 1, "values": ["jdoe"]}
    assert entry["CN"] == {"count": 2, "values": ["John", "Johnny"]}
    assert entry["uidNumber"] == 1000
    # empty attributes look exactly like missing ones
    assert "mail" not in entry


def test_search_converts_response():
    conn = MagicMock()
    conn.response = [
        {"type": "searchResEntry", "dn": JDOE_DN, "attributes": {"uid": ["jdoe"]}},
        {"type": "searchResRef", "uri": ["ldap://other.domain.local/dc=other"]},
    ]
    driver, factory = _driver(conn)

    result = driver.search("dc=domain,dc=local", "(&(uid=jdoe))", ("uid", "mail"))

    assert result.count == 1
    assert result[0]["uid"] == {"count": 1, "values": ["jdoe"]}
    conn.search.assert_called_once_with(
        search_base="dc=domain,dc=local",
        search_filter="(&(uid=jdoe))",
        search_scope=SUBTREE,
        attributes=["uid", "mail"],
    )
    conn.unbind.assert_called_once_with()
    _, kwargs = factory.call_args
    assert kwargs["user"] == "cn=svc,dc=domain,dc=local"
    assert kwargs["password"] == "svcpw"
    assert kwargs["auto_bind"] == AUTO_BIND_NO_TLS


def test_search_without_matches():
    conn = MagicMock()
    conn.response = []
    driver, _ = _driver(conn)
    assert driver.search("dc=local", "(uid=x)", ["uid"]).count == 0


def test_search_errors_propagate_and_unbind():
    conn = MagicMock()
    conn.search.side_effect = LDAPSocketOpenError("connection lost")
    driver, _ = _driver(conn)

    with pytest.raises(LDAPSocketOpenError):
        driver.search("dc=local", "(uid=x)", ["uid"])
    conn.unbind.assert_called_once_with()


def test_start_tls_binds_after_tls():
    driver, factory = _driver(start_tls=True)
    driver.search("dc=local", "(uid=x)", ["uid"])
    assert factory.call_args.kwargs["auto_bind"] == AUTO_BIND_TLS_BEFORE_BIND


def test_bind_as_user_dn():
    conn = MagicMock()
    conn.bound = True
    driver, factory = _driver(conn)

    assert driver.bind(LdapUser(username="jdoe", dn=JDOE_DN), "secret") is True
    assert factory.call_args.kwargs["user"] == JDOE_DN
    assert factory.call_args.kwargs["password"] == "secret"
    conn.unbind.assert_called_once_with()


def test_bind_falls_back_to_username():
    conn = MagicMock()
    conn.bound = True
    driver, factory = _driver(conn)

    assert driver.bind(LdapUser(username="jdoe@domain.local"), "secret") is True
    assert factory.call_args.kwargs["user"] == "jdoe@domain.local"


def test_invalid_credentials_return_false():
    driver, factory = _driver()
    factory.side_effect = LDAPBindError("invalidCredentials")
    assert driver.bind(LdapUser(dn=JDOE_DN), "wrong") is False


def test_empty_password_is_rejected_without_bind():
    driver, factory = _driver()
    assert driver.bind(LdapUser(dn=JDOE_DN), "") is False
    factory.assert_not_called()


def test_user_without_principal_is_rejected():
    driver, factory = _driver()
    assert driver.bind(LdapUser(), "secret") is False
    factory.assert_not_called()
