"""Lookups against a live directory (local 389ds by default).

Skipped unless ``LDAP_INTEGRATION`` is truthy.
"""
import os
from pathlib import Path
from typing import Dict

import pytest

from ldap_user_provider.config import Config
from ldap_user_provider.core.constants import YES_VALUES
from ldap_user_provider.core.application import Application
from ldap_user_provider.ldap_client import Ldap3Driver

# ---------------------------------------------------------------------------
# Helpers for loading LDAP connection variables
# ---------------------------------------------------------------------------


def _parse_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """Very small .env parser so we don't need extra deps."""
    env: Dict[str, str] = {}
    if not dotenv_path.exists():
        return env
    for line in dotenv_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        env[k.strip()] = v.strip()
    return env


# Try to ensure env vars are set by reading project .env if needed
ROOT = Path(__file__).resolve().parents[2]
DOTENV = ROOT / ".env"
if DOTENV.exists():
    os.environ.update({k: v for k, v in _parse_dotenv(DOTENV).items() if k not in os.environ})

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.getenv("LDAP_INTEGRATION", "").strip() not in YES_VALUES,
        reason="set LDAP_INTEGRATION=1 to run against a live directory",
    ),
]

# ---------------------------------------------------------------------------
# Provide sensible defaults if env vars are not set (local 389ds)
# ---------------------------------------------------------------------------
_defaults = {
    "LDAP_HOST": "ldap://localhost:3389",
    "LDAP_BIND_DN": "cn=Directory Manager",
    "LDAP_BIND_PASSWORD": "adminpassword",
    "LDAP_BASE_DN": "dc=domain,dc=local",
    "LDAP_FILTER": "(objectClass=person)",
    "LDAP_ROLE_BASE_DN": "cn=groups,cn=accounts,dc=domain,dc=local",
    "LDAP_ROLE_FILTER": "(objectClass=groupOfNames)",
}

# Test constants – adapt to your environment
TEST_USERNAME = os.getenv("TEST_LDAP_USERNAME", "user")
TEST_PASSWORD = os.getenv("TEST_LDAP_PASSWORD", "userpassword")
TEST_ROLE = os.getenv("TEST_LDAP_ROLE", "ROLE_VAULTWARDEN_USERS")


@pytest.fixture
def app(monkeypatch):
    for k, v in _defaults.items():
        if k not in os.environ:
            monkeypatch.setenv(k, v)
    return Application(config=Config())


def test_lookup_known_user(app):
    result = app.lookup(TEST_USERNAME)
    assert result.success, result.errors
    assert result.found
    assert result.user.username == TEST_USERNAME
    assert result.user.get_dn().startswith("uid=")
    assert TEST_ROLE in result.user.roles


def test_lookup_unknown_user(app):
    result = app.lookup("no-such-user-xyz")
    assert result.success, result.errors
    assert not result.found


def test_wildcard_is_not_expanded(app):
    # "*" is escaped, so it must not match every entry (which would be ambiguous)
    result = app.lookup("*")
    assert result.success, result.errors
    assert not result.found


def test_bind_user_credentials(app):
    manager = app.build_manager()
    user = manager.find_user_by_username(TEST_USERNAME)
    assert user is not None
    assert manager.bind(user, TEST_PASSWORD) is True
    assert manager.bind(user, "wrong-password") is False
    assert manager.bind(user, "") is False


def test_driver_search_shape(app):
    cfg = app.config
    driver = Ldap3Driver(host=cfg.ldap_host, bind_dn=cfg.ldap_bind_dn, bind_password=cfg.ldap_bind_password)
    result = driver.search(cfg.ldap_base_dn, f"(uid={TEST_USERNAME})", ["uid", "mail"])
    assert result.count == 1
    assert result[0]["uid"]["values"] == [TEST_USERNAME]
