"""Pytest shared fixtures: in-memory platform stores and a Flask test client."""
import itertools
import os
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests

from provisioner.config import AppConfig
from provisioner.core import audit
from provisioner.core.platform import (
    IdentityAlreadyExistsError,
    IdentityNotFoundError,
    PlatformAPIError,
    PROFILES_TABLE,
    ROLES_TABLE,
    TEACHERS_TABLE,
)
from provisioner.core.provisioning_service import ProvisioningService
from provisioner.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting a live platform.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(method):
        def _call(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _call

    monkeypatch.setattr(requests, "get", _refuse("GET"))
    monkeypatch.setattr(requests, "post", _refuse("POST"))
    monkeypatch.setattr(requests, "delete", _refuse("DELETE"))


@pytest.fixture(autouse=True)
def audit_file(monkeypatch, tmp_path):
    """Redirect the audit trail into a per-test directory."""
    audit_dir = tmp_path / "audit"
    audit_path = audit_dir / "provisioning-events.jsonl"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_path)
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY_FILE", raising=False)
    return audit_path


# ─────────────────────────────────────────────────────────────────────────────
# In-memory stores
# ─────────────────────────────────────────────────────────────────────────────
class FakeIdentityStore:
    """Stands in for IdentityService; failures are injected per email or globally."""

    def __init__(self):
        self.identities = {}
        self.fail_create = {}
        self.fail_delete = None
        self.fail_lookup = None
        self.delete_calls = []
        self.secrets = {}
        self._ids = itertools.count(1)

    def create_identity(self, email, secret, *, full_name, username):
        if email in self.fail_create:
            raise self.fail_create[email]
        if any(i["email"].lower() == email.lower() for i in self.identities.values()):
            raise IdentityAlreadyExistsError(f"Email '{email}' is already registered")
        identifier = f"user-{next(self._ids)}"
        self.secrets[identifier] = secret
        self.identities[identifier] = {
            "id": identifier,
            "email": email,
            "email_confirm": True,
            "user_metadata": {"full_name": full_name, "username": username},
        }
        return identifier

    def delete_identity(self, identifier):
        self.delete_calls.append(identifier)
        if self.fail_delete is not None:
            raise self.fail_delete
        if identifier not in self.identities:
            raise IdentityNotFoundError(f"Identity '{identifier}' not found")
        del self.identities[identifier]

    def find_identity_by_email(self, email):
        if self.fail_lookup is not None:
            raise self.fail_lookup
        for identity in self.identities.values():
            if identity["email"].lower() == email.lower():
                return identity
        return None


class FakeRecordStore:
    """Stands in for RecordService with three in-memory tables."""

    def __init__(self):
        self.tables = {PROFILES_TABLE: [], ROLES_TABLE: [], TEACHERS_TABLE: []}
        self.fail_insert = {}
        self.fail_delete = {}

    def _insert(self, table, row):
        if table in self.fail_insert:
            raise self.fail_insert[table]
        self.tables[table].append(row)

    def _delete(self, table, column, value):
        if table in self.fail_delete:
            raise self.fail_delete[table]
        before = len(self.tables[table])
        self.tables[table] = [r for r in self.tables[table] if r[column] != value]
        return before - len(self.tables[table])

    def rows(self, table, column, value):
        return [r for r in self.tables[table] if r[column] == value]

    def insert_profile(self, identifier, *, full_name, username, email):
        if any(p["username"] == username for p in self.tables[PROFILES_TABLE]):
            raise PlatformAPIError(
                409,
                'duplicate key value violates unique constraint "profiles_username_key"',
                "/rest/v1/profiles",
                "23505",
            )
        self._insert(PROFILES_TABLE, {"id": identifier, "full_name": full_name, "username": username, "email": email})

    def insert_role_assignment(self, identifier, role):
        self._insert(ROLES_TABLE, {"user_id": identifier, "role": role})

    def insert_teacher(self, identifier):
        self._insert(TEACHERS_TABLE, {"profile_id": identifier})

    def delete_profile(self, identifier):
        return self._delete(PROFILES_TABLE, "id", identifier)

    def delete_role_assignments(self, identifier):
        return self._delete(ROLES_TABLE, "user_id", identifier)

    def delete_teacher(self, identifier):
        return self._delete(TEACHERS_TABLE, "profile_id", identifier)


@pytest.fixture
def identities():
    return FakeIdentityStore()


@pytest.fixture
def records():
    return FakeRecordStore()


@pytest.fixture
def service(identities, records):
    return ProvisioningService(identities, records, operator="pytest")


class StubResponse:
    """Minimal stand-in for requests.Response; .json() raises ValueError when body is None."""

    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


def make_entry(n, **overrides):
    entry = {
        "email": f"user{n}@school.test",
        "secret": f"Secret-{n}!",
        "full_name": f"User {n}",
        "handle": f"user{n}",
    }
    entry.update(overrides)
    return entry


def make_config(**overrides):
    base = dict(
        demo_mode=False,
        platform_url="https://platform.test",
        service_role_key="service-role-key",
        request_timeout=5.0,
        api_token="",
        cors_allow_origin="*",
        audit_log_signing_key="signing-key",
    )
    base.update(overrides)
    return AppConfig(**base)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_config():
    return make_config()


@pytest.fixture()
def flask_app(app_config, service):
    flask_app = create_app(app_config)
    flask_app.config.update(
        TESTING=True,
        PROVISIONING_SERVICE_FACTORY=lambda cfg: service,
    )
    return flask_app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        yield client
