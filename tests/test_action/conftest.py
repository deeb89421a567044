"""Shared fixtures for API route tests."""

import pytest
from fastapi.testclient import TestClient

from commercial_intel.action.api import app
from commercial_intel.action.dependencies import create_jwt, get_override_table
from commercial_intel.analytics.access_policy import Identity, OverrideTable


@pytest.fixture()
def override_table() -> OverrideTable:
    return OverrideTable.from_dict({
        "default_manager_region": "3",
        "users": {
            "joao": {"regions": ["1"], "extra_rep_visibility": "joao"},
            "rodrigo": {"regions": ["1"], "lock_mode": "seed"},
        },
    })


@pytest.fixture()
def auth():
    """Authorization header factory for an identity."""

    def headers(identity: Identity) -> dict:
        return {"Authorization": f"Bearer {create_jwt(identity)}"}

    return headers


@pytest.fixture()
def make_client(override_table):
    """Build a TestClient with dependency overrides; overrides are cleared afterwards."""

    def build(overrides=None, raise_server_exceptions=True):
        app.dependency_overrides[get_override_table] = lambda: override_table
        for dependency, value in (overrides or {}).items():
            app.dependency_overrides[dependency] = value
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield build
    app.dependency_overrides.clear()
