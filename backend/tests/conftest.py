"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
Everything runs against the in-memory store and cache with a controllable
clock; Google and LINE are replaced by fakes (see helpers.py).
"""

from typing import Any, Dict

import pytest

from docrequest.config.settings import Settings
from docrequest.repositories.cache_store import InMemoryCacheStore
from docrequest.repositories.tabular_store import InMemoryTabularStore
from docrequest.services.container import build_container

from .helpers import (
    ADMIN_ACTOR,
    ADMIN_EMAIL,
    ADMIN_TOKEN,
    FakeClock,
    FakeIdentityClient,
    FakePushClient,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def identity() -> FakeIdentityClient:
    return FakeIdentityClient()


@pytest.fixture
def push_client() -> FakePushClient:
    return FakePushClient()


@pytest.fixture
def make_settings(tmp_path):
    """Settings factory isolated from the environment and any .env file"""
    def _make(**overrides) -> Settings:
        values: Dict[str, Any] = {
            "_env_file": None,
            "store_backend": "memory",
            "cache_backend": "memory",
            "logs_path": str(tmp_path / "logs"),
            "google_allowed_emails": ADMIN_EMAIL,
            "line_push_enabled": False,
            "line_push_dry_run": True,
            "draft_lock_timeout_seconds": 5.0,
        }
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def make_container(make_settings, clock, identity, push_client):
    """Container factory; keyword overrides go to Settings"""
    def _make(**overrides):
        return build_container(
            make_settings(**overrides),
            store=InMemoryTabularStore(),
            cache=InMemoryCacheStore(clock=clock),
            identity_client=identity,
            push_client=push_client,
            clock=clock,
        )
    return _make


@pytest.fixture
def container(make_container):
    """Container with every table in place"""
    container = make_container()
    container.schema.ensure_ready()
    return container


@pytest.fixture
def admin_container(make_container, identity, clock):
    """Container with one active admin and a valid token for them"""
    container = make_container()
    container.schema.ensure_ready()
    container.admins.add_entry(ADMIN_ACTOR, ADMIN_EMAIL)
    identity.register(
        ADMIN_TOKEN,
        email=ADMIN_EMAIL,
        email_verified="true",
        exp=int(clock()) + 3600,
        name="Office Admin",
        picture="https://example.com/a.png",
        sub="1234",
    )
    return container
