"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and formwise/domains/),
making its fixtures available to centralized tests AND colocated domain tests.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables must be set before any formwise module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")


# ---------------------------------------------------------------------------
# Shared fake fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_usage_account_repository():
    """Fake UsageAccountRepository backed by an in-memory dict."""
    from formwise.domains.usage.fakes.repository import FakeUsageAccountRepository

    return FakeUsageAccountRepository()


@pytest.fixture
def test_container(fake_usage_account_repository):
    """Container wired with a UsageService over the fake repository."""
    from formwise.core.container import Container
    from formwise.domains.usage.service import UsageService

    return Container(usage_service=UsageService(account_repo=fake_usage_account_repository))
