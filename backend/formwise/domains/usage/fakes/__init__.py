"""Fake implementations for usage domain testing."""

from formwise.domains.usage.fakes.repository import FakeUsageAccountRepository

__all__ = ["FakeUsageAccountRepository"]
