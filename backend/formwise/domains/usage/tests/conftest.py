"""Usage domain test fixtures and helpers."""

from datetime import UTC, datetime
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from formwise.domains.usage.fakes.repository import FakeUsageAccountRepository
from formwise.domains.usage.service import UsageService
from formwise.domains.usage.types import Plan, ResourceKind
from formwise.schemas.usage_account import UsageAccount

DEFAULT_TENANT_ID = "tenant-0001"
OTHER_TENANT_ID = "tenant-0002"

# Mid-March 2024; period key "2024-03"
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
NEXT_MONTH = datetime(2024, 4, 2, 9, 30, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_account(
    tenant_id: str = DEFAULT_TENANT_ID,
    plan: Plan | str = Plan.FREE,
    analysis: int = 0,
    generation: int = 0,
    ocr: int = 0,
    **overrides: Any,
) -> UsageAccount:
    defaults = dict(
        tenant_id=tenant_id,
        plan=plan.value if isinstance(plan, Plan) else plan,
        counts={
            ResourceKind.ANALYSIS: analysis,
            ResourceKind.GENERATION: generation,
            ResourceKind.OCR: ocr,
        },
        period_start=datetime(2024, 3, 1, tzinfo=UTC),
        current_period_key="2024-03",
    )
    defaults.update(overrides)
    return UsageAccount(**defaults)


def _make_service(
    *,
    repo: Optional[FakeUsageAccountRepository] = None,
    lazy_rollover: bool = True,
    now: datetime = NOW,
) -> tuple[UsageService, FakeUsageAccountRepository]:
    """Build a UsageService wired to a fake repository and a frozen clock."""
    r = repo or FakeUsageAccountRepository()
    service = UsageService(account_repo=r, lazy_rollover=lazy_rollover, clock=lambda: now)
    return service, r


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    return AsyncMock()
