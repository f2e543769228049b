"""Usage domain protocols — persistence (repository) and the service facade.

UsageAccountRepository: load/store of the per-tenant account aggregate.
UsageService: Singleton that serializes quota operations per tenant.
"""

from datetime import datetime
from typing import Optional, Protocol, Union, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession

from formwise.domains.usage.types import Plan, ResourceKind
from formwise.schemas.usage_account import (
    PlanChangeResult,
    QuotaStatus,
    UsageAccount,
    UsagePeriodSnapshot,
    UsageSummary,
)


class UsageAccountRepositoryProtocol(Protocol):
    """Data access for usage accounts."""

    async def get(self, db: AsyncSession, *, tenant_id: str) -> Optional[UsageAccount]:
        """Load an account without locking it."""
        ...

    async def get_for_update(self, db: AsyncSession, *, tenant_id: str) -> Optional[UsageAccount]:
        """Load an account and hold it exclusively until ``save`` commits."""
        ...

    async def create(self, db: AsyncSession, *, account: UsageAccount) -> UsageAccount:
        """Persist a new account. Returns the stored account."""
        ...

    async def save(self, db: AsyncSession, *, account: UsageAccount) -> UsageAccount:
        """Write counters, plan, period, and new log entries, then commit."""
        ...

    async def list_history(self, db: AsyncSession, *, tenant_id: str) -> list[UsagePeriodSnapshot]:
        """Return archived periods for a tenant, oldest first."""
        ...

    async def list_stale_tenant_ids(
        self, db: AsyncSession, *, period_key: str, limit: int = 100
    ) -> list[str]:
        """Return tenants whose current period is older than *period_key*."""
        ...


@runtime_checkable
class UsageServiceProtocol(Protocol):
    """Singleton quota accounting service.

    Every mutating call is atomic per tenant: concurrent increments against
    the same tenant never jointly overshoot its limit.
    """

    async def get_or_create(
        self, db: AsyncSession, tenant_id: str, now: Optional[datetime] = None
    ) -> UsageAccount:
        """Return the tenant's account, creating a FREE one if absent."""
        ...

    async def get_account(self, db: AsyncSession, tenant_id: str) -> UsageAccount:
        """Return the tenant's account or raise UsageAccountNotFoundError."""
        ...

    async def check_quota(
        self, db: AsyncSession, tenant_id: str, kind: Union[ResourceKind, str]
    ) -> QuotaStatus:
        """Report the quota status for *kind*. No mutation."""
        ...

    async def can_consume(
        self,
        db: AsyncSession,
        tenant_id: str,
        kind: Union[ResourceKind, str],
        count: int = 1,
    ) -> bool:
        """Check whether a batch of *count* units would fit. No mutation."""
        ...

    async def increment_usage(
        self,
        db: AsyncSession,
        tenant_id: str,
        kind: Union[ResourceKind, str],
        count: int = 1,
    ) -> QuotaStatus:
        """Consume quota or raise QuotaExceededError."""
        ...

    async def reset_monthly_usage(
        self, db: AsyncSession, tenant_id: str, now_period_key: str, now: datetime
    ) -> UsageAccount:
        """Archive the current period and start *now_period_key*."""
        ...

    async def update_plan(
        self,
        db: AsyncSession,
        tenant_id: str,
        new_plan: Union[Plan, str],
        reason: str = "plan_change",
    ) -> PlanChangeResult:
        """Switch plans and log the change."""
        ...

    async def record_usage(
        self,
        db: AsyncSession,
        tenant_id: str,
        kind: Union[ResourceKind, str],
        count: int = 1,
        now: Optional[datetime] = None,
    ) -> QuotaStatus:
        """Get-or-create, roll the period if needed, then increment."""
        ...

    async def get_usage_summary(
        self, db: AsyncSession, tenant_id: str, now: Optional[datetime] = None
    ) -> UsageSummary:
        """Return plan, limits, usage, and remaining quota."""
        ...

    async def ensure_current_period(
        self, db: AsyncSession, tenant_id: str, now: Optional[datetime] = None
    ) -> UsageAccount:
        """Roll the tenant's period if *now* is past it."""
        ...

    async def rollover_stale_accounts(
        self, db: AsyncSession, now: Optional[datetime] = None, batch_size: int = 100
    ) -> int:
        """Roll every account still on an earlier period."""
        ...

    async def list_history(self, db: AsyncSession, tenant_id: str) -> list[UsagePeriodSnapshot]:
        """Return archived periods, oldest first."""
        ...
