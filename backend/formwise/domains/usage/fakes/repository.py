"""Fake usage account repository for testing."""

import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from formwise.schemas.usage_account import UsageAccount, UsagePeriodSnapshot


class FakeUsageAccountRepository:
    """In-memory fake for UsageAccountRepositoryProtocol.

    Stores deep copies, so a caller mutating a loaded account changes
    nothing until ``save``. Loads yield to the event loop once, which lets
    concurrency tests interleave callers between read and write.
    """

    def __init__(self) -> None:
        """Initialize empty in-memory store."""
        self._accounts: dict[str, UsageAccount] = {}  # tenant_id -> account
        self._calls: list[tuple] = []

    def seed(self, account: UsageAccount) -> None:
        """Store an account directly, bypassing create()."""
        self._accounts[account.tenant_id] = account.model_copy(deep=True)

    def stored(self, tenant_id: str) -> Optional[UsageAccount]:
        """Return a copy of what is currently stored for a tenant."""
        account = self._accounts.get(tenant_id)
        return account.model_copy(deep=True) if account else None

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def get(self, db: AsyncSession, *, tenant_id: str) -> Optional[UsageAccount]:
        """Load a copy of the account."""
        self._calls.append(("get", db, tenant_id))
        await asyncio.sleep(0)
        return self.stored(tenant_id)

    async def get_for_update(self, db: AsyncSession, *, tenant_id: str) -> Optional[UsageAccount]:
        """Load a copy of the account (no row lock in memory)."""
        self._calls.append(("get_for_update", db, tenant_id))
        await asyncio.sleep(0)
        return self.stored(tenant_id)

    async def create(self, db: AsyncSession, *, account: UsageAccount) -> UsageAccount:
        """Store a new account unless the tenant already has one."""
        self._calls.append(("create", db, account.tenant_id))
        if account.tenant_id not in self._accounts:
            self.seed(account)
        return self.stored(account.tenant_id)  # type: ignore[return-value]

    async def save(self, db: AsyncSession, *, account: UsageAccount) -> UsageAccount:
        """Replace the stored account."""
        self._calls.append(("save", db, account.tenant_id))
        await asyncio.sleep(0)
        self.seed(account)
        return account

    async def list_history(self, db: AsyncSession, *, tenant_id: str) -> list[UsagePeriodSnapshot]:
        """Return archived periods, oldest first."""
        self._calls.append(("list_history", db, tenant_id))
        account = self._accounts.get(tenant_id)
        return list(account.history) if account else []

    async def list_stale_tenant_ids(
        self, db: AsyncSession, *, period_key: str, limit: int = 100
    ) -> list[str]:
        """Return tenants whose current period is older than *period_key*."""
        self._calls.append(("list_stale_tenant_ids", db, period_key, limit))
        stale = sorted(
            (a.current_period_key, a.tenant_id)
            for a in self._accounts.values()
            if a.current_period_key < period_key
        )
        return [tenant_id for _, tenant_id in stale[:limit]]
