"""Usage service — singleton that serializes quota accounting per tenant.

One instance lives in the container. Each call receives the tenant id and
a DB session; the service takes the tenant's in-process lock, loads the
account with a row lock, applies a pure transition from ``accounting``,
and saves. Any failure before the save commits rolls the session back, so
a rejected or cancelled call never leaves a partial increment behind.

Different tenants never share a lock.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import AsyncIterator, Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from formwise.core.logging import logger
from formwise.domains.usage import accounting
from formwise.domains.usage.exceptions import QuotaExceededError, UsageAccountNotFoundError
from formwise.domains.usage.protocols import (
    UsageAccountRepositoryProtocol,
    UsageServiceProtocol,
)
from formwise.domains.usage.types import Plan, ResourceKind, parse_resource_kind, period_key_for
from formwise.schemas.usage_account import (
    PlanChangeResult,
    QuotaStatus,
    UsageAccount,
    UsagePeriodSnapshot,
    UsageSummary,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UsageService(UsageServiceProtocol):
    """Per-tenant serialized quota accounting over an injected repository."""

    def __init__(
        self,
        account_repo: UsageAccountRepositoryProtocol,
        lazy_rollover: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the service with its repository and rollover policy."""
        self._repo = account_repo
        self._lazy_rollover = lazy_rollover
        self._clock = clock

        # A tenant's lock lives only while some call holds or waits on it
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _get_lock(self, tenant_id: str) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[tenant_id] = lock
        return lock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_or_create(
        self, db: AsyncSession, tenant_id: str, now: Optional[datetime] = None
    ) -> UsageAccount:
        """Return the tenant's account, creating a FREE one if absent."""
        account = await self._repo.get(db, tenant_id=tenant_id)
        if account is not None:
            return account

        async with self._exclusive(db, tenant_id):
            account = await self._repo.get(db, tenant_id=tenant_id)
            if account is None:
                account = await self._repo.create(
                    db, account=accounting.new_account(tenant_id, now or self._clock())
                )
                logger.with_context(tenant_id=tenant_id).info("Created usage account")
        return account

    async def get_account(self, db: AsyncSession, tenant_id: str) -> UsageAccount:
        """Return the tenant's account or raise UsageAccountNotFoundError."""
        account = await self._repo.get(db, tenant_id=tenant_id)
        if account is None:
            raise UsageAccountNotFoundError(tenant_id)
        return account

    async def check_quota(
        self, db: AsyncSession, tenant_id: str, kind: Union[ResourceKind, str]
    ) -> QuotaStatus:
        """Report the quota status for *kind*. No mutation."""
        kind = parse_resource_kind(kind)
        account = await self._current_view(db, tenant_id, self._clock())
        return accounting.check_quota(account, kind)

    async def can_consume(
        self,
        db: AsyncSession,
        tenant_id: str,
        kind: Union[ResourceKind, str],
        count: int = 1,
    ) -> bool:
        """Check whether a batch of *count* units would fit. No mutation."""
        kind = parse_resource_kind(kind)
        account = await self._current_view(db, tenant_id, self._clock())
        return accounting.can_consume(account, kind, count)

    async def get_usage_summary(
        self, db: AsyncSession, tenant_id: str, now: Optional[datetime] = None
    ) -> UsageSummary:
        """Return plan, limits, usage, and remaining quota."""
        account = await self._current_view(db, tenant_id, now or self._clock())
        return accounting.summarize(account)

    async def list_history(self, db: AsyncSession, tenant_id: str) -> list[UsagePeriodSnapshot]:
        """Return archived periods, oldest first."""
        return await self._repo.list_history(db, tenant_id=tenant_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def increment_usage(
        self,
        db: AsyncSession,
        tenant_id: str,
        kind: Union[ResourceKind, str],
        count: int = 1,
    ) -> QuotaStatus:
        """Consume quota or raise QuotaExceededError. Creates the account if absent.

        Counts against the same period ``check_quota`` reports: with lazy
        rollover on, a stale period is rolled first.
        """
        return await self.record_usage(db, tenant_id, kind, count)

    async def record_usage(
        self,
        db: AsyncSession,
        tenant_id: str,
        kind: Union[ResourceKind, str],
        count: int = 1,
        now: Optional[datetime] = None,
    ) -> QuotaStatus:
        """Get-or-create, roll the period if it is stale, then increment.

        A rollover done here is kept even when the increment is rejected.
        """
        kind = parse_resource_kind(kind)
        now = now or self._clock()
        log = logger.with_context(tenant_id=tenant_id, kind=kind.value)

        async with self._exclusive(db, tenant_id):
            account = await self._load_or_create(db, tenant_id, now)
            rolled = self._lazy_rollover and self._roll_if_stale(account, now)
            try:
                status = accounting.increment_usage(account, kind, count)
            except QuotaExceededError as exc:
                log.warning("Quota exceeded: used=%d limit=%d", exc.used, exc.limit)
                if rolled:
                    await self._repo.save(db, account=account)
                raise
            await self._repo.save(db, account=account)

        log.debug("Recorded %d (used=%d limit=%d)", count, status.used, status.limit)
        return status

    async def reset_monthly_usage(
        self, db: AsyncSession, tenant_id: str, now_period_key: str, now: datetime
    ) -> UsageAccount:
        """Archive the current period and start *now_period_key*.

        A no-op when *now_period_key* is already the current period.
        """
        async with self._exclusive(db, tenant_id):
            account = await self._repo.get_for_update(db, tenant_id=tenant_id)
            if account is None:
                raise UsageAccountNotFoundError(tenant_id)
            previous_key = account.current_period_key
            if accounting.reset_monthly_usage(account, now_period_key, now):
                account = await self._repo.save(db, account=account)
                logger.with_context(tenant_id=tenant_id).info(
                    "Rolled usage period %s -> %s", previous_key, now_period_key
                )
            else:
                await db.rollback()
        return account

    async def ensure_current_period(
        self, db: AsyncSession, tenant_id: str, now: Optional[datetime] = None
    ) -> UsageAccount:
        """Roll the tenant's period if *now* is past it. Creates the account if absent."""
        now = now or self._clock()
        async with self._exclusive(db, tenant_id):
            account = await self._load_or_create(db, tenant_id, now)
            if self._roll_if_stale(account, now):
                account = await self._repo.save(db, account=account)
            else:
                await db.rollback()
        return account

    async def rollover_stale_accounts(
        self, db: AsyncSession, now: Optional[datetime] = None, batch_size: int = 100
    ) -> int:
        """Roll every account still on a period before *now*'s. Returns the count rolled.

        Entry point for a scheduled sweep; safe to run alongside request
        traffic since each account is rolled under its tenant lock.
        """
        now = now or self._clock()
        period_key = period_key_for(now)
        rolled = 0
        while True:
            tenant_ids = await self._repo.list_stale_tenant_ids(
                db, period_key=period_key, limit=batch_size
            )
            if not tenant_ids:
                break
            for tenant_id in tenant_ids:
                await self.reset_monthly_usage(db, tenant_id, period_key, now)
                rolled += 1

        logger.info("Rollover sweep to %s rolled %d accounts", period_key, rolled)
        return rolled

    async def update_plan(
        self,
        db: AsyncSession,
        tenant_id: str,
        new_plan: Union[Plan, str],
        reason: str = "plan_change",
    ) -> PlanChangeResult:
        """Switch plans and log the change. Usage counters are not touched."""
        async with self._exclusive(db, tenant_id):
            account = await self._load_or_create(db, tenant_id, self._clock())
            result = accounting.update_plan(account, new_plan, reason=reason, now=self._clock())
            await self._repo.save(db, account=account)

        logger.with_context(tenant_id=tenant_id).info(
            "Plan changed %s -> %s (reason=%s)", result.old_plan, result.new_plan, reason
        )
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self, db: AsyncSession, tenant_id: str) -> AsyncIterator[None]:
        """Hold the tenant lock; roll the session back if the body fails."""
        lock = self._get_lock(tenant_id)
        async with lock:
            try:
                yield
            except BaseException:
                await db.rollback()
                raise

    async def _load_or_create(self, db: AsyncSession, tenant_id: str, now: datetime) -> UsageAccount:
        """Load the account for update, creating it first if absent. Must be called under lock."""
        account = await self._repo.get_for_update(db, tenant_id=tenant_id)
        if account is not None:
            return account

        await self._repo.create(db, account=accounting.new_account(tenant_id, now))
        logger.with_context(tenant_id=tenant_id).info("Created usage account")

        account = await self._repo.get_for_update(db, tenant_id=tenant_id)
        if account is None:
            raise UsageAccountNotFoundError(tenant_id)
        return account

    def _roll_if_stale(self, account: UsageAccount, now: datetime) -> bool:
        if not accounting.needs_rollover(account, now):
            return False
        previous_key = account.current_period_key
        accounting.reset_monthly_usage(account, period_key_for(now), now)
        logger.with_context(tenant_id=account.tenant_id).info(
            "Rolled usage period %s -> %s", previous_key, account.current_period_key
        )
        return True

    async def _current_view(self, db: AsyncSession, tenant_id: str, now: datetime) -> UsageAccount:
        """Read-only view of the account as of *now*, never persisted.

        Absent tenants read as a fresh FREE account; stale periods read as
        already rolled when lazy rollover is on.
        """
        account = await self._repo.get(db, tenant_id=tenant_id)
        if account is None:
            return accounting.new_account(tenant_id, now)
        if self._lazy_rollover and accounting.needs_rollover(account, now):
            account = account.model_copy(deep=True)
            accounting.reset_monthly_usage(account, period_key_for(now), now)
        return account
