"""CRUD operations for the UsageAccount aggregate.

The aggregate spans three tables: ``usage_account`` (counters, plan,
period), ``usage_period_snapshot`` and ``plan_change`` (append-only logs
ordered by ``position``). Reads return ``schemas.UsageAccount``; writes
take one.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from formwise.core.exceptions import ImmutableFieldError, NotFoundException
from formwise.domains.usage.types import ResourceKind
from formwise.models.plan_change import PlanChange
from formwise.models.usage_account import UsageAccount
from formwise.models.usage_period_snapshot import UsagePeriodSnapshot
from formwise.schemas import usage_account as schemas


class CRUDUsageAccount:
    """CRUD operations for the UsageAccount model and its logs."""

    async def get(
        self, db: AsyncSession, *, tenant_id: str, for_update: bool = False
    ) -> Optional[schemas.UsageAccount]:
        """Get a tenant's account with its history and plan change log.

        Args:
            db: Database session
            tenant_id: Tenant identifier
            for_update: Lock the account row until the transaction ends

        Returns:
            The account, or None if the tenant has none
        """
        query = select(UsageAccount).where(UsageAccount.tenant_id == tenant_id)
        if for_update:
            query = query.with_for_update()

        result = await db.execute(query)
        row = result.scalar_one_or_none()
        if row is None:
            return None

        history = await self._list_snapshots(db, row)
        plan_changes = await self._list_plan_changes(db, row)
        return self._to_schema(row, history, plan_changes)

    async def list_history(
        self, db: AsyncSession, *, tenant_id: str
    ) -> list[schemas.UsagePeriodSnapshot]:
        """Get archived periods for a tenant, oldest first."""
        query = (
            select(UsagePeriodSnapshot)
            .join(UsageAccount, UsagePeriodSnapshot.usage_account_id == UsageAccount.id)
            .where(UsageAccount.tenant_id == tenant_id)
            .order_by(UsagePeriodSnapshot.position)
        )
        result = await db.execute(query)
        return [self._snapshot_to_schema(s) for s in result.scalars().all()]

    async def list_stale_tenant_ids(
        self, db: AsyncSession, *, period_key: str, limit: int = 100
    ) -> list[str]:
        """Get tenants whose current period is older than *period_key*.

        Period keys are ``YYYY-MM`` strings, so lexical order is calendar order.
        """
        query = (
            select(UsageAccount.tenant_id)
            .where(UsageAccount.current_period_key < period_key)
            .order_by(UsageAccount.current_period_key, UsageAccount.tenant_id)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create(
        self, db: AsyncSession, *, obj_in: schemas.UsageAccount
    ) -> schemas.UsageAccount:
        """Insert a new account and commit.

        If another writer created the tenant first, the existing account is
        returned instead.
        """
        row = UsageAccount(tenant_id=obj_in.tenant_id)
        self._apply_scalars(row, obj_in)
        db.add(row)
        try:
            await db.flush()
            await self._append_logs(db, row, obj_in)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = await self.get(db, tenant_id=obj_in.tenant_id)
            if existing is None:
                raise
            return existing

        return self._to_schema(row, list(obj_in.history), list(obj_in.plan_changes))

    async def save(
        self, db: AsyncSession, *, obj_in: schemas.UsageAccount
    ) -> schemas.UsageAccount:
        """Write counters, plan, and period; append new log entries; commit.

        Log entries already stored are never rewritten. Entries past the
        stored count are appended in order; a shorter log than the stored one
        raises ImmutableFieldError.
        """
        result = await db.execute(
            select(UsageAccount).where(UsageAccount.tenant_id == obj_in.tenant_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundException(f"No usage account for tenant {obj_in.tenant_id}")

        self._apply_scalars(row, obj_in)
        await self._append_logs(db, row, obj_in)
        await db.commit()
        return obj_in

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_scalars(row: UsageAccount, obj_in: schemas.UsageAccount) -> None:
        row.analysis = obj_in.counts[ResourceKind.ANALYSIS]
        row.generation = obj_in.counts[ResourceKind.GENERATION]
        row.ocr = obj_in.counts[ResourceKind.OCR]
        row.plan = obj_in.plan
        row.period_start = obj_in.period_start
        row.current_period_key = obj_in.current_period_key

    async def _append_logs(
        self, db: AsyncSession, row: UsageAccount, obj_in: schemas.UsageAccount
    ) -> None:
        stored_snapshots = await self._count(db, UsagePeriodSnapshot, row)
        if len(obj_in.history) < stored_snapshots:
            raise ImmutableFieldError("history", "Archived periods are append-only")
        for position, snapshot in enumerate(obj_in.history):
            if position < stored_snapshots:
                continue
            db.add(
                UsagePeriodSnapshot(
                    usage_account_id=row.id,
                    position=position,
                    period_key=snapshot.period_key,
                    analysis=snapshot.counts.get(ResourceKind.ANALYSIS, 0),
                    generation=snapshot.counts.get(ResourceKind.GENERATION, 0),
                    ocr=snapshot.counts.get(ResourceKind.OCR, 0),
                    plan=snapshot.plan,
                )
            )

        stored_changes = await self._count(db, PlanChange, row)
        if len(obj_in.plan_changes) < stored_changes:
            raise ImmutableFieldError("plan_changes", "Plan change log is append-only")
        for position, change in enumerate(obj_in.plan_changes):
            if position < stored_changes:
                continue
            db.add(
                PlanChange(
                    usage_account_id=row.id,
                    position=position,
                    plan=change.plan,
                    changed_at=change.changed_at,
                    reason=change.reason,
                )
            )
        await db.flush()

    @staticmethod
    async def _count(db: AsyncSession, model: type, row: UsageAccount) -> int:
        result = await db.execute(
            select(func.count()).select_from(model).where(model.usage_account_id == row.id)
        )
        return result.scalar_one()

    @staticmethod
    async def _list_snapshots(db: AsyncSession, row: UsageAccount) -> list[UsagePeriodSnapshot]:
        result = await db.execute(
            select(UsagePeriodSnapshot)
            .where(UsagePeriodSnapshot.usage_account_id == row.id)
            .order_by(UsagePeriodSnapshot.position)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _list_plan_changes(db: AsyncSession, row: UsageAccount) -> list[PlanChange]:
        result = await db.execute(
            select(PlanChange)
            .where(PlanChange.usage_account_id == row.id)
            .order_by(PlanChange.position)
        )
        return list(result.scalars().all())

    @staticmethod
    def _snapshot_to_schema(snapshot: UsagePeriodSnapshot) -> schemas.UsagePeriodSnapshot:
        return schemas.UsagePeriodSnapshot(
            period_key=snapshot.period_key,
            counts={
                ResourceKind.ANALYSIS: snapshot.analysis,
                ResourceKind.GENERATION: snapshot.generation,
                ResourceKind.OCR: snapshot.ocr,
            },
            plan=snapshot.plan,
        )

    def _to_schema(
        self,
        row: UsageAccount,
        history: list,
        plan_changes: list,
    ) -> schemas.UsageAccount:
        return schemas.UsageAccount(
            tenant_id=row.tenant_id,
            counts={
                ResourceKind.ANALYSIS: row.analysis,
                ResourceKind.GENERATION: row.generation,
                ResourceKind.OCR: row.ocr,
            },
            plan=row.plan,
            period_start=row.period_start,
            current_period_key=row.current_period_key,
            history=[
                s if isinstance(s, schemas.UsagePeriodSnapshot) else self._snapshot_to_schema(s)
                for s in history
            ],
            plan_changes=[
                c
                if isinstance(c, schemas.PlanChangeEntry)
                else schemas.PlanChangeEntry(plan=c.plan, changed_at=c.changed_at, reason=c.reason)
                for c in plan_changes
            ],
        )


usage_account = CRUDUsageAccount()
