"""Usage domain repository wrapping crud.usage_account."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from formwise import crud
from formwise.domains.usage.protocols import UsageAccountRepositoryProtocol
from formwise.schemas.usage_account import UsageAccount, UsagePeriodSnapshot


class UsageAccountRepository(UsageAccountRepositoryProtocol):
    """Delegates to the crud.usage_account singleton."""

    async def get(self, db: AsyncSession, *, tenant_id: str) -> Optional[UsageAccount]:
        """Load an account without locking it."""
        return await crud.usage_account.get(db, tenant_id=tenant_id)

    async def get_for_update(self, db: AsyncSession, *, tenant_id: str) -> Optional[UsageAccount]:
        """Load an account with ``SELECT ... FOR UPDATE``."""
        return await crud.usage_account.get(db, tenant_id=tenant_id, for_update=True)

    async def create(self, db: AsyncSession, *, account: UsageAccount) -> UsageAccount:
        """Persist a new account and commit."""
        return await crud.usage_account.create(db, obj_in=account)

    async def save(self, db: AsyncSession, *, account: UsageAccount) -> UsageAccount:
        """Write the account and commit, releasing the row lock."""
        return await crud.usage_account.save(db, obj_in=account)

    async def list_history(self, db: AsyncSession, *, tenant_id: str) -> list[UsagePeriodSnapshot]:
        """Return archived periods for a tenant, oldest first."""
        return await crud.usage_account.list_history(db, tenant_id=tenant_id)

    async def list_stale_tenant_ids(
        self, db: AsyncSession, *, period_key: str, limit: int = 100
    ) -> list[str]:
        """Return tenants whose current period is older than *period_key*."""
        return await crud.usage_account.list_stale_tenant_ids(
            db, period_key=period_key, limit=limit
        )
