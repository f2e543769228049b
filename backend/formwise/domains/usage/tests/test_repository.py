"""Unit tests for UsageAccountRepository delegation to crud.usage_account."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from formwise.domains.usage.repository import UsageAccountRepository
from formwise.domains.usage.tests.conftest import DEFAULT_TENANT_ID, _make_account


def _mock_crud() -> MagicMock:
    mock_crud = MagicMock()
    mock_crud.usage_account = AsyncMock()
    return mock_crud


class TestUsageAccountRepository:
    @pytest.mark.asyncio
    async def test_get_does_not_lock(self, db):
        account = _make_account()
        with patch("formwise.domains.usage.repository.crud", _mock_crud()) as mock_crud:
            mock_crud.usage_account.get.return_value = account

            result = await UsageAccountRepository().get(db, tenant_id=DEFAULT_TENANT_ID)

        assert result is account
        mock_crud.usage_account.get.assert_awaited_once_with(db, tenant_id=DEFAULT_TENANT_ID)

    @pytest.mark.asyncio
    async def test_get_for_update_locks_row(self, db):
        with patch("formwise.domains.usage.repository.crud", _mock_crud()) as mock_crud:
            mock_crud.usage_account.get.return_value = None

            result = await UsageAccountRepository().get_for_update(
                db, tenant_id=DEFAULT_TENANT_ID
            )

        assert result is None
        mock_crud.usage_account.get.assert_awaited_once_with(
            db, tenant_id=DEFAULT_TENANT_ID, for_update=True
        )

    @pytest.mark.asyncio
    async def test_create_and_save(self, db):
        account = _make_account(ocr=2)
        with patch("formwise.domains.usage.repository.crud", _mock_crud()) as mock_crud:
            mock_crud.usage_account.create.return_value = account
            mock_crud.usage_account.save.return_value = account
            repo = UsageAccountRepository()

            await repo.create(db, account=account)
            await repo.save(db, account=account)

        mock_crud.usage_account.create.assert_awaited_once_with(db, obj_in=account)
        mock_crud.usage_account.save.assert_awaited_once_with(db, obj_in=account)

    @pytest.mark.asyncio
    async def test_list_stale_tenant_ids(self, db):
        with patch("formwise.domains.usage.repository.crud", _mock_crud()) as mock_crud:
            mock_crud.usage_account.list_stale_tenant_ids.return_value = ["a", "b"]

            result = await UsageAccountRepository().list_stale_tenant_ids(
                db, period_key="2024-04", limit=2
            )

        assert result == ["a", "b"]
        mock_crud.usage_account.list_stale_tenant_ids.assert_awaited_once_with(
            db, period_key="2024-04", limit=2
        )

    @pytest.mark.asyncio
    async def test_list_history(self, db):
        with patch("formwise.domains.usage.repository.crud", _mock_crud()) as mock_crud:
            mock_crud.usage_account.list_history.return_value = []

            assert await UsageAccountRepository().list_history(db, tenant_id="t") == []

        mock_crud.usage_account.list_history.assert_awaited_once_with(db, tenant_id="t")
