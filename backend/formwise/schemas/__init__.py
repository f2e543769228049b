"""Pydantic schemas for the application."""

from .usage_account import (
    PlanChangeEntry,
    PlanChangeResult,
    QuotaStatus,
    UsageAccount,
    UsagePeriodSnapshot,
    UsageSummary,
)

__all__ = [
    "PlanChangeEntry",
    "PlanChangeResult",
    "QuotaStatus",
    "UsageAccount",
    "UsagePeriodSnapshot",
    "UsageSummary",
]
