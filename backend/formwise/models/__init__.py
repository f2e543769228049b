"""Models for the application."""

from ._base import Base
from .plan_change import PlanChange
from .usage_account import UsageAccount
from .usage_period_snapshot import UsagePeriodSnapshot

__all__ = [
    "Base",
    "PlanChange",
    "UsageAccount",
    "UsagePeriodSnapshot",
]
