"""Usage account schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from formwise.domains.usage.types import DEFAULT_PLAN, ResourceKind, get_plan_limits

NonNegativeCount = Annotated[int, Field(ge=0)]


def _zero_counts() -> dict[ResourceKind, int]:
    return {kind: 0 for kind in ResourceKind}


class UsagePeriodSnapshot(BaseModel):
    """Archived counters of a finished accounting period."""

    period_key: str = Field(..., description="Calendar month of the period (YYYY-MM)")
    counts: dict[ResourceKind, NonNegativeCount]
    plan: str

    model_config = ConfigDict(frozen=True)


class PlanChangeEntry(BaseModel):
    """One entry of the plan change log."""

    plan: str
    changed_at: datetime
    reason: str

    model_config = ConfigDict(frozen=True)


class UsageAccount(BaseModel):
    """Current-month consumption of one tenant against its plan limits.

    ``limits`` is derived from ``plan`` and never stored independently.
    ``history`` and ``plan_changes`` are append-only, oldest first.
    """

    tenant_id: str = Field(..., min_length=1)
    counts: dict[ResourceKind, NonNegativeCount] = Field(default_factory=_zero_counts)
    plan: str = DEFAULT_PLAN.value
    period_start: datetime
    current_period_key: str
    history: list[UsagePeriodSnapshot] = Field(default_factory=list)
    plan_changes: list[PlanChangeEntry] = Field(default_factory=list)

    @field_validator("counts", mode="after")
    @classmethod
    def _fill_missing_kinds(cls, value: dict[ResourceKind, int]) -> dict[ResourceKind, int]:
        counts = _zero_counts()
        counts.update(value)
        return counts

    @computed_field  # type: ignore[prop-decorator]
    @property
    def limits(self) -> dict[ResourceKind, int]:
        """Monthly limits for the current plan (-1 = unlimited)."""
        return get_plan_limits(self.plan)


class QuotaStatus(BaseModel):
    """Quota decision for one resource kind.

    ``remaining`` and ``limit`` are -1 for unlimited plans.
    """

    allowed: bool
    remaining: int
    used: int
    limit: int


class PlanChangeResult(BaseModel):
    """Outcome of a plan update."""

    old_plan: str
    new_plan: str


class UsageSummary(BaseModel):
    """Read model combining plan, limits, usage, and remaining quota."""

    tenant_id: str
    plan: str
    limits: dict[ResourceKind, int]
    usage: dict[ResourceKind, int]
    remaining: dict[ResourceKind, int]
    current_period_key: str
    period_start: datetime
