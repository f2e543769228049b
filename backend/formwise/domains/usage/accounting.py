"""Usage accounting — the quota state machine over a UsageAccount.

Pure functions, no IO and no locking. Callers (``UsageService``) are
responsible for serializing access per tenant and for persisting the
mutated account. Every mutating function either applies its change fully
or raises before touching the account.
"""

from datetime import UTC, datetime
from typing import Optional, Union

from formwise.domains.usage.exceptions import (
    InvalidIncrementAmountError,
    InvalidPeriodKeyError,
    QuotaExceededError,
)
from formwise.domains.usage.types import (
    DEFAULT_PLAN,
    UNLIMITED,
    Plan,
    ResourceKind,
    is_period_key,
    parse_resource_kind,
    period_key_for,
)
from formwise.schemas.usage_account import (
    PlanChangeEntry,
    PlanChangeResult,
    QuotaStatus,
    UsageAccount,
    UsagePeriodSnapshot,
    UsageSummary,
)

KindLike = Union[ResourceKind, str]
PlanLike = Union[Plan, str]


def _plan_value(plan: PlanLike) -> str:
    return plan.value if isinstance(plan, Plan) else str(plan)


def new_account(tenant_id: str, now: datetime, plan: PlanLike = DEFAULT_PLAN) -> UsageAccount:
    """Build a fresh account with zero counters in the period containing *now*."""
    return UsageAccount(
        tenant_id=tenant_id,
        plan=_plan_value(plan),
        period_start=now,
        current_period_key=period_key_for(now),
    )


def check_quota(account: UsageAccount, kind: KindLike) -> QuotaStatus:
    """Report whether one more unit of *kind* is allowed. No side effects."""
    kind = parse_resource_kind(kind)
    limit = account.limits[kind]
    used = account.counts[kind]

    if limit == UNLIMITED:
        return QuotaStatus(allowed=True, remaining=UNLIMITED, used=used, limit=UNLIMITED)

    return QuotaStatus(
        allowed=used < limit,
        remaining=max(0, limit - used),
        used=used,
        limit=limit,
    )


def _validate_count(count: object) -> int:
    # bool is an int subclass; True would silently count as 1
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise InvalidIncrementAmountError(count=count)
    return count


def can_consume(account: UsageAccount, kind: KindLike, count: int = 1) -> bool:
    """Check whether *count* units of *kind* fit in the remaining quota."""
    count = _validate_count(count)
    status = check_quota(account, kind)
    if status.limit == UNLIMITED:
        return True
    return status.used + count <= status.limit


def increment_usage(account: UsageAccount, kind: KindLike, count: int = 1) -> QuotaStatus:
    """Consume *count* units of *kind* and return the post-increment status.

    All-or-nothing: if the full amount does not fit, raises
    QuotaExceededError and leaves the counter unchanged.
    """
    kind = parse_resource_kind(kind)
    count = _validate_count(count)

    status = check_quota(account, kind)
    if status.limit != UNLIMITED and status.used + count > status.limit:
        raise QuotaExceededError(
            kind=kind.value,
            limit=status.limit,
            used=status.used,
            requested=count,
        )

    account.counts[kind] += count
    return check_quota(account, kind)


def needs_rollover(account: UsageAccount, now: datetime) -> bool:
    """Check whether *now* falls in a period after the account's current one."""
    return period_key_for(now) > account.current_period_key


def reset_monthly_usage(account: UsageAccount, now_period_key: str, now: datetime) -> bool:
    """Archive the current period and start *now_period_key*.

    Returns False (and changes nothing) when *now_period_key* is already the
    current period. Periods with all-zero counters are not archived. Raises
    InvalidPeriodKeyError for a malformed key or one before the current
    period, so history never goes backwards.
    """
    if now_period_key == account.current_period_key:
        return False
    if not is_period_key(now_period_key) or now_period_key < account.current_period_key:
        raise InvalidPeriodKeyError(now_period_key, account.current_period_key)

    if any(account.counts[kind] > 0 for kind in ResourceKind):
        account.history.append(
            UsagePeriodSnapshot(
                period_key=account.current_period_key,
                counts=dict(account.counts),
                plan=account.plan,
            )
        )

    for kind in ResourceKind:
        account.counts[kind] = 0
    account.current_period_key = now_period_key
    account.period_start = now
    return True


def update_plan(
    account: UsageAccount,
    new_plan: PlanLike,
    reason: str = "plan_change",
    now: Optional[datetime] = None,
) -> PlanChangeResult:
    """Switch the account to *new_plan* and log the change.

    Counters are left as they are; a downgrade can leave usage above the new
    limit until the next rollover. Unknown plans get the FREE limits.
    """
    old_plan = account.plan
    plan = _plan_value(new_plan)

    account.plan = plan
    account.plan_changes.append(
        PlanChangeEntry(plan=plan, changed_at=now or datetime.now(UTC), reason=reason)
    )
    return PlanChangeResult(old_plan=old_plan, new_plan=plan)


def summarize(account: UsageAccount) -> UsageSummary:
    """Build the plan/limits/usage/remaining read model."""
    statuses = {kind: check_quota(account, kind) for kind in ResourceKind}
    return UsageSummary(
        tenant_id=account.tenant_id,
        plan=account.plan,
        limits=account.limits,
        usage=dict(account.counts),
        remaining={kind: status.remaining for kind, status in statuses.items()},
        current_period_key=account.current_period_key,
        period_start=account.period_start,
    )
