"""Usage domain types and pure helpers.

Constants, enums, and the plan limit table used by the accounting
functions, the service, and consumers. No IO; everything here is
deterministic.
"""

import re
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

from formwise.domains.usage.exceptions import InvalidResourceKindError


class ResourceKind(str, Enum):
    """Metered action type."""

    ANALYSIS = "analysis"
    GENERATION = "generation"
    OCR = "ocr"


class Plan(str, Enum):
    """Subscription plan."""

    FREE = "free"
    PERSONAL = "personal"
    PRO = "pro"
    ENTERPRISE = "enterprise"


UNLIMITED = -1

DEFAULT_PLAN = Plan.FREE

# Monthly limits per plan. UNLIMITED (-1) disables the check for that kind.
PLAN_LIMITS: Mapping[Plan, Mapping[ResourceKind, int]] = MappingProxyType(
    {
        Plan.FREE: MappingProxyType(
            {ResourceKind.ANALYSIS: 5, ResourceKind.GENERATION: 2, ResourceKind.OCR: 10}
        ),
        Plan.PERSONAL: MappingProxyType(
            {ResourceKind.ANALYSIS: 50, ResourceKind.GENERATION: 20, ResourceKind.OCR: 100}
        ),
        Plan.PRO: MappingProxyType(
            {ResourceKind.ANALYSIS: 200, ResourceKind.GENERATION: 100, ResourceKind.OCR: 500}
        ),
        Plan.ENTERPRISE: MappingProxyType(
            {
                ResourceKind.ANALYSIS: UNLIMITED,
                ResourceKind.GENERATION: UNLIMITED,
                ResourceKind.OCR: UNLIMITED,
            }
        ),
    }
)


def get_plan_limits(plan: Union[Plan, str, None]) -> dict[ResourceKind, int]:
    """Return a copy of the limit row for *plan*.

    Unrecognized plans fall back to the FREE row.
    """
    row = PLAN_LIMITS.get(plan, PLAN_LIMITS[DEFAULT_PLAN])  # type: ignore[arg-type]
    return dict(row)


def is_known_plan(plan: Union[Plan, str, None]) -> bool:
    """Check whether *plan* has its own row in the limit table."""
    return plan in PLAN_LIMITS


def parse_resource_kind(value: Union[ResourceKind, str]) -> ResourceKind:
    """Coerce *value* to a ResourceKind or raise InvalidResourceKindError."""
    if isinstance(value, ResourceKind):
        return value
    try:
        return ResourceKind(value)
    except ValueError:
        raise InvalidResourceKindError(kind=str(value)) from None


_PERIOD_KEY_RE = re.compile(r"\d{4}-(0[1-9]|1[0-2])")


def is_period_key(value: str) -> bool:
    """Check whether *value* is a well-formed ``YYYY-MM`` key."""
    return _PERIOD_KEY_RE.fullmatch(value) is not None


def period_key_for(moment: datetime) -> str:
    """Return the calendar-month period key (``YYYY-MM``) for *moment* in UTC.

    Naive datetimes are treated as UTC.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return f"{moment.year:04d}-{moment.month:02d}"
