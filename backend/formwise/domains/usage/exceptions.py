"""Usage domain exceptions."""

from typing import Optional

from formwise.core.exceptions import InvalidInputError, InvalidStateError, NotFoundException


class QuotaExceededError(InvalidStateError):
    """Raised when an increment would exceed the tenant's monthly limit."""

    def __init__(
        self,
        kind: str,
        limit: int,
        used: int,
        requested: int = 1,
        message: Optional[str] = None,
    ) -> None:
        """Initialize with resource kind, limit, current usage, and requested amount."""
        if message is None:
            message = f"Quota exceeded for {kind}: {used}/{limit}"
        self.kind = kind
        self.limit = limit
        self.used = used
        self.requested = requested
        super().__init__(message)


class InvalidResourceKindError(InvalidInputError):
    """Raised when a caller passes an unrecognized resource kind."""

    def __init__(self, kind: str, message: Optional[str] = None) -> None:
        """Initialize with the rejected kind."""
        if message is None:
            message = f"Unknown resource kind: {kind!r}"
        self.kind = kind
        super().__init__(message)


class InvalidIncrementAmountError(InvalidInputError):
    """Raised when an increment amount is not a positive integer."""

    def __init__(self, count: object, message: Optional[str] = None) -> None:
        """Initialize with the rejected amount."""
        if message is None:
            message = f"Increment amount must be a positive integer, got {count!r}"
        self.count = count
        super().__init__(message)


class UsageAccountNotFoundError(NotFoundException):
    """Raised when no usage account exists for a tenant."""

    def __init__(self, tenant_id: str) -> None:
        """Initialize with the missing tenant id."""
        self.tenant_id = tenant_id
        super().__init__(f"No usage account for tenant {tenant_id}")


class InvalidPeriodKeyError(InvalidInputError):
    """Raised when a rollover targets a malformed or earlier period key."""

    def __init__(self, period_key: str, current_period_key: str) -> None:
        """Initialize with the rejected key and the account's current key."""
        self.period_key = period_key
        self.current_period_key = current_period_key
        super().__init__(
            f"Cannot roll usage period {current_period_key!r} to {period_key!r}"
        )
