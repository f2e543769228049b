"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
Construction logic belongs in the factory.
"""

from dataclasses import dataclass, replace
from typing import Any

from formwise.domains.usage.protocols import UsageServiceProtocol


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from formwise.core.container import container
        await container.usage_service.record_usage(db, tenant_id, "ocr")

        # Testing: construct directly with fakes
        test_container = Container(
            usage_service=UsageService(account_repo=FakeUsageAccountRepository())
        )
    """

    usage_service: UsageServiceProtocol

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Example:
            test_container = container.replace(usage_service=other_service)
        """
        return replace(self, **changes)
