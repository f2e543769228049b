"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.
"""

from formwise.core.config import Settings
from formwise.core.container.container import Container
from formwise.core.logging import logger
from formwise.domains.usage.repository import UsageAccountRepository
from formwise.domains.usage.service import UsageService


def create_container(settings: Settings) -> Container:
    """Build the container from settings.

    Args:
        settings: Application settings

    Returns:
        A fully wired Container
    """
    usage_service = UsageService(
        account_repo=UsageAccountRepository(),
        lazy_rollover=settings.USAGE_LAZY_ROLLOVER,
    )
    logger.info(
        "Usage service wired (environment=%s, lazy_rollover=%s)",
        settings.ENVIRONMENT.value,
        settings.USAGE_LAZY_ROLLOVER,
    )
    return Container(usage_service=usage_service)
