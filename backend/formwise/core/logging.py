"""Logging setup for the Formwise backend.

Everything logs through ``logger`` or a child obtained with
``logger.with_context(...)``. Context dimensions are attached to each
record as ``extra`` fields and rendered as a ``[key=value ...]`` prefix.

Usage:
    from formwise.core.logging import logger

    log = logger.with_context(tenant_id=tenant_id, kind="ocr")
    log.info("Incremented usage")
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

from formwise.core.config import settings

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries key/value dimensions."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[dict[str, Any]] = None):
        """Wrap *logger* with an immutable set of dimensions."""
        self.dimensions: dict[str, Any] = dict(dimensions or {})
        super().__init__(logger, self.dimensions)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Merge dimensions into ``extra`` and prefix the message."""
        kwargs["extra"] = {**self.dimensions, **(kwargs.get("extra") or {})}
        if self.dimensions:
            prefix = " ".join(f"{key}={value}" for key, value in self.dimensions.items())
            msg = f"[{prefix}] {msg}"
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with *dimensions* added."""
        return ContextualLogger(self.logger, {**self.dimensions, **dimensions})


def _configure(name: str, level: str) -> logging.Logger:
    base = logging.getLogger(name)
    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        base.addHandler(handler)
    base.setLevel(level.upper())
    base.propagate = False
    return base


logger = ContextualLogger(_configure("formwise", settings.LOG_LEVEL))
